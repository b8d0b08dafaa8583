"""
Unit tests for amplification coefficient ramping.
"""

import dataclasses

import pytest

from ammcore.errors import RampError
from ammcore.utils.config import Config
from ammcore.utils.fixed_point import A_PRECISION
from ammcore.utils.ramp import AmplificationState, current_a, ramp_a, stop_ramp_a


DAY = 86400


class TestCurrentA:
    """Tests for linear interpolation."""

    def test_midpoint_up(self):
        """Test ramping 100 -> 200 over a day at the midpoint."""
        assert current_a(100, 200, 0, DAY, DAY // 2) == 150

    def test_midpoint_scaled(self):
        """Test the same ramp with A_PRECISION applied."""
        assert current_a(100 * A_PRECISION, 200 * A_PRECISION, 0, DAY, DAY // 2) == 150 * A_PRECISION

    def test_midpoint_down(self):
        """Test ramping 200 -> 100."""
        assert current_a(200, 100, 0, DAY, DAY // 2) == 150

    def test_after_end(self):
        """Test that the target holds once the ramp ends."""
        assert current_a(100, 200, 0, DAY, DAY) == 200
        assert current_a(100, 200, 0, DAY, 10 * DAY) == 200

    def test_before_start(self):
        """Test that the starting value holds before the ramp begins."""
        assert current_a(100, 200, DAY, 2 * DAY, 0) == 100
        assert current_a(100, 200, DAY, 2 * DAY, DAY) == 100

    def test_rounds_towards_start(self):
        """Test floor rounding in both directions."""
        assert current_a(100, 200, 0, 3, 1) == 133
        assert current_a(200, 100, 0, 3, 1) == 167

    def test_monotonic(self):
        """Test that an upward ramp never decreases."""
        values = [current_a(100, 1000, 0, DAY, t) for t in range(0, DAY + 1, 3600)]
        assert values == sorted(values)


class TestAmplificationState:
    """Tests for the state record."""

    def test_constant(self):
        """Test a fixed A."""
        state = AmplificationState.constant(100)
        assert state.current_a(0) == 100 * A_PRECISION
        assert state.current_a(10 * DAY) == 100 * A_PRECISION
        assert not state.is_ramping(0)

    def test_is_ramping(self):
        """Test ramp detection over time."""
        state = AmplificationState(100, 200, 0, DAY)
        assert state.is_ramping(DAY // 2)
        assert not state.is_ramping(DAY)

    def test_frozen(self):
        """Test that the state cannot be modified in place."""
        state = AmplificationState.constant(100)
        with pytest.raises(dataclasses.FrozenInstanceError):
            state.future_a = 1


class TestRampA:
    """Tests for starting and stopping ramps."""

    def setup_method(self):
        self.state = AmplificationState.constant(100)

    def test_start_ramp(self):
        """Test a valid ramp from the current A."""
        new = ramp_a(self.state, 200, 3 * DAY, now=DAY)
        assert new == AmplificationState(100 * A_PRECISION, 200 * A_PRECISION, DAY, 3 * DAY)
        assert new.current_a(2 * DAY) == 150 * A_PRECISION

    def test_original_untouched(self):
        """Test that ramping returns a new state."""
        ramp_a(self.state, 200, 3 * DAY, now=DAY)
        assert self.state.future_a == 100 * A_PRECISION

    def test_too_soon_after_last_ramp(self):
        """Test the minimum interval between ramps."""
        with pytest.raises(RampError):
            ramp_a(self.state, 200, 3 * DAY, now=DAY - 1)

    def test_too_short(self):
        """Test the minimum ramp duration."""
        with pytest.raises(RampError):
            ramp_a(self.state, 200, 2 * DAY - 1, now=DAY)

    @pytest.mark.parametrize("target", [0, 10**6 + 1, 10**7])
    def test_target_out_of_bounds(self, target):
        """Test that targets outside [1, MAX_A] raise."""
        with pytest.raises(RampError):
            ramp_a(self.state, target, 3 * DAY, now=DAY)

    def test_target_at_max_a(self):
        """Test that MAX_A itself is an allowed target."""
        state = ramp_a(self.state, 1000, 3 * DAY, now=DAY, max_a=1000)
        assert state.future_a == 1000 * A_PRECISION
        with pytest.raises(RampError):
            ramp_a(self.state, 1001, 3 * DAY, now=DAY, max_a=1000, max_a_change=100)

    def test_max_change_up(self):
        """Test the 10x limit when raising A."""
        assert ramp_a(self.state, 1000, 3 * DAY, now=DAY).future_a == 1000 * A_PRECISION
        with pytest.raises(RampError):
            ramp_a(self.state, 1001, 3 * DAY, now=DAY)

    def test_max_change_down(self):
        """Test the 10x limit when lowering A."""
        assert ramp_a(self.state, 10, 3 * DAY, now=DAY).future_a == 10 * A_PRECISION
        with pytest.raises(RampError):
            ramp_a(self.state, 9, 3 * DAY, now=DAY)

    def test_ramp_from_mid_ramp(self):
        """Test that a new ramp starts from the interpolated A."""
        first = ramp_a(self.state, 200, 3 * DAY, now=DAY)
        second = ramp_a(first, 100, 5 * DAY, now=2 * DAY)
        assert second.initial_a == 150 * A_PRECISION
        assert second.initial_a_time == 2 * DAY

    def test_config_overrides(self):
        """Test that policy limits come from Config."""
        Config.set("ramp.min_ramp_time", 10)
        new = ramp_a(self.state, 200, 30, now=10)
        assert new.future_a_time == 30

    def test_explicit_limits(self):
        """Test that explicit limits win over Config."""
        with pytest.raises(RampError):
            ramp_a(self.state, 300, 3 * DAY, now=DAY, max_a_change=2)

    def test_stop_ramp(self):
        """Test that stopping freezes the current A."""
        ramping = ramp_a(self.state, 200, 3 * DAY, now=DAY)
        stopped = stop_ramp_a(ramping, now=2 * DAY)
        assert stopped.current_a(2 * DAY) == 150 * A_PRECISION
        assert stopped.current_a(10 * DAY) == 150 * A_PRECISION
        assert not stopped.is_ramping(2 * DAY)

    def test_ramp_logged(self, caplog):
        """Test that starting a ramp logs at INFO."""
        with caplog.at_level("INFO", logger="ammcore.utils.ramp"):
            ramp_a(self.state, 200, 3 * DAY, now=DAY)
        assert "Ramping A" in caplog.text
