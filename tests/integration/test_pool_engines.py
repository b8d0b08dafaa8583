"""
Integration tests for the pool engines.

Drive StableSwapPool and ConcentratedLiquidityPool through realistic
sequences of operations on caller-owned snapshots.
"""

import dataclasses

import pytest

from ammcore.amms.enums import RampDirection, RangePosition
from ammcore.amms.stableswap import StableSwapPool, StableSwapSnapshot
from ammcore.amms.univ3 import ConcentratedLiquidityPool
from ammcore.errors import InvalidBasket, TickOutOfBounds
from ammcore.utils.config import Config
from ammcore.utils.fixed_point import A_PRECISION, Q96, WAD
from ammcore.utils.ramp import AmplificationState
from ammcore.utils.tick_math import get_sqrt_ratio_at_tick


DAY = 86400


class TestStableSwapPoolSetup:
    """Tests for pool construction and seeding."""

    def test_defaults_from_config(self, stable_pool):
        """Test that fees default to the configured values."""
        assert stable_pool.fee == 4_000_000
        assert stable_pool.admin_fee == 5_000_000_000
        assert stable_pool.get_a(0) == 100 * A_PRECISION

    def test_config_change_applies_to_new_pools(self):
        """Test that Config is read at construction time."""
        Config.set("defaults.stableswap_fee", 1_000_000)
        assert StableSwapPool(decimals=[18, 18], amplification=50).fee == 1_000_000

    def test_invalid_fee(self):
        """Test that fees above 50% are rejected."""
        with pytest.raises(ValueError):
            StableSwapPool(decimals=[18, 18], amplification=100, fee=6 * 10**9)

    def test_invalid_basket_size(self):
        """Test that single-token pools are rejected."""
        with pytest.raises(InvalidBasket):
            StableSwapPool(decimals=[18], amplification=100)

    def test_initial_deposit(self, stable_pool, seeded_snapshot):
        """Test that the first deposit mints D at a virtual price of 1."""
        assert seeded_snapshot.balances == (1_000_000 * 10**18, 1_000_000 * 10**6)
        assert seeded_snapshot.lp_supply == 2_000_000 * 10**18
        assert seeded_snapshot.admin_balances == (0, 0)
        assert stable_pool.get_virtual_price(seeded_snapshot, now=0) == WAD

    def test_snapshot_size_checked(self, stable_pool):
        """Test that a snapshot for a different basket is rejected."""
        with pytest.raises(InvalidBasket):
            stable_pool.get_d(StableSwapSnapshot(balances=(1, 2, 3)), now=0)

    def test_snapshot_frozen(self, seeded_snapshot):
        """Test that snapshots cannot be modified in place."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            seeded_snapshot.lp_supply = 0

    def test_repr(self, stable_pool):
        """Test that repr lists the pool parameters."""
        assert repr(stable_pool).startswith("StableSwapPool(decimals=(18, 6)")


class TestStableSwapPoolTrading:
    """Tests for swaps against a seeded pool."""

    def test_exchange_updates_snapshot(self, stable_pool, seeded_snapshot):
        """Test balances and admin fees after a swap."""
        dx = 1000 * 10**18
        new, result = stable_pool.exchange(seeded_snapshot, 0, 1, dx, now=0)

        assert abs(result.dy - 1000 * 10**6) / (1000 * 10**6) < 0.001
        assert new.balances[0] == seeded_snapshot.balances[0] + dx
        assert new.balances[1] == seeded_snapshot.balances[1] - result.dy - result.dy_admin_fee
        assert new.admin_balances == (0, result.dy_admin_fee)
        assert new.lp_supply == seeded_snapshot.lp_supply

    def test_exchange_leaves_input_snapshot(self, stable_pool, seeded_snapshot):
        """Test that the caller's snapshot is unchanged."""
        before = seeded_snapshot.balances
        stable_pool.exchange(seeded_snapshot, 0, 1, 1000 * 10**18, now=0)
        assert seeded_snapshot.balances == before

    def test_quote_matches_exchange(self, stable_pool, seeded_snapshot):
        """Test that get_dy equals the executed output."""
        quote = stable_pool.get_dy(seeded_snapshot, 1, 0, 5000 * 10**6, now=0)
        _, result = stable_pool.exchange(seeded_snapshot, 1, 0, 5000 * 10**6, now=0)
        assert quote == result.dy

    def test_min_dy(self, stable_pool, seeded_snapshot):
        """Test slippage protection."""
        with pytest.raises(ValueError):
            stable_pool.exchange(seeded_snapshot, 0, 1, 1000 * 10**18, now=0, min_dy=1000 * 10**6)

    def test_fees_raise_virtual_price(self, stable_pool, seeded_snapshot):
        """Test that LP fees accrue to the virtual price."""
        snapshot = seeded_snapshot
        for _ in range(5):
            snapshot, _ = stable_pool.exchange(snapshot, 0, 1, 10_000 * 10**18, now=0)
            snapshot, _ = stable_pool.exchange(snapshot, 1, 0, 10_000 * 10**6, now=0)
        assert stable_pool.get_virtual_price(snapshot, now=0) > WAD

    def test_withdraw_admin_fees(self, stable_pool, seeded_snapshot):
        """Test releasing earmarked admin fees."""
        snapshot, result = stable_pool.exchange(seeded_snapshot, 0, 1, 10_000 * 10**18, now=0)
        cleared, fees = stable_pool.withdraw_admin_fees(snapshot)
        assert fees == (0, result.dy_admin_fee)
        assert cleared.admin_balances == (0, 0)
        assert cleared.balances == snapshot.balances


class TestStableSwapPoolLiquidity:
    """Tests for deposits and withdrawals through the engine."""

    def test_deposit_then_full_exit(self, stable_pool, seeded_snapshot):
        """Test that burning the whole supply empties the pool."""
        snapshot, minted = stable_pool.add_liquidity(
            seeded_snapshot, [1000 * 10**18, 1000 * 10**6], now=0
        )
        assert minted == 2000 * 10**18
        empty, amounts = stable_pool.remove_liquidity(snapshot, snapshot.lp_supply)
        assert amounts == snapshot.balances
        assert empty.balances == (0, 0)
        assert empty.lp_supply == 0

    def test_min_mint_amount(self, stable_pool, seeded_snapshot):
        """Test deposit slippage protection."""
        with pytest.raises(ValueError):
            stable_pool.add_liquidity(
                seeded_snapshot, [1000 * 10**18, 0], now=0, min_mint_amount=1000 * 10**18
            )

    def test_estimate_bounds_deposit(self, stable_pool, seeded_snapshot):
        """Test that a one-sided deposit mints less than the fee-less estimate."""
        amounts = [10_000 * 10**18, 0]
        estimate = stable_pool.calc_token_amount(seeded_snapshot, amounts, True, now=0)
        snapshot, minted = stable_pool.add_liquidity(seeded_snapshot, amounts, now=0)
        assert minted < estimate
        assert snapshot.lp_supply == seeded_snapshot.lp_supply + minted
        assert snapshot.admin_balances[0] > 0

    def test_remove_imbalance(self, stable_pool, seeded_snapshot):
        """Test an exact one-sided withdrawal."""
        amounts = [0, 10_000 * 10**6]
        snapshot, burned = stable_pool.remove_liquidity_imbalance(seeded_snapshot, amounts, now=0)
        assert burned > 10_000 * 10**18
        assert snapshot.lp_supply == seeded_snapshot.lp_supply - burned
        with pytest.raises(ValueError):
            stable_pool.remove_liquidity_imbalance(
                seeded_snapshot, amounts, now=0, max_burn_amount=10_000 * 10**18
            )

    def test_remove_one_coin(self, stable_pool, seeded_snapshot):
        """Test a single-token withdrawal into the 6-decimal token."""
        lp_amount = 10_000 * 10**18
        quote = stable_pool.calc_withdraw_one_coin(seeded_snapshot, lp_amount, 1, now=0)
        snapshot, result = stable_pool.remove_liquidity_one_coin(seeded_snapshot, lp_amount, 1, now=0)
        assert result.dy == quote
        assert 0.99 * 10_000 * 10**6 < result.dy < 10_000 * 10**6
        assert snapshot.lp_supply == seeded_snapshot.lp_supply - lp_amount
        assert snapshot.balances[0] == seeded_snapshot.balances[0]
        assert snapshot.admin_balances[1] == result.dy_admin_fee

    def test_remove_one_coin_min_amount(self, stable_pool, seeded_snapshot):
        """Test single-token slippage protection."""
        with pytest.raises(ValueError):
            stable_pool.remove_liquidity_one_coin(
                seeded_snapshot, 10_000 * 10**18, 1, now=0, min_amount=10_000 * 10**6
            )


class TestStableSwapPoolRamp:
    """Tests for amplification changes through the engine."""

    def test_ramp_returns_new_pool(self, stable_pool):
        """Test that ramping leaves the original pool untouched."""
        ramped = stable_pool.ramp_a(200, 3 * DAY, now=DAY)
        assert stable_pool.get_a(2 * DAY) == 100 * A_PRECISION
        assert ramped.get_a(2 * DAY) == 150 * A_PRECISION
        assert ramped.get_a(3 * DAY) == 200 * A_PRECISION
        assert ramped.fee == stable_pool.fee

    def test_ramp_direction(self, stable_pool):
        """Test ramp direction reporting."""
        assert stable_pool.ramp_direction(0) == RampDirection.NONE
        up = stable_pool.ramp_a(200, 3 * DAY, now=DAY)
        assert up.ramp_direction(2 * DAY) == RampDirection.UP
        assert up.ramp_direction(3 * DAY) == RampDirection.NONE
        down = stable_pool.ramp_a(50, 3 * DAY, now=DAY)
        assert down.ramp_direction(2 * DAY) == RampDirection.DOWN

    def test_stop_ramp(self, stable_pool):
        """Test freezing A mid-ramp."""
        stopped = stable_pool.ramp_a(200, 3 * DAY, now=DAY).stop_ramp_a(now=2 * DAY)
        assert stopped.get_a(5 * DAY) == 150 * A_PRECISION

    def test_higher_a_lowers_slippage(self, seeded_snapshot):
        """Test that a swap quoted mid-ramp gets better as A rises."""
        state = AmplificationState(10 * A_PRECISION, 1000 * A_PRECISION, 0, DAY)
        pool = StableSwapPool(decimals=[18, 6], amplification=state)
        dx = 200_000 * 10**18
        early = pool.get_dy(seeded_snapshot, 0, 1, dx, now=0)
        late = pool.get_dy(seeded_snapshot, 0, 1, dx, now=DAY)
        assert late > early


class TestConcentratedLiquidityPool:
    """Tests for the concentrated liquidity engine."""

    def test_spacing_from_fee_tier(self, v3_pool):
        """Test default tick spacing lookup."""
        assert v3_pool.tick_spacing == 60
        assert ConcentratedLiquidityPool(fee=500).tick_spacing == 10

    def test_unknown_fee_tier(self):
        """Test that a fee tier without a spacing needs an explicit one."""
        with pytest.raises(ValueError):
            ConcentratedLiquidityPool(fee=1234)
        assert ConcentratedLiquidityPool(fee=1234, tick_spacing=7).tick_spacing == 7

    def test_usable_range(self, v3_pool):
        """Test usable tick bounds."""
        assert v3_pool.usable_tick_range() == (-887220, 887220)

    def test_check_range(self, v3_pool):
        """Test range validation."""
        v3_pool.check_range(-60, 60)
        with pytest.raises(ValueError):
            v3_pool.check_range(-61, 60)
        with pytest.raises(ValueError):
            v3_pool.check_range(60, -60)
        with pytest.raises(TickOutOfBounds):
            v3_pool.check_range(-887280, 0)

    def test_align_range(self, v3_pool):
        """Test snapping an arbitrary range."""
        assert v3_pool.align_range(-95, 95) == (-120, 120)

    def test_position_status(self, v3_pool):
        """Test where the price sits relative to a range."""
        assert v3_pool.position_status(Q96, -60, 60) == RangePosition.IN_RANGE
        assert v3_pool.position_status(Q96, 60, 120) == RangePosition.BELOW
        assert v3_pool.position_status(Q96, -120, -60) == RangePosition.ABOVE

    def test_amounts_match_burn(self, v3_pool):
        """Test that position amounts equal rounded-down burn amounts."""
        liquidity = 10**18
        for sqrt_price in (Q96, get_sqrt_ratio_at_tick(-60), get_sqrt_ratio_at_tick(600)):
            assert v3_pool.amounts_for_position(sqrt_price, -60, 60, liquidity) == \
                v3_pool.burn_amounts(sqrt_price, -60, 60, liquidity)

    def test_mint_rounds_up(self, v3_pool):
        """Test that minting costs at most one unit more per token than burning returns."""
        liquidity = 10**18 + 7
        minted = v3_pool.mint_amounts(Q96, -600, 600, liquidity)
        burned = v3_pool.burn_amounts(Q96, -600, 600, liquidity)
        for m, b in zip(minted, burned):
            assert 0 <= m - b <= 1

    def test_mint_sides(self, v3_pool):
        """Test single-sided mints outside the range."""
        below = v3_pool.mint_amounts(get_sqrt_ratio_at_tick(-1200), -600, 600, 10**18)
        above = v3_pool.mint_amounts(get_sqrt_ratio_at_tick(1200), -600, 600, 10**18)
        assert below[0] > 0 and below[1] == 0
        assert above[0] == 0 and above[1] > 0

    def test_liquidity_for_amounts_roundtrip(self, v3_pool):
        """Test that funded liquidity never needs more than was offered."""
        liquidity = v3_pool.liquidity_for_amounts(Q96, -600, 600, 10**18, 10**18)
        amount0, amount1 = v3_pool.amounts_for_position(Q96, -600, 600, liquidity)
        assert amount0 <= 10**18
        assert amount1 <= 10**18
        assert max(amount0, amount1) > 0.999 * 10**18
