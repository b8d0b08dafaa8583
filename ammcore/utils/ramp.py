"""
Amplification coefficient ramping.

``A`` moves linearly between two committed values over a time window. The
current value is always derived from the four stored numbers and the
caller's clock; it is never stored itself. All values carry A_PRECISION.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from ammcore.errors import RampError
from ammcore.utils.config import Config
from ammcore.utils.fixed_point import A_PRECISION


logger = logging.getLogger(__name__)


def current_a(
    initial_a: int,
    future_a: int,
    initial_a_time: int,
    future_a_time: int,
    now: int,
) -> int:
    """
    Interpolate the amplification coefficient at time ``now``.

    Parameters
    ----------
    initial_a : int
        A at ``initial_a_time``
    future_a : int
        A at ``future_a_time``
    initial_a_time : int
        Ramp start (seconds)
    future_a_time : int
        Ramp end (seconds)
    now : int
        Current time (seconds)

    Returns
    -------
    int
        Current A, floor-rounded towards the starting value

    Examples
    --------
    >>> current_a(100, 200, 0, 86400, 43200)
    150
    """
    if now >= future_a_time:
        return future_a
    if now <= initial_a_time:
        return initial_a

    elapsed = now - initial_a_time
    duration = future_a_time - initial_a_time
    if future_a > initial_a:
        return initial_a + (future_a - initial_a) * elapsed // duration
    return initial_a - (initial_a - future_a) * elapsed // duration


@dataclass(frozen=True)
class AmplificationState:
    """Committed ramp endpoints. Values include A_PRECISION."""

    initial_a: int
    future_a: int
    initial_a_time: int = 0
    future_a_time: int = 0

    @classmethod
    def constant(cls, a: int, now: int = 0) -> "AmplificationState":
        """State holding a fixed, unscaled ``a``."""
        a_precise = a * A_PRECISION
        return cls(a_precise, a_precise, now, now)

    def current_a(self, now: int) -> int:
        """Current A including A_PRECISION."""
        return current_a(
            self.initial_a,
            self.future_a,
            self.initial_a_time,
            self.future_a_time,
            now,
        )

    def is_ramping(self, now: int) -> bool:
        return now < self.future_a_time and self.initial_a != self.future_a


def ramp_a(
    state: AmplificationState,
    future_a: int,
    future_time: int,
    now: int,
    min_ramp_time: Optional[int] = None,
    max_a: Optional[int] = None,
    max_a_change: Optional[int] = None,
) -> AmplificationState:
    """
    Start a new ramp from the current A towards ``future_a``.

    Parameters
    ----------
    state : AmplificationState
        Current ramp
    future_a : int
        Target A, unscaled
    future_time : int
        Time the target is reached
    now : int
        Current time
    min_ramp_time, max_a, max_a_change : int, optional
        Policy limits; read from ``Config`` under ``ramp.*`` when omitted

    Returns
    -------
    AmplificationState
        The new ramp, starting at ``now``

    Raises
    ------
    RampError
        If a policy limit is violated
    """
    if min_ramp_time is None:
        min_ramp_time = Config.get("ramp.min_ramp_time")
    if max_a is None:
        max_a = Config.get("ramp.max_a")
    if max_a_change is None:
        max_a_change = Config.get("ramp.max_a_change")

    if now < state.initial_a_time + min_ramp_time:
        raise RampError(
            f"Ramp started at {state.initial_a_time}, next allowed at "
            f"{state.initial_a_time + min_ramp_time}"
        )
    if future_time < now + min_ramp_time:
        raise RampError(f"Ramp to {future_time} is shorter than {min_ramp_time}s")
    if not 1 <= future_a <= max_a:
        raise RampError(f"Target A {future_a} outside [1, {max_a}]")

    initial_a_precise = state.current_a(now)
    future_a_precise = future_a * A_PRECISION

    if future_a_precise < initial_a_precise:
        if future_a_precise * max_a_change < initial_a_precise:
            raise RampError(
                f"Cannot lower A from {initial_a_precise} to {future_a_precise} "
                f"(more than {max_a_change}x)"
            )
    elif future_a_precise > initial_a_precise * max_a_change:
        raise RampError(
            f"Cannot raise A from {initial_a_precise} to {future_a_precise} "
            f"(more than {max_a_change}x)"
        )

    logger.info(
        "Ramping A %s -> %s between %s and %s",
        initial_a_precise, future_a_precise, now, future_time,
    )
    return AmplificationState(
        initial_a=initial_a_precise,
        future_a=future_a_precise,
        initial_a_time=now,
        future_a_time=future_time,
    )


def stop_ramp_a(state: AmplificationState, now: int) -> AmplificationState:
    """Freeze A at its current value."""
    a = state.current_a(now)
    return replace(state, initial_a=a, future_a=a, initial_a_time=now, future_a_time=now)
