"""Enumerations for pool and position states."""

from enum import IntEnum


class RangePosition(IntEnum):
    """Where the current price sits relative to a liquidity range."""

    BELOW = 0  # Price at or below the lower bound, position is all token0
    IN_RANGE = 1  # Price strictly inside, position holds both tokens
    ABOVE = 2  # Price at or above the upper bound, position is all token1


class RampDirection(IntEnum):
    """Direction of an amplification ramp."""

    NONE = 0
    UP = 1
    DOWN = 2
