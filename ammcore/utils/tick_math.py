"""
Tick <-> sqrt price conversions (Uniswap v3 TickMath).

Bit-exact integer port of the on-chain library: ``sqrt(1.0001^tick)`` in
Q64.96 via a binary expansion of the tick over precomputed powers of
``sqrt(1.0001)``, and the inverse via a fixed-point log2.

No floats are used anywhere in this module.
"""

import math
from typing import Tuple

from ammcore.errors import SqrtRatioOutOfBounds, TickOutOfBounds
from ammcore.utils.fixed_point import MAX_UINT256, to_int256, to_uint160


MIN_TICK = -887272
MAX_TICK = -MIN_TICK

# get_sqrt_ratio_at_tick(MIN_TICK) and get_sqrt_ratio_at_tick(MAX_TICK)
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

# Q128.128 value of 1/sqrt(1.0001)^(2^k) for bit k of |tick|.
# Bit 0 seeds the accumulator instead of multiplying it.
TICK_BIT_RATIOS: Tuple[int, ...] = (
    0xFFFCB933BD6FAD37AA2D162D1A594001,
    0xFFF97272373D413259A46990580E213A,
    0xFFF2E50F5F656932EF12357CF3C7FDCC,
    0xFFE5CACA7E10E4E61C3624EAA0941CD0,
    0xFFCB9843D60F6159C9DB58835C926644,
    0xFF973B41FA98C081472E6896DFB254C0,
    0xFF2EA16466C96A3843EC78B326B52861,
    0xFE5DEE046A99A2A811C461F1969C3053,
    0xFCBE86C7900A88AEDCFFC83B479AA3A4,
    0xF987A7253AC413176F2B074CF7815E54,
    0xF3392B0822B70005940C7A398E4B70F3,
    0xE7159475A2C29B7443B29C7FA6E889D9,
    0xD097F3BDFD2022B8845AD8F792AA5825,
    0xA9F746462D870FDF8A65DC1F90E061E5,
    0x70D869A156D2A1B890BB3DF62BAF32F7,
    0x31BE135F97D08FD981231505542FCFA6,
    0x9AA508B5B7A84E1C677DE54F3E99BC9,
    0x5D6AF8DEDB81196699C329225EE604,
    0x2216E584F5FA1EA926041BEDFE98,
    0x48A170391F7DC42444E8FA2,
)

# Q128.128 one, used when bit 0 of |tick| is clear
RATIO_ONE = 0x100000000000000000000000000000000

# (threshold, shift) pairs for the most-significant-bit binary search
MSB_STEPS: Tuple[Tuple[int, int], ...] = (
    (0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF, 7),
    (0xFFFFFFFFFFFFFFFF, 6),
    (0xFFFFFFFF, 5),
    (0xFFFF, 4),
    (0xFF, 3),
    (0xF, 2),
    (0x3, 1),
    (0x1, 0),
)

# 2^64 / log2(sqrt(1.0001)), Q64.64 * Q64.64 -> Q128.128
LOG_SQRT10001_MULTIPLIER = 255738958999603826347141

# Error bounds of the log approximation, shifted by 2^128
TICK_LOW_BIAS = 3402992956809132418596140100660247210
TICK_HIGH_BIAS = 291339464771989622907027621153398088495

LOG2_FRACTION_BITS = 14


def get_sqrt_ratio_at_tick(tick: int) -> int:
    """
    Calculate sqrt(1.0001^tick) * 2^96.

    Parameters
    ----------
    tick : int
        Tick in [MIN_TICK, MAX_TICK]

    Returns
    -------
    int
        Q64.96 sqrt price, rounded up

    Raises
    ------
    TickOutOfBounds
        If |tick| > MAX_TICK

    Examples
    --------
    >>> get_sqrt_ratio_at_tick(0) == 2**96
    True
    """
    abs_tick = -tick if tick < 0 else tick
    if abs_tick > MAX_TICK:
        raise TickOutOfBounds(tick)

    ratio = TICK_BIT_RATIOS[0] if abs_tick & 0x1 else RATIO_ONE
    for bit in range(1, len(TICK_BIT_RATIOS)):
        if abs_tick & (1 << bit):
            ratio = (ratio * TICK_BIT_RATIOS[bit]) >> 128

    # the table encodes negative ticks
    if tick > 0:
        ratio = MAX_UINT256 // ratio

    # Q128.128 -> Q128.96, rounding up so the tick of the result is exact
    sqrt_price_x96 = (ratio >> 32) + (0 if ratio % (1 << 32) == 0 else 1)
    return to_uint160(sqrt_price_x96)


def most_significant_bit(x: int) -> int:
    """
    Index of the highest set bit of a non-zero uint256.

    Binary search over halving bit widths: each step tests whether ``x``
    has any bit above the current window and, if so, shifts it down.
    """
    if x <= 0:
        raise ValueError(f"most_significant_bit undefined for {x}")
    msb = 0
    r = x
    for threshold, shift in MSB_STEPS:
        step = (1 << shift) if r > threshold else 0
        msb |= step
        r >>= step
    return msb


def get_tick_at_sqrt_ratio(sqrt_price_x96: int) -> int:
    """
    Greatest tick whose sqrt ratio is <= ``sqrt_price_x96``.

    Parameters
    ----------
    sqrt_price_x96 : int
        Q64.96 sqrt price in [MIN_SQRT_RATIO, MAX_SQRT_RATIO)

    Returns
    -------
    int
        Tick

    Raises
    ------
    SqrtRatioOutOfBounds
        If the price is outside the supported range
    """
    if not (MIN_SQRT_RATIO <= sqrt_price_x96 < MAX_SQRT_RATIO):
        raise SqrtRatioOutOfBounds(sqrt_price_x96)

    ratio = sqrt_price_x96 << 32
    msb = most_significant_bit(ratio)

    # mantissa normalized into [2^127, 2^128)
    if msb >= 128:
        r = ratio >> (msb - 127)
    else:
        r = ratio << (127 - msb)

    # integer part of log2, Q64.64
    log_2 = (msb - 128) << 64

    # fractional bits 63..50: square the mantissa, the overflow bit is the next digit
    for shift in range(63, 63 - LOG2_FRACTION_BITS, -1):
        r = (r * r) >> 127
        f = r >> 128
        log_2 |= f << shift
        r >>= f

    log_sqrt10001 = to_int256(log_2 * LOG_SQRT10001_MULTIPLIER)

    # >> on negative ints is arithmetic, matching sar
    tick_low = (log_sqrt10001 - TICK_LOW_BIAS) >> 128
    tick_high = (log_sqrt10001 + TICK_HIGH_BIAS) >> 128

    if tick_low == tick_high:
        return tick_low
    if get_sqrt_ratio_at_tick(tick_high) <= sqrt_price_x96:
        return tick_high
    return tick_low


def get_min_tick(tick_spacing: int) -> int:
    """Lowest tick usable with ``tick_spacing``."""
    _check_spacing(tick_spacing)
    return -(MAX_TICK // tick_spacing) * tick_spacing


def get_max_tick(tick_spacing: int) -> int:
    """Highest tick usable with ``tick_spacing``."""
    _check_spacing(tick_spacing)
    return (MAX_TICK // tick_spacing) * tick_spacing


def nearest_usable_tick(tick: int, tick_spacing: int) -> int:
    """
    Round ``tick`` to the nearest multiple of ``tick_spacing``.

    Halves round up. The result is pulled back inside the usable range when
    rounding would leave it.

    Examples
    --------
    >>> nearest_usable_tick(-5, 10)
    0
    >>> nearest_usable_tick(887272, 60)
    887220
    """
    _check_spacing(tick_spacing)
    if tick < MIN_TICK or tick > MAX_TICK:
        raise TickOutOfBounds(tick)
    rounded = ((2 * tick + tick_spacing) // (2 * tick_spacing)) * tick_spacing
    if rounded < MIN_TICK:
        return rounded + tick_spacing
    if rounded > MAX_TICK:
        return rounded - tick_spacing
    return rounded


def encode_sqrt_ratio_x96(amount1: int, amount0: int) -> int:
    """
    Sqrt price for a reserve ratio, ``sqrt(amount1 / amount0) * 2^96``.

    Parameters
    ----------
    amount1 : int
        Numerator (token1 amount)
    amount0 : int
        Denominator (token0 amount), non-zero

    Returns
    -------
    int
        Q64.96 sqrt price, floor-rounded
    """
    if amount0 <= 0 or amount1 < 0:
        raise ValueError(f"Invalid reserve ratio {amount1}/{amount0}")
    return math.isqrt((amount1 << 192) // amount0)


def _check_spacing(tick_spacing: int) -> None:
    if tick_spacing <= 0:
        raise ValueError(f"Tick spacing must be positive, got {tick_spacing}")
