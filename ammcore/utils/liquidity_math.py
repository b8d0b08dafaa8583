"""
Liquidity <-> token amount conversions for concentrated liquidity ranges.

Integer ports of the periphery LiquidityAmounts library and the core
SqrtPriceMath amount deltas. Prices are Q64.96 sqrt ratios.
"""

from typing import Tuple

from ammcore.errors import DivisionByZero
from ammcore.utils.fixed_point import (
    Q96,
    RESOLUTION,
    div_rounding_up,
    mul_div,
    mul_div_rounding_up,
    sub,
    to_uint128,
    to_uint256,
)
from ammcore.utils.tick_math import get_sqrt_ratio_at_tick


def _ordered(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int) -> Tuple[int, int]:
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        return sqrt_ratio_b_x96, sqrt_ratio_a_x96
    return sqrt_ratio_a_x96, sqrt_ratio_b_x96


def get_amount0_for_liquidity(
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int,
) -> int:
    """
    Token0 held by ``liquidity`` between two sqrt prices.

    amount0 = (L << 96) * (sqrtB - sqrtA) / sqrtB / sqrtA

    The two divisions are applied in sequence; merging them changes the
    rounding.

    Parameters
    ----------
    sqrt_ratio_a_x96 : int
        First sqrt price bound (Q64.96)
    sqrt_ratio_b_x96 : int
        Second sqrt price bound (Q64.96)
    liquidity : int
        Liquidity (uint128)

    Returns
    -------
    int
        Token0 amount, floor-rounded
    """
    sqrt_lo, sqrt_hi = _ordered(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    if sqrt_lo == 0:
        raise DivisionByZero("Lower sqrt ratio is zero")
    liquidity = to_uint128(liquidity)
    return mul_div(liquidity << RESOLUTION, sqrt_hi - sqrt_lo, sqrt_hi) // sqrt_lo


def get_amount1_for_liquidity(
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int,
) -> int:
    """
    Token1 held by ``liquidity`` between two sqrt prices.

    amount1 = L * (sqrtB - sqrtA) / 2^96
    """
    sqrt_lo, sqrt_hi = _ordered(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    liquidity = to_uint128(liquidity)
    return mul_div(liquidity, sqrt_hi - sqrt_lo, Q96)


def get_amounts_for_sqrt_ratios(
    sqrt_price_x96: int,
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int,
) -> Tuple[int, int]:
    """
    Token amounts for a position given sqrt price bounds.

    Parameters
    ----------
    sqrt_price_x96 : int
        Current pool sqrt price (Q64.96)
    sqrt_ratio_a_x96 : int
        Range bound (Q64.96)
    sqrt_ratio_b_x96 : int
        Range bound (Q64.96)
    liquidity : int
        Position liquidity

    Returns
    -------
    tuple
        (amount0, amount1)
    """
    sqrt_lo, sqrt_hi = _ordered(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    sqrt_price_x96 = to_uint256(sqrt_price_x96)

    if sqrt_price_x96 <= sqrt_lo:
        # Price below range, all token0
        return get_amount0_for_liquidity(sqrt_lo, sqrt_hi, liquidity), 0
    if sqrt_price_x96 < sqrt_hi:
        # Price in range
        amount0 = get_amount0_for_liquidity(sqrt_price_x96, sqrt_hi, liquidity)
        amount1 = get_amount1_for_liquidity(sqrt_lo, sqrt_price_x96, liquidity)
        return amount0, amount1
    # Price above range, all token1
    return 0, get_amount1_for_liquidity(sqrt_lo, sqrt_hi, liquidity)


def get_amounts_for_liquidity(
    sqrt_price_x96: int,
    tick_lower: int,
    tick_upper: int,
    liquidity: int,
) -> Tuple[int, int]:
    """
    Token amounts for a ``(tick_lower, tick_upper, liquidity)`` range.

    Raises
    ------
    TickOutOfBounds
        If either tick is outside the supported range
    """
    sqrt_ratio_a_x96 = get_sqrt_ratio_at_tick(tick_lower)
    sqrt_ratio_b_x96 = get_sqrt_ratio_at_tick(tick_upper)
    return get_amounts_for_sqrt_ratios(
        sqrt_price_x96, sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity
    )


def get_liquidity_for_amount0(
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    amount0: int,
) -> int:
    """Liquidity bought with ``amount0`` over a range. Floor-rounded, uint128."""
    sqrt_lo, sqrt_hi = _ordered(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    intermediate = mul_div(sqrt_lo, sqrt_hi, Q96)
    return to_uint128(mul_div(amount0, intermediate, sqrt_hi - sqrt_lo))


def get_liquidity_for_amount1(
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    amount1: int,
) -> int:
    """Liquidity bought with ``amount1`` over a range. Floor-rounded, uint128."""
    sqrt_lo, sqrt_hi = _ordered(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    return to_uint128(mul_div(amount1, Q96, sqrt_hi - sqrt_lo))


def get_liquidity_for_amounts(
    sqrt_price_x96: int,
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    amount0: int,
    amount1: int,
) -> int:
    """
    Maximum liquidity that ``amount0`` and ``amount1`` can fund.

    Inside the range the binding side wins (the smaller liquidity).

    Returns
    -------
    int
        Liquidity (uint128)
    """
    sqrt_lo, sqrt_hi = _ordered(sqrt_ratio_a_x96, sqrt_ratio_b_x96)

    if sqrt_price_x96 <= sqrt_lo:
        return get_liquidity_for_amount0(sqrt_lo, sqrt_hi, amount0)
    if sqrt_price_x96 < sqrt_hi:
        liquidity0 = get_liquidity_for_amount0(sqrt_price_x96, sqrt_hi, amount0)
        liquidity1 = get_liquidity_for_amount1(sqrt_lo, sqrt_price_x96, amount1)
        return min(liquidity0, liquidity1)
    return get_liquidity_for_amount1(sqrt_lo, sqrt_hi, amount1)


def get_amount0_delta(
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int,
    round_up: bool,
) -> int:
    """
    Token0 owed for moving ``liquidity`` across a sqrt price interval.

    Mint paths round up so the pool always receives at least the exact
    amount; burn paths round down.
    """
    sqrt_lo, sqrt_hi = _ordered(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    if sqrt_lo == 0:
        raise DivisionByZero("Lower sqrt ratio is zero")
    numerator1 = to_uint128(liquidity) << RESOLUTION
    numerator2 = sub(sqrt_hi, sqrt_lo)

    if round_up:
        return div_rounding_up(mul_div_rounding_up(numerator1, numerator2, sqrt_hi), sqrt_lo)
    return mul_div(numerator1, numerator2, sqrt_hi) // sqrt_lo


def get_amount1_delta(
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int,
    round_up: bool,
) -> int:
    """Token1 owed for moving ``liquidity`` across a sqrt price interval."""
    sqrt_lo, sqrt_hi = _ordered(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    liquidity = to_uint128(liquidity)

    if round_up:
        return mul_div_rounding_up(liquidity, sqrt_hi - sqrt_lo, Q96)
    return mul_div(liquidity, sqrt_hi - sqrt_lo, Q96)
