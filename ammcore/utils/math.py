"""
Human-readable price conversions.

Floating-point helpers for reporting and plotting. Pricing code must use
the integer modules (tick_math, liquidity_math, stableswap_math); values
produced here never flow back into them except through the exact
integer encoders below.
"""

from fractions import Fraction
from typing import Union

import numpy as np

from ammcore.utils.fixed_point import Q96
from ammcore.utils.tick_math import encode_sqrt_ratio_x96, get_tick_at_sqrt_ratio


def sqrt_price_to_price(
    sqrt_price_x96: int,
    decimals0: int = 18,
    decimals1: int = 18,
) -> float:
    """
    Convert a Q64.96 sqrt price to a token1/token0 price.

    Parameters
    ----------
    sqrt_price_x96 : int
        Square root of price in Q96 fixed point format
    decimals0 : int
        Token0 decimals
    decimals1 : int
        Token1 decimals

    Returns
    -------
    float
        Price (token1/token0) in whole-token units

    Examples
    --------
    >>> sqrt_price_to_price(79228162514264337593543950336)
    1.0
    """
    ratio = Fraction(sqrt_price_x96 * sqrt_price_x96, Q96 * Q96)
    return float(ratio * Fraction(10) ** (decimals0 - decimals1))


def price_to_sqrt_price(
    price: Union[float, Fraction],
    decimals0: int = 18,
    decimals1: int = 18,
) -> int:
    """
    Convert a token1/token0 price to a Q64.96 sqrt price.

    The float is converted exactly to a fraction first, so the result
    depends only on the float's binary value.

    Examples
    --------
    >>> price_to_sqrt_price(1.0)
    79228162514264337593543950336
    """
    if price <= 0:
        raise ValueError(f"Price must be positive, got {price}")
    ratio = Fraction(price) * Fraction(10) ** (decimals1 - decimals0)
    return encode_sqrt_ratio_x96(ratio.numerator, ratio.denominator)


def tick_to_price(tick: int) -> float:
    """
    Convert tick to price, ``1.0001^tick``.

    Examples
    --------
    >>> tick_to_price(0)
    1.0
    """
    return 1.0001 ** tick


def price_to_tick(price: float, decimals0: int = 18, decimals1: int = 18) -> int:
    """
    Greatest tick whose price does not exceed ``price``.

    Goes through the integer TickMath, so exact tick boundaries map to
    their own tick.

    Examples
    --------
    >>> price_to_tick(1.0)
    0
    """
    return get_tick_at_sqrt_ratio(price_to_sqrt_price(price, decimals0, decimals1))


def ticks_to_prices(ticks: np.ndarray) -> np.ndarray:
    """Vectorized :func:`tick_to_price` for plotting grids."""
    return np.power(1.0001, np.asarray(ticks, dtype=np.float64))


def sqrt_prices_to_prices(sqrt_prices_x96) -> np.ndarray:
    """Vectorized :func:`sqrt_price_to_price` (default decimals)."""
    return np.array([sqrt_price_to_price(int(p)) for p in sqrt_prices_x96], dtype=np.float64)
