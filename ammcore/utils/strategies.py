"""
Range construction helpers.

Build tick ranges that a concentrated liquidity pool accepts (aligned to
its tick spacing and inside the usable tick bounds).
"""

import numpy as np
import pandas as pd
from typing import List, Tuple

from ammcore.utils.math import price_to_tick, tick_to_price
from ammcore.utils.tick_math import get_max_tick, get_min_tick, nearest_usable_tick


def align_tick_range(
    tick_lower: int,
    tick_upper: int,
    tick_spacing: int,
) -> Tuple[int, int]:
    """
    Widen a range outwards to the nearest multiples of ``tick_spacing``.

    The lower bound is floored and the upper bound ceiled, then both are
    clamped to the usable range. A degenerate result is widened by one
    spacing.

    Examples
    --------
    >>> align_tick_range(-95, 95, 60)
    (-120, 120)
    """
    if tick_lower > tick_upper:
        tick_lower, tick_upper = tick_upper, tick_lower

    lower = (tick_lower // tick_spacing) * tick_spacing
    upper = -((-tick_upper) // tick_spacing) * tick_spacing

    lower = max(lower, get_min_tick(tick_spacing))
    upper = min(upper, get_max_tick(tick_spacing))

    if upper <= lower:
        if upper + tick_spacing <= get_max_tick(tick_spacing):
            upper = lower + tick_spacing
        else:
            lower = upper - tick_spacing
    return lower, upper


def generate_tick_ranges(
    current_price: float = 1.0,
    tick_spacings: List[int] = None,
    range_widths_pct: List[float] = None,
    num_ranges: int = 10,
) -> List[Tuple[int, int]]:
    """
    Generate symmetric tick ranges around current price.

    Parameters
    ----------
    current_price : float
        Current price (token1/token0)
    tick_spacings : list of int, optional
        Tick spacings to use (depends on fee tier). Default: [60]
    range_widths_pct : list of float, optional
        Range widths as percentage of current price, e.g. 0.10 = ±10%.
        Default: [0.02, 0.05, 0.10, 0.20, 0.50]
    num_ranges : int
        Maximum number of ranges to return

    Returns
    -------
    list of tuple
        List of (tick_lower, tick_upper) pairs, each aligned to its spacing

    Examples
    --------
    >>> generate_tick_ranges(1.0, tick_spacings=[60], range_widths_pct=[0.10])
    [(-1080, 960)]
    """
    if tick_spacings is None:
        tick_spacings = [60]

    if range_widths_pct is None:
        range_widths_pct = [0.02, 0.05, 0.10, 0.20, 0.50]

    ranges = []

    for width_pct in range_widths_pct:
        if not 0 < width_pct < 1:
            raise ValueError(f"Range width must be in (0, 1), got {width_pct}")
        for spacing in tick_spacings:
            tick_lower = price_to_tick(current_price * (1 - width_pct))
            tick_upper = price_to_tick(current_price * (1 + width_pct))
            ranges.append(align_tick_range(tick_lower, tick_upper, spacing))

    return ranges[:num_ranges]


def generate_tick_ranges_asymmetric(
    current_price: float,
    lower_ranges_pct: List[float],
    upper_ranges_pct: List[float],
    tick_spacing: int = 60,
) -> List[Tuple[int, int]]:
    """
    Generate asymmetric tick ranges (e.g., for directional positions).

    Parameters
    ----------
    current_price : float
        Current price
    lower_ranges_pct : list of float
        Distance below current price (e.g., [0.05, 0.10])
    upper_ranges_pct : list of float
        Distance above current price (e.g., [0.20, 0.30])
    tick_spacing : int
        Tick spacing for rounding

    Returns
    -------
    list of tuple
        List of (tick_lower, tick_upper) pairs
    """
    ranges = []

    for lower_pct in lower_ranges_pct:
        for upper_pct in upper_ranges_pct:
            tick_lower = price_to_tick(current_price * (1 - lower_pct))
            tick_upper = price_to_tick(current_price * (1 + upper_pct))
            ranges.append(align_tick_range(tick_lower, tick_upper, tick_spacing))

    return ranges


def centered_tick_range(current_tick: int, half_width: int, tick_spacing: int) -> Tuple[int, int]:
    """Range of ``±half_width`` ticks around the usable tick nearest ``current_tick``."""
    center = nearest_usable_tick(current_tick, tick_spacing)
    return align_tick_range(center - half_width, center + half_width, tick_spacing)


def tick_range_grid(tick_lower: int, tick_upper: int, tick_spacing: int) -> np.ndarray:
    """Every initializable tick in ``[tick_lower, tick_upper]``."""
    lower, upper = align_tick_range(tick_lower, tick_upper, tick_spacing)
    return np.arange(lower, upper + 1, tick_spacing, dtype=np.int64)


def create_position_grid(
    tick_ranges: List[Tuple[int, int]],
    liquidities: List[int],
) -> pd.DataFrame:
    """
    Cross every tick range with every liquidity amount.

    Returns
    -------
    pd.DataFrame
        Columns: tick_lower, tick_upper, liquidity (object dtype, exact ints)
    """
    rows = []
    for tick_lower, tick_upper in tick_ranges:
        for liquidity in liquidities:
            rows.append({
                'tick_lower': tick_lower,
                'tick_upper': tick_upper,
                'liquidity': liquidity,
            })
    df = pd.DataFrame(rows, columns=['tick_lower', 'tick_upper', 'liquidity'])
    df['liquidity'] = df['liquidity'].astype(object)
    return df


def range_width_from_ticks(tick_lower: int, tick_upper: int) -> float:
    """
    Calculate range width in price terms.

    Returns
    -------
    float
        Range width relative to the mid price of the range
    """
    price_lower = tick_to_price(tick_lower)
    price_upper = tick_to_price(tick_upper)

    return (price_upper - price_lower) / ((price_upper + price_lower) / 2)
