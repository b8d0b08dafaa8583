"""Integer math libraries and helpers."""

from ammcore.utils.config import Config
from ammcore.utils.math import (
    sqrt_price_to_price,
    price_to_sqrt_price,
    tick_to_price,
    price_to_tick,
)
from ammcore.utils.strategies import (
    align_tick_range,
    generate_tick_ranges,
    generate_tick_ranges_asymmetric,
    centered_tick_range,
    tick_range_grid,
    create_position_grid,
    range_width_from_ticks,
)

__all__ = [
    "Config",
    # Display conversions
    "sqrt_price_to_price",
    "price_to_sqrt_price",
    "tick_to_price",
    "price_to_tick",
    # Range helpers
    "align_tick_range",
    "generate_tick_ranges",
    "generate_tick_ranges_asymmetric",
    "centered_tick_range",
    "tick_range_grid",
    "create_position_grid",
    "range_width_from_ticks",
]
