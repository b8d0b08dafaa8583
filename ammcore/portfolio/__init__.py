"""Tabular analytics over engine outputs."""

from ammcore.portfolio.analytics import (
    price_impact_table,
    ramp_schedule,
    position_amounts_table,
)

__all__ = [
    "price_impact_table",
    "ramp_schedule",
    "position_amounts_table",
]
