"""Plotly visualizations."""

from ammcore.plotting.core import (
    plot_stableswap_curve,
    plot_ramp_schedule,
    plot_position_amounts,
)

__all__ = [
    "plot_stableswap_curve",
    "plot_ramp_schedule",
    "plot_position_amounts",
]
