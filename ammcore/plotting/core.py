"""
Core plotting functions using Plotly.

Interactive views of pool curves, amplification ramps and range
positions. Figure size and theme come from ``Config`` under ``plotting.*``.
"""

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots
from typing import Optional

from ammcore.amms.stableswap import StableSwapPool, StableSwapSnapshot
from ammcore.errors import InvalidBasket
from ammcore.utils.config import Config
from ammcore.utils.fixed_point import A_PRECISION
from ammcore.utils.stableswap_math import get_y_d


def _apply_layout(fig: go.Figure, title: str, height: Optional[int] = None) -> go.Figure:
    fig.update_layout(
        title=title,
        template=Config.get('plotting.theme'),
        width=Config.get('plotting.width'),
        height=height or Config.get('plotting.height'),
        hovermode='x unified',
    )
    return fig


def plot_stableswap_curve(
    pool: StableSwapPool,
    snapshot: StableSwapSnapshot,
    now: int = 0,
    n_points: int = 100,
) -> go.Figure:
    """
    Plot the invariant curve of a two-token pool.

    The curve is traced at the snapshot's D with normalized balances, next
    to the constant-sum and constant-product curves through the same D.

    Parameters
    ----------
    pool : StableSwapPool
        Two-token pool engine
    snapshot : StableSwapSnapshot
        Pool state; fixes D and marks the current point
    now : int
        Time used for the amplification coefficient
    n_points : int
        Number of samples along the curve

    Returns
    -------
    go.Figure
        Plotly figure
    """
    if pool.n_coins != 2:
        raise InvalidBasket(f"Curve plot needs a two-token pool, got {pool.n_coins}")

    amp = pool.get_a(now)
    xp = pool.xp(snapshot)
    d = pool.get_d(snapshot, now)
    if d == 0:
        raise InvalidBasket("Cannot plot the curve of an empty pool")

    if n_points < 2:
        raise ValueError(f"n_points must be at least 2, got {n_points}")
    # D exceeds int64, so the grid is built with Python ints
    lo, hi = d // 20, d * 19 // 20
    xs = [lo + (hi - lo) * k // (n_points - 1) for k in range(n_points)]
    ys = [get_y_d(amp, 1, [x, 0], d) for x in xs]

    x_norm = np.array([x / d for x in xs])
    y_norm = np.array([y / d for y in ys])

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=x_norm,
        y=y_norm,
        mode='lines',
        name=f'StableSwap (A={amp / A_PRECISION:g})',
        line=dict(color='#00D9FF', width=2),
    ))
    fig.add_trace(go.Scatter(
        x=x_norm,
        y=1.0 - x_norm,
        mode='lines',
        name='Constant sum',
        line=dict(color='#FF6B6B', width=1.5, dash='dash'),
    ))
    fig.add_trace(go.Scatter(
        x=x_norm,
        y=0.25 / x_norm,
        mode='lines',
        name='Constant product',
        line=dict(color='#4ECDC4', width=1.5, dash='dot'),
    ))
    fig.add_trace(go.Scatter(
        x=[xp[0] / d],
        y=[xp[1] / d],
        mode='markers',
        name='Current balances',
        marker=dict(size=10, color='#FFD93D'),
    ))

    _apply_layout(fig, 'StableSwap invariant curve')
    fig.update_xaxes(title_text='Token0 / D')
    fig.update_yaxes(title_text='Token1 / D', range=[0, 1.05])
    return fig


def plot_ramp_schedule(schedule: pd.DataFrame) -> go.Figure:
    """
    Plot an amplification ramp.

    Parameters
    ----------
    schedule : pd.DataFrame
        Output of :func:`ammcore.portfolio.analytics.ramp_schedule`

    Returns
    -------
    go.Figure
        Plotly figure
    """
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=schedule['time'],
        y=schedule['A_unscaled'],
        mode='lines',
        name='A',
        line=dict(color='#00D9FF', width=2),
    ))
    _apply_layout(fig, 'Amplification coefficient')
    fig.update_xaxes(title_text='Time (s)')
    fig.update_yaxes(title_text='A')
    return fig


def plot_position_amounts(table: pd.DataFrame) -> go.Figure:
    """
    Plot token amounts of a range position against price.

    Parameters
    ----------
    table : pd.DataFrame
        Output of :func:`ammcore.portfolio.analytics.position_amounts_table`

    Returns
    -------
    go.Figure
        Plotly figure with one subplot per token
    """
    fig = make_subplots(
        rows=2,
        cols=1,
        shared_xaxes=True,
        subplot_titles=('Token0', 'Token1'),
        vertical_spacing=0.1,
    )

    fig.add_trace(
        go.Scatter(
            x=table['price'],
            y=table['amount0'].astype(float),
            mode='lines',
            name='Amount0',
            line=dict(color='#FF6B6B', width=1.5),
        ),
        row=1, col=1,
    )
    fig.add_trace(
        go.Scatter(
            x=table['price'],
            y=table['amount1'].astype(float),
            mode='lines',
            name='Amount1',
            line=dict(color='#4ECDC4', width=1.5),
        ),
        row=2, col=1,
    )

    _apply_layout(fig, 'Position composition', height=800)
    fig.update_xaxes(title_text='Price (token1/token0)', row=2, col=1)
    return fig
