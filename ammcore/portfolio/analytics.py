"""
Pool analytics.

Tabulate engine outputs across a grid of inputs. Every number in the
tables is produced by the integer engines; floats appear only in derived
ratio columns meant for display.
"""

import numpy as np
import pandas as pd
from typing import Sequence

from ammcore.amms.stableswap import StableSwapPool, StableSwapSnapshot
from ammcore.utils.liquidity_math import get_amounts_for_sqrt_ratios
from ammcore.utils.math import sqrt_price_to_price
from ammcore.utils.fixed_point import A_PRECISION
from ammcore.utils.ramp import AmplificationState
from ammcore.utils.stableswap_math import normalize_amount
from ammcore.utils.tick_math import get_sqrt_ratio_at_tick


def price_impact_table(
    pool: StableSwapPool,
    snapshot: StableSwapSnapshot,
    i: int,
    j: int,
    amounts: Sequence[int],
    now: int = 0,
) -> pd.DataFrame:
    """
    Quote a series of swap sizes against one pool state.

    Parameters
    ----------
    pool : StableSwapPool
        Pool engine
    snapshot : StableSwapSnapshot
        Pool state, left unchanged
    i, j : int
        Input and output token indices
    amounts : sequence of int
        Input sizes in raw units of token ``i``
    now : int
        Time used for the amplification coefficient

    Returns
    -------
    pd.DataFrame
        Columns: dx, dy, fee (object dtype, exact ints), rate and
        price_impact (floats, in normalized units)
    """
    rows = []
    for dx in amounts:
        _, result = pool.exchange(snapshot, i, j, dx, now)
        dx_norm = normalize_amount(dx, pool.decimals[i])
        dy_norm = normalize_amount(result.dy, pool.decimals[j])
        rate = dy_norm / dx_norm if dx_norm else np.nan
        rows.append({
            'dx': dx,
            'dy': result.dy,
            'fee': result.dy_fee,
            'rate': rate,
        })

    df = pd.DataFrame(rows, columns=['dx', 'dy', 'fee', 'rate'])
    for col in ('dx', 'dy', 'fee'):
        df[col] = df[col].astype(object)
    # Impact relative to the best rate in the table
    best_rate = df['rate'].max() if len(df) else np.nan
    df['price_impact'] = 1.0 - df['rate'] / best_rate
    return df


def ramp_schedule(
    state: AmplificationState,
    start: int,
    end: int,
    n_points: int = 50,
) -> pd.DataFrame:
    """
    Sample the amplification coefficient over time.

    Returns
    -------
    pd.DataFrame
        Columns: time, A (scaled by A_PRECISION), A_unscaled (float)
    """
    if n_points < 2:
        raise ValueError(f"n_points must be at least 2, got {n_points}")
    if end <= start:
        raise ValueError(f"end {end} must be after start {start}")

    times = np.linspace(start, end, n_points).astype(np.int64)
    values = [state.current_a(int(t)) for t in times]
    return pd.DataFrame({
        'time': times,
        'A': values,
        'A_unscaled': np.asarray(values, dtype=np.float64) / A_PRECISION,
    })


def position_amounts_table(
    sqrt_prices_x96: Sequence[int],
    tick_lower: int,
    tick_upper: int,
    liquidity: int,
) -> pd.DataFrame:
    """
    Token amounts held by one range position across a grid of prices.

    Returns
    -------
    pd.DataFrame
        Columns: sqrt_price_x96, price, amount0, amount1
    """
    sqrt_lower = get_sqrt_ratio_at_tick(tick_lower)
    sqrt_upper = get_sqrt_ratio_at_tick(tick_upper)

    rows = []
    for sqrt_price_x96 in sqrt_prices_x96:
        sqrt_price_x96 = int(sqrt_price_x96)
        amount0, amount1 = get_amounts_for_sqrt_ratios(
            sqrt_price_x96, sqrt_lower, sqrt_upper, liquidity
        )
        rows.append({
            'sqrt_price_x96': sqrt_price_x96,
            'price': sqrt_price_to_price(sqrt_price_x96),
            'amount0': amount0,
            'amount1': amount1,
        })

    df = pd.DataFrame(rows, columns=['sqrt_price_x96', 'price', 'amount0', 'amount1'])
    for col in ('sqrt_price_x96', 'amount0', 'amount1'):
        df[col] = df[col].astype(object)
    return df
