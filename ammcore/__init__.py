"""
ammcore - AMM pricing engines

Integer-exact pricing for concentrated liquidity (tick math, liquidity
amounts) and StableSwap pools (invariant, exchange, liquidity, A ramps).
"""

__version__ = "0.1.0"

from ammcore.errors import (
    AMMMathError,
    TickOutOfBounds,
    SqrtRatioOutOfBounds,
    InvalidBasket,
    RampError,
    ConvergenceFailed,
    Overflow,
    Underflow,
    DivisionByZero,
)
from ammcore.utils.config import Config
from ammcore.utils.tick_math import get_sqrt_ratio_at_tick, get_tick_at_sqrt_ratio
from ammcore.utils.liquidity_math import get_amounts_for_liquidity
from ammcore.utils.stableswap_math import get_d, get_y, exchange
from ammcore.utils.ramp import current_a, AmplificationState
from ammcore.amms.univ3 import ConcentratedLiquidityPool
from ammcore.amms.stableswap import StableSwapPool, StableSwapSnapshot

__all__ = [
    # Errors
    "AMMMathError",
    "TickOutOfBounds",
    "SqrtRatioOutOfBounds",
    "InvalidBasket",
    "RampError",
    "ConvergenceFailed",
    "Overflow",
    "Underflow",
    "DivisionByZero",
    "Config",
    # Pricing functions
    "get_sqrt_ratio_at_tick",
    "get_tick_at_sqrt_ratio",
    "get_amounts_for_liquidity",
    "get_d",
    "get_y",
    "exchange",
    "current_a",
    "AmplificationState",
    # Engines
    "ConcentratedLiquidityPool",
    "StableSwapPool",
    "StableSwapSnapshot",
]
