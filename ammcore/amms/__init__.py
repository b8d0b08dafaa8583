"""Pool engines (concentrated liquidity, StableSwap)."""

from ammcore.amms.base import BasePoolEngine
from ammcore.amms.enums import RangePosition, RampDirection
from ammcore.amms.univ3 import ConcentratedLiquidityPool
from ammcore.amms.stableswap import StableSwapPool, StableSwapSnapshot

__all__ = [
    "BasePoolEngine",
    "RangePosition",
    "RampDirection",
    "ConcentratedLiquidityPool",
    "StableSwapPool",
    "StableSwapSnapshot",
]
