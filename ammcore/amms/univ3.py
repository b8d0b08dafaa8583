"""
Concentrated liquidity (Uniswap v3 style) pool engine.

Wraps the integer TickMath and LiquidityMath functions with a pool's fee
tier and tick spacing.
"""

import logging
from typing import Dict, Any, Optional, Tuple

from ammcore.amms.base import BasePoolEngine
from ammcore.amms.enums import RangePosition
from ammcore.errors import TickOutOfBounds
from ammcore.utils.config import Config
from ammcore.utils.liquidity_math import (
    get_amount0_delta,
    get_amount1_delta,
    get_amounts_for_sqrt_ratios,
    get_liquidity_for_amounts,
)
from ammcore.utils.strategies import align_tick_range
from ammcore.utils.tick_math import (
    get_max_tick,
    get_min_tick,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
)


logger = logging.getLogger(__name__)


class ConcentratedLiquidityPool(BasePoolEngine):
    """
    Pricing engine for a concentrated liquidity pool.

    Parameters
    ----------
    fee : int
        Fee tier in hundredths of a bip (3000 = 0.3%)
    tick_spacing : int, optional
        Tick spacing; looked up from ``defaults.v3_tick_spacing`` when omitted

    Examples
    --------
    >>> pool = ConcentratedLiquidityPool(fee=3000)
    >>> pool.tick_spacing
    60
    """

    name = "univ3"

    def __init__(self, fee: int = 3000, tick_spacing: Optional[int] = None):
        if tick_spacing is None:
            spacings = Config.get("defaults.v3_tick_spacing", {})
            if fee not in spacings:
                raise ValueError(f"No default tick spacing for fee tier {fee}")
            tick_spacing = spacings[fee]
        if tick_spacing <= 0:
            raise ValueError(f"Tick spacing must be positive, got {tick_spacing}")

        self.fee = fee
        self.tick_spacing = tick_spacing

    def describe(self) -> Dict[str, Any]:
        return {"fee": self.fee, "tick_spacing": self.tick_spacing}

    def usable_tick_range(self) -> Tuple[int, int]:
        """Lowest and highest tick a position may use."""
        return get_min_tick(self.tick_spacing), get_max_tick(self.tick_spacing)

    def align_range(self, tick_lower: int, tick_upper: int) -> Tuple[int, int]:
        """Widen an arbitrary range to the nearest valid one for this pool."""
        return align_tick_range(tick_lower, tick_upper, self.tick_spacing)

    def check_range(self, tick_lower: int, tick_upper: int) -> None:
        """
        Validate a position range.

        Raises
        ------
        ValueError
            If the bounds are unordered or not multiples of the spacing
        TickOutOfBounds
            If a bound is outside the usable range
        """
        if tick_lower >= tick_upper:
            raise ValueError(f"tick_lower {tick_lower} must be below tick_upper {tick_upper}")
        min_tick, max_tick = self.usable_tick_range()
        if tick_lower < min_tick:
            raise TickOutOfBounds(tick_lower)
        if tick_upper > max_tick:
            raise TickOutOfBounds(tick_upper)
        for tick in (tick_lower, tick_upper):
            if tick % self.tick_spacing:
                raise ValueError(f"Tick {tick} is not a multiple of spacing {self.tick_spacing}")

    def position_status(
        self,
        sqrt_price_x96: int,
        tick_lower: int,
        tick_upper: int,
    ) -> RangePosition:
        """Where ``sqrt_price_x96`` falls relative to the range."""
        sqrt_lower = get_sqrt_ratio_at_tick(tick_lower)
        sqrt_upper = get_sqrt_ratio_at_tick(tick_upper)
        if sqrt_price_x96 <= sqrt_lower:
            return RangePosition.BELOW
        if sqrt_price_x96 < sqrt_upper:
            return RangePosition.IN_RANGE
        return RangePosition.ABOVE

    def amounts_for_position(
        self,
        sqrt_price_x96: int,
        tick_lower: int,
        tick_upper: int,
        liquidity: int,
    ) -> Tuple[int, int]:
        """
        Token amounts currently represented by a position (floor-rounded).

        Returns
        -------
        tuple
            (amount0, amount1)
        """
        self.check_range(tick_lower, tick_upper)
        return get_amounts_for_sqrt_ratios(
            sqrt_price_x96,
            get_sqrt_ratio_at_tick(tick_lower),
            get_sqrt_ratio_at_tick(tick_upper),
            liquidity,
        )

    def liquidity_for_amounts(
        self,
        sqrt_price_x96: int,
        tick_lower: int,
        tick_upper: int,
        amount0: int,
        amount1: int,
    ) -> int:
        """Largest liquidity ``amount0`` and ``amount1`` can fund in the range."""
        self.check_range(tick_lower, tick_upper)
        return get_liquidity_for_amounts(
            sqrt_price_x96,
            get_sqrt_ratio_at_tick(tick_lower),
            get_sqrt_ratio_at_tick(tick_upper),
            amount0,
            amount1,
        )

    def _modify_position_amounts(
        self,
        sqrt_price_x96: int,
        tick_lower: int,
        tick_upper: int,
        liquidity: int,
        round_up: bool,
    ) -> Tuple[int, int]:
        self.check_range(tick_lower, tick_upper)
        current_tick = get_tick_at_sqrt_ratio(sqrt_price_x96)
        sqrt_lower = get_sqrt_ratio_at_tick(tick_lower)
        sqrt_upper = get_sqrt_ratio_at_tick(tick_upper)

        if current_tick < tick_lower:
            amount0 = get_amount0_delta(sqrt_lower, sqrt_upper, liquidity, round_up)
            return amount0, 0
        if current_tick < tick_upper:
            amount0 = get_amount0_delta(sqrt_price_x96, sqrt_upper, liquidity, round_up)
            amount1 = get_amount1_delta(sqrt_lower, sqrt_price_x96, liquidity, round_up)
            return amount0, amount1
        amount1 = get_amount1_delta(sqrt_lower, sqrt_upper, liquidity, round_up)
        return 0, amount1

    def mint_amounts(
        self,
        sqrt_price_x96: int,
        tick_lower: int,
        tick_upper: int,
        liquidity: int,
    ) -> Tuple[int, int]:
        """
        Amounts the pool requires to mint ``liquidity``, rounded up.

        The range side is decided by the current tick, as in the pool
        contract, rather than by comparing sqrt prices.
        """
        amounts = self._modify_position_amounts(
            sqrt_price_x96, tick_lower, tick_upper, liquidity, round_up=True
        )
        logger.debug("mint [%s, %s] L=%s -> %s", tick_lower, tick_upper, liquidity, amounts)
        return amounts

    def burn_amounts(
        self,
        sqrt_price_x96: int,
        tick_lower: int,
        tick_upper: int,
        liquidity: int,
    ) -> Tuple[int, int]:
        """Amounts released by burning ``liquidity``, rounded down."""
        return self._modify_position_amounts(
            sqrt_price_x96, tick_lower, tick_upper, liquidity, round_up=False
        )
