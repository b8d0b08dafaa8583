"""
StableSwap (Curve style) pool engine.

The pool object carries immutable parameters (token decimals, fees,
amplification ramp). Balances live in a ``StableSwapSnapshot`` the caller
owns; every operation takes a snapshot and returns a new one.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Any, Optional, Sequence, Tuple

from ammcore.amms.base import BasePoolEngine
from ammcore.amms.enums import RampDirection
from ammcore.errors import InvalidBasket
from ammcore.utils import stableswap_math as ssm
from ammcore.utils.config import Config
from ammcore.utils.fixed_point import sub
from ammcore.utils.ramp import AmplificationState, ramp_a, stop_ramp_a


logger = logging.getLogger(__name__)

MAX_FEE = 5 * 10**9  # 50%
MAX_ADMIN_FEE = 10**10  # 100%


@dataclass(frozen=True)
class StableSwapSnapshot:
    """
    Pool state handed to and returned from the engine.

    Attributes
    ----------
    balances : tuple of int
        Raw token balances available to liquidity providers
    lp_supply : int
        Outstanding LP tokens
    admin_balances : tuple of int
        Fees earmarked for the admin, held by the pool but outside ``balances``
    """

    balances: Tuple[int, ...]
    lp_supply: int = 0
    admin_balances: Tuple[int, ...] = field(default=())

    def __post_init__(self):
        object.__setattr__(self, "balances", tuple(self.balances))
        if not self.admin_balances:
            object.__setattr__(self, "admin_balances", (0,) * len(self.balances))
        else:
            object.__setattr__(self, "admin_balances", tuple(self.admin_balances))
        if len(self.admin_balances) != len(self.balances):
            raise InvalidBasket("admin_balances and balances differ in length")

    @property
    def n_coins(self) -> int:
        return len(self.balances)

    @classmethod
    def empty(cls, n_coins: int) -> "StableSwapSnapshot":
        return cls(balances=(0,) * n_coins)


def _add_fees(admin_balances: Sequence[int], fees: Sequence[int]) -> Tuple[int, ...]:
    return tuple(a + f for a, f in zip(admin_balances, fees))


class StableSwapPool(BasePoolEngine):
    """
    Pricing engine for a StableSwap pool of 2-4 tokens.

    Parameters
    ----------
    decimals : sequence of int
        Decimals of each token, in pool order
    amplification : AmplificationState or int
        Ramp state, or a constant unscaled A
    fee : int, optional
        Swap fee over 1e10; ``defaults.stableswap_fee`` when omitted
    admin_fee : int, optional
        Admin share of fees over 1e10; ``defaults.stableswap_admin_fee``
        when omitted

    Examples
    --------
    >>> pool = StableSwapPool(decimals=[18, 6], amplification=100)
    >>> snapshot, minted = pool.add_liquidity(
    ...     StableSwapSnapshot.empty(2), [10**24, 10**12], now=0)
    """

    name = "stableswap"

    def __init__(
        self,
        decimals: Sequence[int],
        amplification,
        fee: Optional[int] = None,
        admin_fee: Optional[int] = None,
    ):
        if not ssm.MIN_COINS <= len(decimals) <= ssm.MAX_COINS:
            raise InvalidBasket(
                f"Pool must hold {ssm.MIN_COINS}-{ssm.MAX_COINS} tokens, got {len(decimals)}"
            )
        if isinstance(amplification, int):
            amplification = AmplificationState.constant(amplification)
        if fee is None:
            fee = Config.get("defaults.stableswap_fee")
        if admin_fee is None:
            admin_fee = Config.get("defaults.stableswap_admin_fee")
        if not 0 <= fee <= MAX_FEE:
            raise ValueError(f"Fee {fee} outside [0, {MAX_FEE}]")
        if not 0 <= admin_fee <= MAX_ADMIN_FEE:
            raise ValueError(f"Admin fee {admin_fee} outside [0, {MAX_ADMIN_FEE}]")

        self.decimals = tuple(decimals)
        self.amplification = amplification
        self.fee = fee
        self.admin_fee = admin_fee

    @property
    def n_coins(self) -> int:
        return len(self.decimals)

    def describe(self) -> Dict[str, Any]:
        return {
            "decimals": self.decimals,
            "fee": self.fee,
            "admin_fee": self.admin_fee,
            "amplification": self.amplification,
        }

    def _check_snapshot(self, snapshot: StableSwapSnapshot) -> None:
        if snapshot.n_coins != self.n_coins:
            raise InvalidBasket(
                f"Snapshot has {snapshot.n_coins} tokens, pool has {self.n_coins}"
            )

    # Amplification

    def get_a(self, now: int) -> int:
        """Current A including A_PRECISION."""
        return self.amplification.current_a(now)

    def ramp_direction(self, now: int) -> RampDirection:
        state = self.amplification
        if not state.is_ramping(now):
            return RampDirection.NONE
        return RampDirection.UP if state.future_a > state.initial_a else RampDirection.DOWN

    def ramp_a(self, future_a: int, future_time: int, now: int) -> "StableSwapPool":
        """Return a pool ramping towards ``future_a`` (unscaled) by ``future_time``."""
        return self._with_amplification(
            ramp_a(self.amplification, future_a, future_time, now)
        )

    def stop_ramp_a(self, now: int) -> "StableSwapPool":
        """Return a pool with A frozen at its current value."""
        return self._with_amplification(stop_ramp_a(self.amplification, now))

    def _with_amplification(self, state: AmplificationState) -> "StableSwapPool":
        return StableSwapPool(self.decimals, state, self.fee, self.admin_fee)

    # Views

    def xp(self, snapshot: StableSwapSnapshot):
        """Balances normalized to 18 decimals."""
        self._check_snapshot(snapshot)
        return ssm.normalize(snapshot.balances, self.decimals)

    def get_d(self, snapshot: StableSwapSnapshot, now: int) -> int:
        return ssm.get_d(self.xp(snapshot), self.get_a(now))

    def get_virtual_price(self, snapshot: StableSwapSnapshot, now: int) -> int:
        """D per LP token, scaled by 1e18."""
        return ssm.get_virtual_price(self.xp(snapshot), self.get_a(now), snapshot.lp_supply)

    def get_dy(self, snapshot: StableSwapSnapshot, i: int, j: int, dx: int, now: int) -> int:
        """Output of swapping ``dx`` of token ``i`` for token ``j``, net of fee."""
        self._check_snapshot(snapshot)
        dy, _ = ssm.get_dy(
            i, j, dx, snapshot.balances, self.get_a(now), self.fee, self.decimals
        )
        return dy

    def calc_token_amount(
        self,
        snapshot: StableSwapSnapshot,
        amounts: Sequence[int],
        deposit: bool,
        now: int,
    ) -> int:
        """LP tokens for a deposit or withdrawal, fees not included."""
        self._check_snapshot(snapshot)
        return ssm.calc_token_amount(
            amounts, deposit, snapshot.balances, self.get_a(now),
            snapshot.lp_supply, self.decimals,
        )

    def calc_withdraw_one_coin(
        self,
        snapshot: StableSwapSnapshot,
        lp_amount: int,
        i: int,
        now: int,
    ) -> int:
        self._check_snapshot(snapshot)
        dy, _ = ssm.calc_withdraw_one_coin(
            lp_amount, i, snapshot.balances, self.get_a(now),
            snapshot.lp_supply, self.fee, self.decimals,
        )
        return dy

    # State transitions

    def exchange(
        self,
        snapshot: StableSwapSnapshot,
        i: int,
        j: int,
        dx: int,
        now: int,
        min_dy: int = 0,
    ) -> Tuple[StableSwapSnapshot, ssm.ExchangeResult]:
        """
        Swap ``dx`` of token ``i`` for token ``j``.

        Returns
        -------
        tuple
            (new snapshot, ExchangeResult)

        Raises
        ------
        ValueError
            If the output is below ``min_dy``
        """
        self._check_snapshot(snapshot)
        result = ssm.exchange(
            i, j, dx, snapshot.balances, self.get_a(now),
            self.fee, self.admin_fee, self.decimals,
        )
        if result.dy < min_dy:
            raise ValueError(f"Exchange resulted in fewer coins than expected: {result.dy} < {min_dy}")

        admin_fees = [0] * self.n_coins
        admin_fees[j] = result.dy_admin_fee
        new_snapshot = replace(
            snapshot,
            balances=result.balances,
            admin_balances=_add_fees(snapshot.admin_balances, admin_fees),
        )
        logger.debug("exchange %s->%s dx=%s dy=%s fee=%s", i, j, dx, result.dy, result.dy_fee)
        return new_snapshot, result

    def add_liquidity(
        self,
        snapshot: StableSwapSnapshot,
        amounts: Sequence[int],
        now: int,
        min_mint_amount: int = 0,
    ) -> Tuple[StableSwapSnapshot, int]:
        """
        Deposit ``amounts``.

        Returns
        -------
        tuple
            (new snapshot, LP tokens minted)
        """
        self._check_snapshot(snapshot)
        result = ssm.add_liquidity(
            amounts, snapshot.balances, self.get_a(now), snapshot.lp_supply,
            self.fee, self.admin_fee, self.decimals,
        )
        if result.lp_amount < min_mint_amount:
            raise ValueError(f"Minted {result.lp_amount} LP tokens, expected {min_mint_amount}")

        new_snapshot = StableSwapSnapshot(
            balances=result.balances,
            lp_supply=snapshot.lp_supply + result.lp_amount,
            admin_balances=_add_fees(snapshot.admin_balances, result.admin_fees),
        )
        return new_snapshot, result.lp_amount

    def remove_liquidity(
        self,
        snapshot: StableSwapSnapshot,
        lp_amount: int,
        min_amounts: Optional[Sequence[int]] = None,
    ) -> Tuple[StableSwapSnapshot, Tuple[int, ...]]:
        """Burn ``lp_amount`` for a proportional share of every token."""
        self._check_snapshot(snapshot)
        amounts, balances = ssm.remove_liquidity(lp_amount, snapshot.balances, snapshot.lp_supply)
        if min_amounts is not None:
            for k, (amount, minimum) in enumerate(zip(amounts, min_amounts)):
                if amount < minimum:
                    raise ValueError(f"Withdrawal of token {k} is {amount}, expected {minimum}")

        new_snapshot = replace(
            snapshot,
            balances=balances,
            lp_supply=sub(snapshot.lp_supply, lp_amount),
        )
        return new_snapshot, amounts

    def remove_liquidity_imbalance(
        self,
        snapshot: StableSwapSnapshot,
        amounts: Sequence[int],
        now: int,
        max_burn_amount: Optional[int] = None,
    ) -> Tuple[StableSwapSnapshot, int]:
        """
        Withdraw exact ``amounts``.

        Returns
        -------
        tuple
            (new snapshot, LP tokens burned)
        """
        self._check_snapshot(snapshot)
        result = ssm.remove_liquidity_imbalance(
            amounts, snapshot.balances, self.get_a(now), snapshot.lp_supply,
            self.fee, self.admin_fee, self.decimals,
        )
        if max_burn_amount is not None and result.lp_amount > max_burn_amount:
            raise ValueError(f"Burn of {result.lp_amount} exceeds {max_burn_amount}")

        new_snapshot = StableSwapSnapshot(
            balances=result.balances,
            lp_supply=sub(snapshot.lp_supply, result.lp_amount),
            admin_balances=_add_fees(snapshot.admin_balances, result.admin_fees),
        )
        return new_snapshot, result.lp_amount

    def remove_liquidity_one_coin(
        self,
        snapshot: StableSwapSnapshot,
        lp_amount: int,
        i: int,
        now: int,
        min_amount: int = 0,
    ) -> Tuple[StableSwapSnapshot, ssm.WithdrawOneResult]:
        """Burn ``lp_amount`` and receive only token ``i``."""
        self._check_snapshot(snapshot)
        result = ssm.remove_liquidity_one_coin(
            lp_amount, i, snapshot.balances, self.get_a(now), snapshot.lp_supply,
            self.fee, self.admin_fee, self.decimals,
        )
        if result.dy < min_amount:
            raise ValueError(f"Withdrawal is {result.dy}, expected {min_amount}")

        admin_fees = [0] * self.n_coins
        admin_fees[i] = result.dy_admin_fee
        new_snapshot = StableSwapSnapshot(
            balances=result.balances,
            lp_supply=sub(snapshot.lp_supply, lp_amount),
            admin_balances=_add_fees(snapshot.admin_balances, admin_fees),
        )
        return new_snapshot, result

    def withdraw_admin_fees(
        self,
        snapshot: StableSwapSnapshot,
    ) -> Tuple[StableSwapSnapshot, Tuple[int, ...]]:
        """Release the earmarked admin fees. LP balances are untouched."""
        self._check_snapshot(snapshot)
        fees = snapshot.admin_balances
        return replace(snapshot, admin_balances=(0,) * self.n_coins), fees

