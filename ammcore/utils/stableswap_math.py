"""
StableSwap invariant, exchange and liquidity math.

Integer port of the Curve/Saddle stable pool arithmetic. Functions work on
balance snapshots (sequences of ints) and return new tuples; nothing is
mutated in place.

Conventions:
- ``xp`` are balances normalized to 18 decimals.
- ``amp`` is the amplification coefficient multiplied by ``A_PRECISION``.
- ``fee`` and ``admin_fee`` are fractions of ``FEE_DENOMINATOR`` (1e10).
- Every ``- 1`` / ``+ 1`` on an amount rounds in favour of the pool.
"""

import logging
from typing import List, NamedTuple, Optional, Sequence, Tuple

from ammcore.errors import ConvergenceFailed, InvalidBasket
from ammcore.utils.fixed_point import (
    A_PRECISION,
    FEE_DENOMINATOR,
    WAD,
    abs_diff,
    div,
    sub,
    to_uint256,
)


logger = logging.getLogger(__name__)

MAX_ITERATIONS = 255
CONVERGENCE_TOLERANCE = 1
MIN_COINS = 2
MAX_COINS = 4
POOL_PRECISION_DECIMALS = 18


class ExchangeResult(NamedTuple):
    """Outcome of a swap. Amounts are in raw token units."""

    dy: int  # paid out to the trader, net of fee
    dy_fee: int  # total fee kept by the pool
    dy_admin_fee: int  # part of dy_fee earmarked for the admin
    balances: Tuple[int, ...]  # pool balances after the swap, admin fee excluded


class LiquidityResult(NamedTuple):
    """Outcome of an imbalanced deposit or withdrawal."""

    lp_amount: int  # LP tokens minted (deposit) or burned (withdrawal)
    fees: Tuple[int, ...]  # imbalance fee charged per token
    admin_fees: Tuple[int, ...]  # admin share of each fee
    balances: Tuple[int, ...]


class WithdrawOneResult(NamedTuple):
    dy: int
    dy_fee: int
    dy_admin_fee: int
    balances: Tuple[int, ...]


# Normalization


def normalize_amount(amount: int, decimals: int) -> int:
    """
    Scale a raw token amount to 18 decimals.

    Exact for ``decimals <= 18``; floor division (lossy) above that.
    """
    if decimals <= POOL_PRECISION_DECIMALS:
        return amount * 10 ** (POOL_PRECISION_DECIMALS - decimals)
    return amount // 10 ** (decimals - POOL_PRECISION_DECIMALS)


def denormalize_amount(amount: int, decimals: int) -> int:
    """Scale an 18-decimal amount back to raw token units (floor for ``decimals <= 18``)."""
    if decimals <= POOL_PRECISION_DECIMALS:
        return amount // 10 ** (POOL_PRECISION_DECIMALS - decimals)
    return amount * 10 ** (decimals - POOL_PRECISION_DECIMALS)


def normalize(balances: Sequence[int], decimals: Optional[Sequence[int]] = None) -> List[int]:
    """
    Normalize a basket of raw balances to 18 decimals.

    Parameters
    ----------
    balances : sequence of int
        Raw balances
    decimals : sequence of int, optional
        Token decimals; 18 for every token when omitted

    Returns
    -------
    list of int
        ``xp``
    """
    if decimals is None:
        return [to_uint256(b) for b in balances]
    if len(decimals) != len(balances):
        raise InvalidBasket(
            f"Got {len(balances)} balances but {len(decimals)} decimals"
        )
    return [normalize_amount(to_uint256(b), d) for b, d in zip(balances, decimals)]


def denormalize(xp: Sequence[int], decimals: Optional[Sequence[int]] = None) -> List[int]:
    """Inverse of :func:`normalize`, floor-rounded."""
    if decimals is None:
        return list(xp)
    if len(decimals) != len(xp):
        raise InvalidBasket(f"Got {len(xp)} balances but {len(decimals)} decimals")
    return [denormalize_amount(x, d) for x, d in zip(xp, decimals)]


def _decimals_for(n: int, decimals: Optional[Sequence[int]]) -> Sequence[int]:
    return decimals if decimals is not None else (POOL_PRECISION_DECIMALS,) * n


def _check_basket(xp: Sequence[int]) -> int:
    n = len(xp)
    if not MIN_COINS <= n <= MAX_COINS:
        raise InvalidBasket(f"Basket must hold {MIN_COINS}-{MAX_COINS} tokens, got {n}")
    return n


def _check_index(index: int, n: int, name: str) -> None:
    if not 0 <= index < n:
        raise InvalidBasket(f"Token index {name}={index} out of range for {n} tokens")


def _check_amp(amp: int) -> None:
    if amp <= 0:
        raise InvalidBasket(f"Amplification must be positive, got {amp}")


def _check_liquid(d: int) -> None:
    if d == 0:
        raise InvalidBasket("Pool holds no liquidity")


def imbalance_fee(fee: int, n: int) -> int:
    """Per-token fee charged on the deviation from the ideal balance."""
    return fee * n // (4 * (n - 1))


# Invariant


def get_d(xp: Sequence[int], amp: int) -> int:
    """
    StableSwap invariant D for normalized balances.

    Newton-Raphson on
    ``A·n^n·S + D = A·D·n^n + D^(n+1) / (n^n·Πx_i)``
    starting from ``D = S``.

    Parameters
    ----------
    xp : sequence of int
        Normalized balances (2-4 tokens)
    amp : int
        Amplification coefficient times A_PRECISION

    Returns
    -------
    int
        D, zero for an empty pool

    Raises
    ------
    ConvergenceFailed
        If D does not settle within 255 iterations
    """
    n = _check_basket(xp)
    _check_amp(amp)

    s = 0
    for x in xp:
        s += to_uint256(x)
    if s == 0:
        return 0

    d = s
    ann = amp * n
    for iteration in range(MAX_ITERATIONS):
        d_p = d
        for x in xp:
            # +1 keeps an empty balance from dividing by zero
            d_p = to_uint256(d_p * d) // (x * n + 1)
        d_prev = d
        numerator = to_uint256((ann * s // A_PRECISION + d_p * n) * d)
        denominator = (ann - A_PRECISION) * d // A_PRECISION + (n + 1) * d_p
        d = div(numerator, denominator)

        if abs_diff(d, d_prev) <= CONVERGENCE_TOLERANCE:
            logger.debug("get_d converged after %d iterations", iteration + 1)
            return d

    logger.warning("get_d failed to converge: xp=%s amp=%s", list(xp), amp)
    raise ConvergenceFailed("get_d", MAX_ITERATIONS)


def _solve_y(c: int, b: int, d: int, solver: str) -> int:
    """Iterate y = (y^2 + c) / (2y + b - D) from y = D."""
    y = d
    for iteration in range(MAX_ITERATIONS):
        y_prev = y
        y = div(y * y + c, sub(2 * y + b, d))
        if abs_diff(y, y_prev) <= CONVERGENCE_TOLERANCE:
            logger.debug("%s converged after %d iterations", solver, iteration + 1)
            return y

    logger.warning("%s failed to converge: c=%s b=%s D=%s", solver, c, b, d)
    raise ConvergenceFailed(solver, MAX_ITERATIONS)


def get_y(i: int, j: int, x: int, xp: Sequence[int], amp: int) -> int:
    """
    New balance of token ``j`` once token ``i`` holds ``x``.

    D is computed from the unmodified basket, so the swap moves along the
    current invariant curve.

    Parameters
    ----------
    i : int
        Index of the token whose balance is set to ``x``
    j : int
        Index of the token to solve for
    x : int
        New normalized balance of token ``i``
    xp : sequence of int
        Current normalized balances
    amp : int
        Amplification coefficient times A_PRECISION

    Returns
    -------
    int
        Normalized balance of token ``j``
    """
    n = _check_basket(xp)
    if i == j:
        raise InvalidBasket(f"Cannot swap token {i} for itself")
    _check_index(i, n, "i")
    _check_index(j, n, "j")

    d = get_d(xp, amp)
    ann = amp * n
    c = d
    s = 0
    for k in range(n):
        if k == i:
            x_k = x
        elif k != j:
            x_k = xp[k]
        else:
            continue
        s += x_k
        c = div(to_uint256(c * d), x_k * n)
    c = to_uint256(c * d * A_PRECISION) // (ann * n)
    b = s + d * A_PRECISION // ann
    return _solve_y(c, b, d, "get_y")


def get_y_d(amp: int, i: int, xp: Sequence[int], d: int) -> int:
    """
    Balance of token ``i`` that brings the basket to invariant ``d``.

    Other balances are taken from ``xp``; ``xp[i]`` is ignored.
    """
    n = _check_basket(xp)
    _check_index(i, n, "i")
    _check_amp(amp)

    ann = amp * n
    c = d
    s = 0
    for k in range(n):
        if k == i:
            continue
        s += xp[k]
        c = div(to_uint256(c * d), xp[k] * n)
    c = to_uint256(c * d * A_PRECISION) // (ann * n)
    b = s + d * A_PRECISION // ann
    return _solve_y(c, b, d, "get_y_d")


def get_virtual_price(xp: Sequence[int], amp: int, lp_supply: int) -> int:
    """Value of one LP token in normalized units, scaled by 1e18."""
    return div(get_d(xp, amp) * WAD, lp_supply)


# Swaps


def get_dy(
    i: int,
    j: int,
    dx: int,
    balances: Sequence[int],
    amp: int,
    fee: int,
    decimals: Optional[Sequence[int]] = None,
) -> Tuple[int, int]:
    """
    Quote a swap of ``dx`` of token ``i`` for token ``j``.

    Returns
    -------
    tuple
        (dy, dy_fee) in raw units of token ``j``
    """
    result = exchange(i, j, dx, balances, amp, fee, 0, decimals)
    return result.dy, result.dy_fee


def exchange(
    i: int,
    j: int,
    dx: int,
    balances: Sequence[int],
    amp: int,
    fee: int,
    admin_fee: int,
    decimals: Optional[Sequence[int]] = None,
) -> ExchangeResult:
    """
    Swap ``dx`` of token ``i`` for token ``j``.

    Parameters
    ----------
    i, j : int
        Input and output token indices
    dx : int
        Input amount in raw units of token ``i``
    balances : sequence of int
        Raw pool balances
    amp : int
        Amplification coefficient times A_PRECISION
    fee : int
        Swap fee over FEE_DENOMINATOR
    admin_fee : int
        Admin share of the swap fee over FEE_DENOMINATOR
    decimals : sequence of int, optional
        Token decimals; 18 for every token when omitted

    Returns
    -------
    ExchangeResult
        Output amount, fees and the new balance snapshot
    """
    n = len(balances)
    decimals = _decimals_for(n, decimals)
    xp = normalize(balances, decimals)
    _check_basket(xp)
    _check_index(i, n, "i")
    _check_index(j, n, "j")

    x = xp[i] + normalize_amount(to_uint256(dx), decimals[i])
    y = get_y(i, j, x, xp, amp)

    dy = sub(sub(xp[j], y), 1)
    dy_fee = dy * fee // FEE_DENOMINATOR
    dy_admin_fee = dy_fee * admin_fee // FEE_DENOMINATOR

    dy_out = denormalize_amount(dy - dy_fee, decimals[j])
    dy_fee_out = denormalize_amount(dy_fee, decimals[j])
    dy_admin_fee_out = denormalize_amount(dy_admin_fee, decimals[j])

    new_balances = list(balances)
    new_balances[i] = balances[i] + dx
    new_balances[j] = sub(balances[j], dy_out + dy_admin_fee_out)

    return ExchangeResult(
        dy=dy_out,
        dy_fee=dy_fee_out,
        dy_admin_fee=dy_admin_fee_out,
        balances=tuple(new_balances),
    )


# Liquidity


def calc_token_amount(
    amounts: Sequence[int],
    deposit: bool,
    balances: Sequence[int],
    amp: int,
    lp_supply: int,
    decimals: Optional[Sequence[int]] = None,
) -> int:
    """
    LP tokens minted or burned for ``amounts``, ignoring imbalance fees.

    Meant for slippage bounds, not as an exact quote.
    """
    n = len(balances)
    if len(amounts) != n:
        raise InvalidBasket(f"Got {len(amounts)} amounts for {n} tokens")
    d0 = get_d(normalize(balances, decimals), amp)

    new_balances = []
    for balance, amount in zip(balances, amounts):
        new_balances.append(balance + amount if deposit else sub(balance, amount))
    d1 = get_d(normalize(new_balances, decimals), amp)

    diff = sub(d1, d0) if deposit else sub(d0, d1)
    return div(diff * lp_supply, d0)


def _charge_imbalance(
    old_balances: Sequence[int],
    new_balances: Sequence[int],
    d0: int,
    d1: int,
    fee: int,
    admin_fee: int,
) -> Tuple[List[int], List[int], List[int], List[int]]:
    """
    Fee every token on its distance from the D-proportional balance.

    Returns the fees, their admin shares, the balances to store (admin
    share removed) and the balances used to recompute D (full fee removed).
    """
    n = len(old_balances)
    per_token_fee = imbalance_fee(fee, n)
    fees, admin_fees, stored, fee_adjusted = [], [], [], []
    for old_balance, new_balance in zip(old_balances, new_balances):
        ideal_balance = div(d1 * old_balance, d0)
        token_fee = per_token_fee * abs_diff(ideal_balance, new_balance) // FEE_DENOMINATOR
        token_admin_fee = token_fee * admin_fee // FEE_DENOMINATOR
        fees.append(token_fee)
        admin_fees.append(token_admin_fee)
        stored.append(sub(new_balance, token_admin_fee))
        fee_adjusted.append(sub(new_balance, token_fee))
    return fees, admin_fees, stored, fee_adjusted


def add_liquidity(
    amounts: Sequence[int],
    balances: Sequence[int],
    amp: int,
    lp_supply: int,
    fee: int,
    admin_fee: int,
    decimals: Optional[Sequence[int]] = None,
) -> LiquidityResult:
    """
    Deposit ``amounts`` (raw units) into the pool.

    The first deposit must include every token and mints D LP tokens.
    Later deposits pay the imbalance fee.

    Returns
    -------
    LiquidityResult
        LP tokens minted, fees and the new balance snapshot
    """
    n = len(balances)
    if len(amounts) != n:
        raise InvalidBasket(f"Got {len(amounts)} amounts for {n} tokens")

    d0 = get_d(normalize(balances, decimals), amp)
    if lp_supply > 0:
        _check_liquid(d0)

    new_balances = []
    for k in range(n):
        if lp_supply == 0 and amounts[k] <= 0:
            raise InvalidBasket("Initial deposit requires every token")
        new_balances.append(balances[k] + to_uint256(amounts[k]))

    d1 = get_d(normalize(new_balances, decimals), amp)
    if d1 <= d0:
        raise InvalidBasket(f"Deposit does not increase D ({d0} -> {d1})")

    if lp_supply == 0:
        return LiquidityResult(
            lp_amount=d1,
            fees=(0,) * n,
            admin_fees=(0,) * n,
            balances=tuple(new_balances),
        )

    fees, admin_fees, stored, fee_adjusted = _charge_imbalance(
        balances, new_balances, d0, d1, fee, admin_fee
    )
    d2 = get_d(normalize(fee_adjusted, decimals), amp)
    lp_amount = div(lp_supply * (d2 - d0), d0)

    return LiquidityResult(
        lp_amount=lp_amount,
        fees=tuple(fees),
        admin_fees=tuple(admin_fees),
        balances=tuple(stored),
    )


def remove_liquidity(
    lp_amount: int,
    balances: Sequence[int],
    lp_supply: int,
) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    """
    Burn ``lp_amount`` for a proportional share of every token. No fee.

    Returns
    -------
    tuple
        (amounts withdrawn, new balances)
    """
    if lp_amount > lp_supply:
        raise InvalidBasket(f"Cannot burn {lp_amount} of {lp_supply} LP tokens")
    amounts = tuple(div(balance * lp_amount, lp_supply) for balance in balances)
    new_balances = tuple(sub(b, a) for b, a in zip(balances, amounts))
    return amounts, new_balances


def remove_liquidity_imbalance(
    amounts: Sequence[int],
    balances: Sequence[int],
    amp: int,
    lp_supply: int,
    fee: int,
    admin_fee: int,
    decimals: Optional[Sequence[int]] = None,
) -> LiquidityResult:
    """
    Withdraw exact ``amounts``; burns whatever LP covers them plus fees.

    The burn amount is rounded up by one unit.
    """
    n = len(balances)
    if len(amounts) != n:
        raise InvalidBasket(f"Got {len(amounts)} amounts for {n} tokens")

    d0 = get_d(normalize(balances, decimals), amp)
    _check_liquid(d0)
    new_balances = [sub(b, a) for b, a in zip(balances, amounts)]
    d1 = get_d(normalize(new_balances, decimals), amp)

    fees, admin_fees, stored, fee_adjusted = _charge_imbalance(
        balances, new_balances, d0, d1, fee, admin_fee
    )
    d2 = get_d(normalize(fee_adjusted, decimals), amp)

    lp_amount = div(sub(d0, d2) * lp_supply, d0) + 1
    if lp_amount > lp_supply:
        raise InvalidBasket(f"Withdrawal needs {lp_amount} LP tokens, supply is {lp_supply}")

    return LiquidityResult(
        lp_amount=lp_amount,
        fees=tuple(fees),
        admin_fees=tuple(admin_fees),
        balances=tuple(stored),
    )


def calc_withdraw_one_coin(
    lp_amount: int,
    i: int,
    balances: Sequence[int],
    amp: int,
    lp_supply: int,
    fee: int,
    decimals: Optional[Sequence[int]] = None,
) -> Tuple[int, int]:
    """
    Amount of token ``i`` received for burning ``lp_amount``.

    The target balance is solved twice: once on the current basket (the
    fee-free amount) and once on a basket reduced by the imbalance fee
    each token would pay. Both solves are needed for the fee to round the
    same way as on-chain.

    Returns
    -------
    tuple
        (dy, dy_fee) in raw units of token ``i``
    """
    n = len(balances)
    decimals = _decimals_for(n, decimals)
    _check_index(i, n, "i")
    if lp_amount > lp_supply:
        raise InvalidBasket(f"Cannot burn {lp_amount} of {lp_supply} LP tokens")

    xp = normalize(balances, decimals)
    d0 = get_d(xp, amp)
    _check_liquid(d0)
    d1 = d0 - div(lp_amount * d0, lp_supply)
    new_y = get_y_d(amp, i, xp, d1)

    per_token_fee = imbalance_fee(fee, n)
    xp_reduced = list(xp)
    for k in range(n):
        if k == i:
            dx_expected = sub(div(xp[k] * d1, d0), new_y)
        else:
            dx_expected = xp[k] - div(xp[k] * d1, d0)
        xp_reduced[k] = sub(xp_reduced[k], per_token_fee * dx_expected // FEE_DENOMINATOR)

    dy = sub(xp_reduced[i], get_y_d(amp, i, xp_reduced, d1))
    # withdraw one unit less to stay on the safe side
    dy = denormalize_amount(sub(dy, 1), decimals[i])
    dy_0 = denormalize_amount(sub(xp[i], new_y), decimals[i])

    return dy, sub(dy_0, dy)


def remove_liquidity_one_coin(
    lp_amount: int,
    i: int,
    balances: Sequence[int],
    amp: int,
    lp_supply: int,
    fee: int,
    admin_fee: int,
    decimals: Optional[Sequence[int]] = None,
) -> WithdrawOneResult:
    """Burn ``lp_amount`` and pay it out entirely in token ``i``."""
    dy, dy_fee = calc_withdraw_one_coin(
        lp_amount, i, balances, amp, lp_supply, fee, decimals
    )
    dy_admin_fee = dy_fee * admin_fee // FEE_DENOMINATOR

    new_balances = list(balances)
    new_balances[i] = sub(balances[i], dy + dy_admin_fee)
    return WithdrawOneResult(
        dy=dy,
        dy_fee=dy_fee,
        dy_admin_fee=dy_admin_fee,
        balances=tuple(new_balances),
    )
