"""
Fixed-width integer arithmetic.

Python integers never overflow, so every uint256/int256 boundary the pool
contracts rely on is checked explicitly here. All helpers are pure and
floor-rounding unless the name says otherwise.

Scales:
- Q64.96 for sqrt prices (``Q96``)
- 1e18 for normalized StableSwap amounts (``WAD``)
- 1e10 for fees (``FEE_DENOMINATOR``)
- 100 for the amplification coefficient (``A_PRECISION``)
"""

from ammcore.errors import DivisionByZero, Overflow, Underflow


MAX_UINT128 = 2**128 - 1
MAX_UINT160 = 2**160 - 1
MAX_UINT256 = 2**256 - 1
MIN_INT256 = -(2**255)
MAX_INT256 = 2**255 - 1

RESOLUTION = 96
Q96 = 2**RESOLUTION
Q128 = 2**128

WAD = 10**18
FEE_DENOMINATOR = 10**10
A_PRECISION = 100


def to_uint256(x: int) -> int:
    """Validate that ``x`` fits an unsigned 256-bit word."""
    if x < 0:
        raise Underflow(f"{x} is negative")
    if x > MAX_UINT256:
        raise Overflow(f"{x} exceeds uint256")
    return x


def to_uint128(x: int) -> int:
    """Validate that ``x`` fits an unsigned 128-bit word (liquidity)."""
    if x < 0:
        raise Underflow(f"{x} is negative")
    if x > MAX_UINT128:
        raise Overflow(f"{x} exceeds uint128")
    return x


def to_uint160(x: int) -> int:
    if x < 0:
        raise Underflow(f"{x} is negative")
    if x > MAX_UINT160:
        raise Overflow(f"{x} exceeds uint160")
    return x


def to_int256(x: int) -> int:
    """Validate that ``x`` fits a signed 256-bit word."""
    if x < MIN_INT256:
        raise Underflow(f"{x} below int256 minimum")
    if x > MAX_INT256:
        raise Overflow(f"{x} exceeds int256")
    return x


def add(a: int, b: int) -> int:
    return to_uint256(a + b)


def sub(a: int, b: int) -> int:
    """
    Checked unsigned subtraction.

    Raises
    ------
    Underflow
        If ``b > a``.
    """
    if b > a:
        raise Underflow(f"{a} - {b} underflows")
    return a - b


def mul(a: int, b: int) -> int:
    return to_uint256(a * b)


def div(a: int, b: int) -> int:
    if b == 0:
        raise DivisionByZero(f"{a} / 0")
    return a // b


def div_rounding_up(a: int, b: int) -> int:
    """Ceiling division for non-negative operands."""
    if b == 0:
        raise DivisionByZero(f"{a} / 0")
    return a // b + (1 if a % b else 0)


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    Compute ``floor(a * b / denominator)`` with a full-width intermediate.

    The product may exceed 256 bits (it is never truncated), but the
    quotient must fit a uint256.

    Parameters
    ----------
    a, b : int
        Unsigned multiplicands
    denominator : int
        Unsigned divisor, non-zero

    Returns
    -------
    int
        Floor of the exact quotient
    """
    to_uint256(a)
    to_uint256(b)
    if denominator == 0:
        raise DivisionByZero(f"mul_div({a}, {b}, 0)")
    return to_uint256(a * b // denominator)


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """Same as :func:`mul_div`, rounded towards positive infinity."""
    result = mul_div(a, b, denominator)
    if (a * b) % denominator:
        result = add(result, 1)
    return result


def abs_diff(a: int, b: int) -> int:
    return a - b if a > b else b - a
