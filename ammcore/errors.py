"""Exceptions raised by the pricing engines."""


class AMMMathError(ArithmeticError):
    """Base class for every engine failure. None of them are retriable."""


class TickOutOfBounds(AMMMathError, ValueError):
    """Tick outside [MIN_TICK, MAX_TICK]."""

    def __init__(self, tick: int):
        self.tick = tick
        super().__init__(f"Tick {tick} out of bounds")


class SqrtRatioOutOfBounds(AMMMathError, ValueError):
    """Sqrt price outside [MIN_SQRT_RATIO, MAX_SQRT_RATIO)."""

    def __init__(self, sqrt_price_x96: int):
        self.sqrt_price_x96 = sqrt_price_x96
        super().__init__(f"Sqrt ratio {sqrt_price_x96} out of bounds")


class InvalidBasket(AMMMathError, ValueError):
    """Basket size, token index or amounts list is not usable."""


class RampError(AMMMathError, ValueError):
    """Amplification ramp request rejected."""


class ConvergenceFailed(AMMMathError):
    """Newton-Raphson solver did not settle within its iteration limit."""

    def __init__(self, solver: str, iterations: int):
        self.solver = solver
        self.iterations = iterations
        super().__init__(f"{solver} did not converge after {iterations} iterations")


class Overflow(AMMMathError):
    """Result does not fit the target integer width."""


class Underflow(AMMMathError):
    """Result would be negative for an unsigned type, or below the signed minimum."""


class DivisionByZero(AMMMathError, ZeroDivisionError):
    """Integer division by zero."""
