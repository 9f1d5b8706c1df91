"""Checked 128-bit integer arithmetic.

Python ints never wrap, so the fixed-width range the pool accounts in is
enforced explicitly: every helper raises instead of producing a value
outside [I128_MIN, I128_MAX].

Division truncates toward zero. For the non-negative operands the vault
uses this is the same as floor, so every conversion rounds in favour of
the pool.
"""

from ..errors import (
    AmountOverflowError,
    AmountUnderflowError,
    DivisionByZeroError,
    InvalidInputError,
)
from ..schemas.base import I128_MIN, I128_MAX


def _bounded(result: int, operation: str, operands: tuple) -> int:
    if result > I128_MAX:
        raise AmountOverflowError(operation, operands)
    if result < I128_MIN:
        raise AmountUnderflowError(operation, operands)
    return result


def require_i128(value: object, name: str) -> int:
    """Validate that a caller-supplied value is a 128-bit signed integer.

    Args:
        value: Value to check
        name: Argument name used in the error

    Returns:
        The value unchanged

    Raises:
        InvalidInputError: If value is not an int (bools are rejected)
        AmountOverflowError / AmountUnderflowError: If value is out of range
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(
            f"{name} must be an integer, got {type(value).__name__}", name, value
        )
    return _bounded(value, "require_i128", (value,))


def checked_add(a: int, b: int) -> int:
    return _bounded(a + b, "checked_add", (a, b))


def checked_sub(a: int, b: int) -> int:
    return _bounded(a - b, "checked_sub", (a, b))


def checked_mul(a: int, b: int) -> int:
    return _bounded(a * b, "checked_mul", (a, b))


def checked_div(numerator: int, denominator: int) -> int:
    """Integer division truncating toward zero.

    Raises:
        DivisionByZeroError: If denominator is 0
    """
    if denominator == 0:
        raise DivisionByZeroError("checked_div")
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        quotient = -quotient
    return _bounded(quotient, "checked_div", (numerator, denominator))


def mul_div_down(x: int, y: int, denominator: int) -> int:
    """Compute x * y / denominator, truncated toward zero.

    The product is exact (Python ints are unbounded); only the quotient is
    held to the 128-bit range. Conversions therefore work at any pool size
    whose totals fit, e.g. redeeming 2**64 shares of a (2**64, 2**64) pool.

    Example:
        mul_div_down(3, 1000, 1001)   # 2
        mul_div_down(500, 1000, 1000) # 500
    """
    if denominator == 0:
        raise DivisionByZeroError("mul_div_down")
    return checked_div(x * y, denominator)
