"""Tests for checked 128-bit arithmetic."""

import pytest

from vault_domain import (
    AmountOverflowError,
    AmountUnderflowError,
    DivisionByZeroError,
    InvalidInputError,
    ErrorCode,
    I128_MAX,
    I128_MIN,
)
from vault_domain.engine import (
    checked_add,
    checked_sub,
    checked_mul,
    checked_div,
    mul_div_down,
    require_i128,
)


# =============================================================================
# Add / Sub / Mul
# =============================================================================

def test_checked_add_at_bounds():
    assert checked_add(I128_MAX - 1, 1) == I128_MAX
    with pytest.raises(AmountOverflowError, match="checked_add"):
        checked_add(I128_MAX, 1)


def test_checked_sub_at_bounds():
    assert checked_sub(I128_MIN + 1, 1) == I128_MIN
    with pytest.raises(AmountUnderflowError, match="checked_sub"):
        checked_sub(I128_MIN, 1)


def test_checked_mul():
    assert checked_mul(2 ** 63, 2 ** 63) == 2 ** 126
    with pytest.raises(AmountOverflowError):
        checked_mul(2 ** 64, 2 ** 64)
    with pytest.raises(AmountUnderflowError):
        checked_mul(-(2 ** 64), 2 ** 64)


def test_overflow_error_code():
    with pytest.raises(AmountOverflowError) as exc_info:
        checked_add(I128_MAX, I128_MAX)
    assert exc_info.value.code == ErrorCode.OVERFLOW
    assert int(exc_info.value.code) == 500


# =============================================================================
# Division
# =============================================================================

@pytest.mark.parametrize("numerator,denominator,expected", [
    (7, 2, 3),
    (-7, 2, -3),
    (7, -2, -3),
    (-7, -2, 3),
    (0, 5, 0),
])
def test_checked_div_truncates_toward_zero(numerator, denominator, expected):
    assert checked_div(numerator, denominator) == expected


def test_checked_div_by_zero():
    with pytest.raises(DivisionByZeroError, match="checked_div") as exc_info:
        checked_div(1, 0)
    assert exc_info.value.code == ErrorCode.DIVISION_BY_ZERO


def test_checked_div_min_by_minus_one_overflows():
    """The one quotient outside the range: I128_MIN / -1."""
    with pytest.raises(AmountOverflowError):
        checked_div(I128_MIN, -1)


# =============================================================================
# mul_div_down
# =============================================================================

@pytest.mark.parametrize("x,y,denominator,expected", [
    (500, 1_000, 1_000, 500),
    (3, 1_000, 1_001, 2),
    (1, 1_000, 1_001, 0),
    (1_500, 1_500, 1_500, 1_500),
    (999, 1_001, 1_000, 999),
])
def test_mul_div_down(x, y, denominator, expected):
    assert mul_div_down(x, y, denominator) == expected


def test_mul_div_down_zero_denominator():
    with pytest.raises(DivisionByZeroError, match="mul_div_down"):
        mul_div_down(100, 100, 0)


def test_mul_div_down_exact_product():
    """An intermediate product beyond 128 bits is fine when the quotient fits."""
    assert mul_div_down(I128_MAX, 2, 4) == (2 ** 128 - 2) // 4
    assert mul_div_down(2 ** 100, 2 ** 100, 2 ** 100) == 2 ** 100


def test_mul_div_down_quotient_overflow():
    with pytest.raises(AmountOverflowError, match="checked_div"):
        mul_div_down(I128_MAX, 4, 2)


# =============================================================================
# require_i128
# =============================================================================

def test_require_i128_accepts_ints():
    assert require_i128(0, "amount") == 0
    assert require_i128(I128_MAX, "amount") == I128_MAX


@pytest.mark.parametrize("value", [True, False, 1.0, "1", None])
def test_require_i128_rejects_non_ints(value):
    with pytest.raises(InvalidInputError, match="amount must be an integer") as exc_info:
        require_i128(value, "amount")
    assert exc_info.value.details["field"] == "amount"


def test_require_i128_rejects_out_of_range():
    with pytest.raises(AmountOverflowError):
        require_i128(I128_MAX + 1, "amount")
    with pytest.raises(AmountUnderflowError):
        require_i128(I128_MIN - 1, "amount")
