"""Error hierarchy - typed exceptions for every way a vault operation can fail.

Every error aborts the single operation that raised it and leaves the pool
state exactly as it was. Nothing is retried internally: all failures are
caller-input or precondition violations, not transient conditions.

Codes follow the deployed contract's error table (general 0-99, vault
300-399, math 500-599) so host programs can map them one-to-one.
"""

from enum import Enum, IntEnum
from typing import Any, Dict, Optional


class ErrorCode(IntEnum):
    """Numeric error codes surfaced to host programs."""

    INVALID_INPUT = 2
    INSUFFICIENT_BALANCE = 3

    INVALID_FEE_RATE = 302
    DEPOSIT_TOO_SMALL = 304
    ALREADY_INITIALIZED = 305
    NOT_INITIALIZED = 306
    INVARIANT_VIOLATION = 307

    OVERFLOW = 500
    UNDERFLOW = 501
    DIVISION_BY_ZERO = 502


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""

    VALIDATION = "validation"
    STATE = "state"
    BALANCE = "balance"
    ARITHMETIC = "arithmetic"
    CONFIGURATION = "configuration"


class VaultError(Exception):
    """Base exception for all vault errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        category: ErrorCategory,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.details = details or {}

    def to_response(self) -> Dict[str, Any]:
        """Convert to a plain error envelope for host programs."""
        return {
            "error": {
                "code": int(self.code),
                "name": self.code.name,
                "message": self.message,
                "category": self.category.value,
                "details": dict(self.details),
            }
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={int(self.code)}, message={self.message!r})"


# ─── Validation / State ─────────────────────────────────────────

class InvalidInputError(VaultError):
    """Amount or share argument is not a positive integer."""

    def __init__(self, message: str, field: str, value: Any = None):
        super().__init__(
            message, ErrorCode.INVALID_INPUT, ErrorCategory.VALIDATION,
            {"field": field, "value": repr(value)},
        )
        self.field = field


class AlreadyInitializedError(VaultError):
    """initialize() called on a pool that is already bound to an asset."""

    def __init__(self, asset_id: str):
        super().__init__(
            f"Vault already initialized with asset '{asset_id}'",
            ErrorCode.ALREADY_INITIALIZED, ErrorCategory.STATE,
            {"asset_id": asset_id},
        )
        self.asset_id = asset_id


class NotInitializedError(VaultError):
    """Operation attempted before initialize()."""

    def __init__(self, operation: str):
        super().__init__(
            f"Vault not initialized: cannot {operation}",
            ErrorCode.NOT_INITIALIZED, ErrorCategory.STATE,
            {"operation": operation},
        )
        self.operation = operation


class InvariantViolationError(VaultError):
    """Persisted pool state breaks the totals invariant or cannot be read."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message, ErrorCode.INVARIANT_VIOLATION, ErrorCategory.STATE, details,
        )


# ─── Balance ────────────────────────────────────────────────────

class InsufficientBalanceError(VaultError):
    """Withdrawal exceeds the pool's share supply or asset holdings."""

    def __init__(self, message: str, requested: int, available: int):
        super().__init__(
            message, ErrorCode.INSUFFICIENT_BALANCE, ErrorCategory.BALANCE,
            {"requested": requested, "available": available},
        )
        self.requested = requested
        self.available = available


class DepositTooSmallError(VaultError):
    """Deposit would mint zero shares and zero-share deposits are rejected."""

    def __init__(self, amount: int, total_assets: int, total_supply: int):
        super().__init__(
            f"Deposit of {amount} mints zero shares "
            f"(total_assets={total_assets}, total_supply={total_supply})",
            ErrorCode.DEPOSIT_TOO_SMALL, ErrorCategory.BALANCE,
            {"amount": amount, "total_assets": total_assets, "total_supply": total_supply},
        )
        self.amount = amount


# ─── Configuration ──────────────────────────────────────────────

class InvalidFeeRateError(VaultError):
    """Fee rate outside 0..10000 basis points."""

    def __init__(self, fee_rate: Any):
        super().__init__(
            f"Fee rate must be an integer between 0 and 10000 basis points, got {fee_rate!r}",
            ErrorCode.INVALID_FEE_RATE, ErrorCategory.CONFIGURATION,
            {"fee_rate": repr(fee_rate)},
        )
        self.fee_rate = fee_rate


# ─── Arithmetic ─────────────────────────────────────────────────

class AmountOverflowError(VaultError):
    """Result would exceed the largest representable amount."""

    def __init__(self, operation: str, operands: tuple):
        super().__init__(
            f"Overflow in {operation}{operands}",
            ErrorCode.OVERFLOW, ErrorCategory.ARITHMETIC,
            {"operation": operation, "operands": [str(o) for o in operands]},
        )
        self.operation = operation


class AmountUnderflowError(VaultError):
    """Result would fall below the smallest representable amount."""

    def __init__(self, operation: str, operands: tuple):
        super().__init__(
            f"Underflow in {operation}{operands}",
            ErrorCode.UNDERFLOW, ErrorCategory.ARITHMETIC,
            {"operation": operation, "operands": [str(o) for o in operands]},
        )
        self.operation = operation


class DivisionByZeroError(VaultError):
    """Conversion attempted with a zero denominator."""

    def __init__(self, operation: str):
        super().__init__(
            f"Division by zero in {operation}",
            ErrorCode.DIVISION_BY_ZERO, ErrorCategory.ARITHMETIC,
            {"operation": operation},
        )
        self.operation = operation
