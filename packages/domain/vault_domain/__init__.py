"""Vault Domain Engine - share accounting for pooled-asset vaults.

This package provides the accounting layer of a yield/liquidity vault:
- Share minting on deposit and pro-rata redemption on withdrawal
- Checked 128-bit arithmetic with pool-favouring rounding
- Typed errors with contract error codes
- Event-sourced ledger with replay audits
- Reporting blocks producing pandas DataFrames

The domain layer is designed to be:
- Storage-agnostic (hosts plug in any has/get/set backend)
- Testable (in-memory storage stand-in, pure computations)
- Transfer-free (computes amounts; never moves tokens)
"""

from .schemas import *  # noqa: F403, F401
from .errors import (  # noqa: F401
    ErrorCode,
    ErrorCategory,
    VaultError,
    InvalidInputError,
    AlreadyInitializedError,
    NotInitializedError,
    InvariantViolationError,
    InsufficientBalanceError,
    DepositTooSmallError,
    InvalidFeeRateError,
    AmountOverflowError,
    AmountUnderflowError,
    DivisionByZeroError,
)
from .engine import Vault, InMemoryStorage, StorageBackend, replay_events, parse_events  # noqa: F401
from .config import VaultSettings, get_settings  # noqa: F401

__version__ = "0.1.0"
