"""Vault domain schemas.

This package contains all Pydantic models for the vault domain layer:
- Base types, integer bounds and conventions
- Pool state and the config projection
- Ledger events (event-sourced audit trail)
- Report configuration

Usage:
    from vault_domain.schemas import (
        PoolState, VaultConfig, DepositApplied, WithdrawalApplied, VaultReportCFG
    )
"""

# Base types
from .base import (
    DomainModel,
    AssetAmount,
    ShareAmount,
    BasisPoints,
    AssetId,
    HolderId,
    I128_MIN,
    I128_MAX,
    MAX_FEE_RATE_BPS,
)

# Pool state
from .pool_state import (
    PoolState,
    VaultConfig,
)

# Events
from .events import (
    LedgerEvent,
    PoolInitialized,
    DepositApplied,
    WithdrawalApplied,
    VaultEvent,
)

# Report
from .report import VaultReportCFG

__all__ = [
    # Base types
    "DomainModel",
    "AssetAmount",
    "ShareAmount",
    "BasisPoints",
    "AssetId",
    "HolderId",
    "I128_MIN",
    "I128_MAX",
    "MAX_FEE_RATE_BPS",
    # Pool state
    "PoolState",
    "VaultConfig",
    # Events
    "LedgerEvent",
    "PoolInitialized",
    "DepositApplied",
    "WithdrawalApplied",
    "VaultEvent",
    # Report
    "VaultReportCFG",
]
