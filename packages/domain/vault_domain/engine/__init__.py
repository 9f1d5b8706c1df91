"""Vault accounting engine.

Architecture:
    StorageBackend (host persistence) → Vault (accounting) → LedgerEvents (audit trail)

Usage:
    from vault_domain.engine import Vault, InMemoryStorage

    vault = Vault(InMemoryStorage())
    vault.initialize("USDC")
    shares = vault.deposit(1_000)
    assets = vault.withdraw(shares)
"""

from .checked_math import (
    checked_add,
    checked_sub,
    checked_mul,
    checked_div,
    mul_div_down,
    require_i128,
)
from .storage import (
    StorageBackend,
    InMemoryStorage,
    ASSET_ID_FIELD,
    TOTAL_SUPPLY_FIELD,
    TOTAL_ASSETS_FIELD,
    POOL_FIELDS,
)
from .vault import Vault
from .ledger import parse_events, replay_events

__all__ = [
    # Checked math
    "checked_add",
    "checked_sub",
    "checked_mul",
    "checked_div",
    "mul_div_down",
    "require_i128",
    # Storage
    "StorageBackend",
    "InMemoryStorage",
    "ASSET_ID_FIELD",
    "TOTAL_SUPPLY_FIELD",
    "TOTAL_ASSETS_FIELD",
    "POOL_FIELDS",
    # Engine
    "Vault",
    # Ledger
    "parse_events",
    "replay_events",
]
