"""Storage boundary for pool fields.

The vault never owns persistence. It reads and writes a small fixed set of
named fields through a StorageBackend supplied by the host, scoped to one
vault instance. Each call is assumed durable and visible to the next call
within the same transaction.

InMemoryStorage is the stand-in used by tests, replays and simulations.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol, Tuple


# =============================================================================
# Field Names
# =============================================================================

ASSET_ID_FIELD = "asset_id"
TOTAL_SUPPLY_FIELD = "total_supply"
TOTAL_ASSETS_FIELD = "total_assets"

POOL_FIELDS: Tuple[str, ...] = (ASSET_ID_FIELD, TOTAL_SUPPLY_FIELD, TOTAL_ASSETS_FIELD)


# =============================================================================
# Storage Protocol
# =============================================================================

class StorageBackend(Protocol):
    """Contract for per-instance key/value persistence, implemented by the host.

    A vault operation writes total_assets then total_supply. If the second
    write raises, the vault writes the previous total_assets back and
    re-raises; a backend that can also fail that restore should wrap each
    operation in its own transaction.
    """

    def has(self, key: str) -> bool: ...

    def get(self, key: str) -> Any:
        """Return the stored value; raise KeyError when the field is absent."""
        ...

    def set(self, key: str, value: Any) -> None: ...


# =============================================================================
# In-Memory Storage
# =============================================================================

@dataclass
class InMemoryStorage:
    """Dict-backed StorageBackend.

    Example:
        storage = InMemoryStorage()
        vault = Vault(storage)
        vault.initialize("USDC")

        storage.snapshot()
        # {"asset_id": "USDC", "total_supply": 0, "total_assets": 0}
    """

    _data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        """Get a stored field.

        Raises:
            KeyError: If key has never been set
        """
        if key not in self._data:
            raise KeyError(f"Field '{key}' not found in storage. Available fields: {list(self._data.keys())}")
        return self._data[key]

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def has(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> List[str]:
        return list(self._data.keys())

    def snapshot(self) -> Dict[str, Any]:
        """Copy of every stored field, for before/after comparisons."""
        return dict(self._data)
