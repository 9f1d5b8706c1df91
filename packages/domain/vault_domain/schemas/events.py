"""Vault ledger events for an event-sourced audit trail.

Every committed vault transition is recorded as an immutable event carrying
the caller's input, the computed result, and the pool totals immediately
before and after the transition. Replaying the events in sequence order
through a fresh vault must reproduce every recorded result and total.

This event-sourcing pattern provides:
- Complete audit trail (what was deposited/redeemed, at which rate)
- Reproducibility (same events → same pool state)
- A data source for reporting blocks and workbooks

Failed operations never produce an event.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union, TYPE_CHECKING
from pydantic import Field, model_validator

from .base import (
    DomainModel,
    AssetId,
    AssetAmount,
    ShareAmount,
    HolderId,
)

# Avoid circular import for type hints
if TYPE_CHECKING:
    from ..engine.vault import Vault


# =============================================================================
# Event Base Class
# =============================================================================

class LedgerEvent(DomainModel, ABC):
    """Base class for all vault ledger events.

    Events represent immutable facts about what happened to the pool.
    Each event has an apply() method that re-executes the transition against
    a vault and returns the operation's result.

    Example event timeline:
        1. PoolInitialized: pool bound to "USDC"
        2. DepositApplied: alice deposits 1000, receives 1000 shares (bootstrap)
        3. DepositApplied: bob deposits 500, receives 500 shares
        4. WithdrawalApplied: alice redeems 1000 shares, receives 1000
    """

    sequence: int = Field(
        ge=0,
        description="Position of this event in the vault history (0 = initialization)"
    )

    holder_id: Optional[HolderId] = Field(
        default=None,
        description="Caller-supplied label of the acting account (reporting only)"
    )

    assets_before: AssetAmount = Field(
        description="total_assets before the transition"
    )

    supply_before: ShareAmount = Field(
        description="total_supply before the transition"
    )

    assets_after: AssetAmount = Field(
        description="total_assets after the transition"
    )

    supply_after: ShareAmount = Field(
        description="total_supply after the transition"
    )

    @property
    def share_price_after(self) -> Decimal:
        """Exchange rate after the transition (1 for an empty pool)."""
        if self.supply_after == 0:
            return Decimal("1")
        return Decimal(self.assets_after) / Decimal(self.supply_after)

    @property
    @abstractmethod
    def result(self) -> Optional[int]:
        """Value the operation returned to its caller (None for initialization)."""
        pass

    @abstractmethod
    def apply(self, vault: 'Vault') -> Optional[int]:
        """Re-execute this event's operation against a vault.

        Args:
            vault: Vault to apply the operation to

        Returns:
            The operation's result (shares minted, assets paid, or None)
        """
        pass


# =============================================================================
# Pool Initialized
# =============================================================================

class PoolInitialized(LedgerEvent):
    """The pool was bound to its underlying asset with zeroed totals."""

    event_type: Literal["pool_initialized"] = "pool_initialized"

    asset_id: AssetId = Field(
        description="Underlying asset the pool was bound to"
    )

    @model_validator(mode='after')
    def validate_zeroed_totals(self):
        """Initialization always starts from and ends at an empty pool."""
        totals = (self.assets_before, self.supply_before, self.assets_after, self.supply_after)
        if any(totals):
            raise ValueError(f"pool_initialized must have zeroed totals, got {totals}")
        return self

    @property
    def result(self) -> Optional[int]:
        return None

    def apply(self, vault: 'Vault') -> Optional[int]:
        vault.initialize(self.asset_id)
        return None


# =============================================================================
# Deposit Applied
# =============================================================================

class DepositApplied(LedgerEvent):
    """Assets were deposited and shares minted.

    Totals move by exactly (+amount, +shares_minted).
    """

    event_type: Literal["deposit"] = "deposit"

    amount: AssetAmount = Field(
        gt=0,
        description="Assets deposited"
    )

    shares_minted: ShareAmount = Field(
        description="Shares minted for the deposit (may be 0 for dust deposits)"
    )

    @model_validator(mode='after')
    def validate_totals_delta(self):
        if self.assets_after - self.assets_before != self.amount:
            raise ValueError("deposit assets delta must equal amount")
        if self.supply_after - self.supply_before != self.shares_minted:
            raise ValueError("deposit supply delta must equal shares_minted")
        return self

    @property
    def result(self) -> Optional[int]:
        return self.shares_minted

    def apply(self, vault: 'Vault') -> Optional[int]:
        return vault.deposit(self.amount, holder_id=self.holder_id)


# =============================================================================
# Withdrawal Applied
# =============================================================================

class WithdrawalApplied(LedgerEvent):
    """Shares were redeemed and assets paid out.

    Totals move by exactly (-assets_paid, -shares).
    """

    event_type: Literal["withdrawal"] = "withdrawal"

    shares: ShareAmount = Field(
        gt=0,
        description="Shares redeemed"
    )

    assets_paid: AssetAmount = Field(
        description="Assets owed to the withdrawer"
    )

    @model_validator(mode='after')
    def validate_totals_delta(self):
        if self.assets_before - self.assets_after != self.assets_paid:
            raise ValueError("withdrawal assets delta must equal assets_paid")
        if self.supply_before - self.supply_after != self.shares:
            raise ValueError("withdrawal supply delta must equal shares")
        return self

    @property
    def result(self) -> Optional[int]:
        return self.assets_paid

    def apply(self, vault: 'Vault') -> Optional[int]:
        return vault.withdraw(self.shares, holder_id=self.holder_id)


# =============================================================================
# Discriminated Union
# =============================================================================

VaultEvent = Annotated[
    Union[
        PoolInitialized,
        DepositApplied,
        WithdrawalApplied,
    ],
    Field(discriminator="event_type")
]
