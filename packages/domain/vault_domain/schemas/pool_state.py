"""Pool state and configuration models.

PoolState is the pair of running totals a vault accounts with, bound to the
asset it was initialized for. It is pure data: the engine reads it, computes
a successor, and commits the successor in one step.
"""

from decimal import Decimal
from pydantic import ConfigDict, Field, model_validator

from .base import DomainModel, AssetId, AssetAmount, ShareAmount, BasisPoints


# =============================================================================
# Pool State
# =============================================================================

class PoolState(DomainModel):
    """Running totals of one pool.

    Instances are frozen; a transition builds a new PoolState.

    Invariants (checked on construction):
        - total_assets >= 0
        - total_supply >= 0
        - total_supply == 0  <=>  total_assets == 0  (the "empty pool" condition)

    The empty-pool condition selects the first-depositor branch of a deposit:
    an empty pool always mints at the 1:1 bootstrap rate.

    Example:
        state = PoolState(asset_id="USDC", total_assets=1_500, total_supply=1_500)
        state.is_empty        # False
        state.share_price     # Decimal("1")
    """

    model_config = ConfigDict(frozen=True)

    asset_id: AssetId = Field(
        description="Underlying asset accepted by the pool (immutable after initialization)"
    )

    total_assets: AssetAmount = Field(
        default=0,
        description="Accounted holdings of the underlying asset"
    )

    total_supply: ShareAmount = Field(
        default=0,
        description="Total shares outstanding"
    )

    @model_validator(mode='after')
    def validate_empty_pool_equivalence(self):
        """Supply and assets must be zero together or non-zero together."""
        if (self.total_supply == 0) != (self.total_assets == 0):
            raise ValueError(
                f"total_supply == 0 must coincide with total_assets == 0, "
                f"got total_assets={self.total_assets}, total_supply={self.total_supply}"
            )
        return self

    @property
    def is_empty(self) -> bool:
        return self.total_supply == 0

    @property
    def share_price(self) -> Decimal:
        """Exchange rate in assets per share (1 for an empty pool)."""
        if self.is_empty:
            return Decimal("1")
        return Decimal(self.total_assets) / Decimal(self.total_supply)


# =============================================================================
# Vault Config
# =============================================================================

class VaultConfig(DomainModel):
    """Read-only projection returned by Vault.get_config().

    fee_rate is informational: the share/asset conversions never apply it.
    """

    asset_id: AssetId = Field(
        description="Underlying asset accepted by the pool"
    )

    total_supply: ShareAmount = Field(
        description="Total shares outstanding"
    )

    total_assets: AssetAmount = Field(
        description="Accounted holdings of the underlying asset"
    )

    fee_rate: BasisPoints = Field(
        description="Fee rate in basis points (informational)"
    )
