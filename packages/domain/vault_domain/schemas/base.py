"""Base classes and type system for vault domain models.

This module provides the foundational types, bounds, and base classes
used throughout the vault schema system.

All amounts are integers in the smallest indivisible unit of the
underlying asset (or of the share token). They are bounded to the
signed 128-bit range the pool accounts in.
"""

from typing import Annotated, Final
from pydantic import BaseModel, Field, ConfigDict

# =============================================================================
# Integer Bounds
# =============================================================================

I128_MIN: Final[int] = -(2 ** 127)
I128_MAX: Final[int] = 2 ** 127 - 1

MAX_FEE_RATE_BPS: Final[int] = 10_000


# =============================================================================
# Base Model
# =============================================================================

class DomainModel(BaseModel):
    """Base class for all domain models.

    Provides common configuration for all Pydantic models in the domain layer:
    - Validation on assignment for runtime safety
    - Strict integers (no silent float or string coercion of amounts)
    - Enum value serialization
    """

    model_config = ConfigDict(
        frozen=False,
        validate_assignment=True,
        use_enum_values=True,
        strict=True,
    )


# =============================================================================
# Type Aliases - Numeric
# =============================================================================

AssetAmount = Annotated[
    int,
    Field(ge=0, le=I128_MAX, description="Amount of the underlying asset in its smallest unit (non-negative)")
]

ShareAmount = Annotated[
    int,
    Field(ge=0, le=I128_MAX, description="Number of shares in the smallest share unit (non-negative)")
]

BasisPoints = Annotated[
    int,
    Field(ge=0, le=MAX_FEE_RATE_BPS, description="Rate in basis points (30 = 0.30%)")
]


# =============================================================================
# ID Conventions
# =============================================================================

AssetId = Annotated[
    str,
    Field(
        min_length=1,
        description="Opaque identifier of the underlying asset (token contract address, symbol, etc.)"
    )
]

HolderId = Annotated[
    str,
    Field(
        min_length=1,
        description="Caller-supplied label for the account acting on the vault (reporting only)"
    )
]


# =============================================================================
# ID Examples
# =============================================================================
#
# Asset IDs:
#   - "CDLZFC3SYJYDZT7K67VZ75HPJVIEUVNIXF47ZG2FB2RMQQVU2HHGCYSC" - token contract
#   - "USDC" - symbolic id in tests and simulations
#
# Holder IDs:
#   - "alice", "lp_fund_01" - free-form labels; the vault never authenticates them
#
# =============================================================================
