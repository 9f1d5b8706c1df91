"""Report configuration - entry point for vault workbook generation.

The VaultReportCFG ties together what a rendered report shows:
- Which vault history to present (the events are passed alongside)
- Display options (unit scaling, sheets to include)

This is what gets passed to the Excel renderer to generate the workbook.
"""

from typing import Optional
from pydantic import Field

from .base import DomainModel
from ..config import get_settings


class VaultReportCFG(DomainModel):
    """Configuration for a vault report workbook.

    Amounts are stored in the asset's smallest unit; the report divides them
    by 10**display_decimals so a 7-decimal token shows 10_000_000 as 1.0.
    display_decimals defaults to the VAULT_DISPLAY_DECIMALS setting (7).

    Example:
        VaultReportCFG(title="USDC Liquidity Vault", display_decimals=7)
    """

    title: str = Field(
        default="Vault Report",
        description="Title written to the top of the summary sheet"
    )

    asset_label: Optional[str] = Field(
        default=None,
        description="Display label for the underlying asset (defaults to the asset id)"
    )

    display_decimals: int = Field(
        default_factory=lambda: get_settings().display_decimals,
        ge=0,
        le=38,
        description="Decimals of the underlying asset used to scale amounts for display"
    )

    include_positions: bool = Field(
        default=True,
        description="Render the per-holder Positions sheet"
    )

    @property
    def unit_scale(self) -> int:
        return 10 ** self.display_decimals
