"""Vault ledger computation block.

Converts a vault's ledger events into DataFrames for Excel rendering or analysis.

Output DataFrames:
- vault_ledger: One row per committed transition with totals before/after
- vault_summary: High-level metrics (TVL, supply, share price, flows)
"""

from typing import List, Optional
import pandas as pd

from .base import Block, BlockContext
from ..schemas import (
    DepositApplied,
    LedgerEvent,
    PoolInitialized,
    WithdrawalApplied,
)

LEDGER_COLUMNS = [
    "sequence",
    "event_type",
    "holder_id",
    "assets_in",
    "assets_out",
    "shares_minted",
    "shares_burned",
    "assets_before",
    "supply_before",
    "assets_after",
    "supply_after",
    "share_price_after",
]


class VaultLedgerBlock(Block):
    """Converts vault ledger events to ledger and summary DataFrames.

    Inputs (from context):
        - vault_events: List of LedgerEvent (e.g. Vault.history)

    Outputs (to context):
        - vault_ledger: DataFrame with columns:
            * sequence: Event position in the history
            * event_type: "pool_initialized", "deposit" or "withdrawal"
            * holder_id: Caller-supplied label (None when not given)
            * assets_in / assets_out: Assets deposited / paid out
            * shares_minted / shares_burned: Shares created / redeemed
            * assets_before, supply_before, assets_after, supply_after: Pool totals
            * share_price_after: Exchange rate after the event (float)

        - vault_summary: DataFrame with single row:
            * asset_id: Underlying asset (None if the history has no initialization)
            * total_assets / total_supply: Totals after the last event
            * share_price: Exchange rate after the last event
            * deposits_count / withdrawals_count: Committed operations
            * zero_share_deposits: Deposits that minted no shares
            * gross_inflow / gross_outflow / net_flow: Asset flows

    Amount columns hold Python ints; totals beyond the int64 range keep an
    object dtype rather than being rounded.

    Example:
        context = BlockContext()
        context.set("vault_events", vault.history)

        block = VaultLedgerBlock()
        block.execute(context)

        ledger_df = context.get("vault_ledger")
        summary_df = context.get("vault_summary")
    """

    def __init__(self, events_key: str = "vault_events"):
        """Initialize VaultLedgerBlock.

        Args:
            events_key: Context key for the ledger events (default: "vault_events")
        """
        self.events_key = events_key

    def inputs(self) -> List[str]:
        return [self.events_key]

    def outputs(self) -> List[str]:
        return ["vault_ledger", "vault_summary"]

    def execute(self, context: BlockContext) -> None:
        events: List[LedgerEvent] = sorted(
            context.get(self.events_key), key=lambda e: e.sequence
        )

        ledger_df = self._compute_ledger(events)
        context.set("vault_ledger", ledger_df)

        summary_df = self._compute_summary(events)
        context.set("vault_summary", summary_df)

    def _compute_ledger(self, events: List[LedgerEvent]) -> pd.DataFrame:
        rows = []
        for event in events:
            assets_in = assets_out = shares_minted = shares_burned = 0
            if isinstance(event, DepositApplied):
                assets_in = event.amount
                shares_minted = event.shares_minted
            elif isinstance(event, WithdrawalApplied):
                assets_out = event.assets_paid
                shares_burned = event.shares

            rows.append({
                "sequence": event.sequence,
                "event_type": event.event_type,
                "holder_id": event.holder_id,
                "assets_in": assets_in,
                "assets_out": assets_out,
                "shares_minted": shares_minted,
                "shares_burned": shares_burned,
                "assets_before": event.assets_before,
                "supply_before": event.supply_before,
                "assets_after": event.assets_after,
                "supply_after": event.supply_after,
                "share_price_after": float(event.share_price_after),
            })

        if not rows:
            return pd.DataFrame(columns=LEDGER_COLUMNS)
        return pd.DataFrame(rows, columns=LEDGER_COLUMNS)

    def _compute_summary(self, events: List[LedgerEvent]) -> pd.DataFrame:
        asset_id: Optional[str] = next(
            (e.asset_id for e in events if isinstance(e, PoolInitialized)),
            None,
        )
        deposits = [e for e in events if isinstance(e, DepositApplied)]
        withdrawals = [e for e in events if isinstance(e, WithdrawalApplied)]

        # Python sums: totals may exceed int64
        gross_inflow = sum(e.amount for e in deposits)
        gross_outflow = sum(e.assets_paid for e in withdrawals)

        last = events[-1] if events else None

        summary = pd.DataFrame([{
            "asset_id": asset_id,
            "total_assets": last.assets_after if last else 0,
            "total_supply": last.supply_after if last else 0,
            "share_price": float(last.share_price_after) if last else 1.0,
            "deposits_count": len(deposits),
            "withdrawals_count": len(withdrawals),
            "zero_share_deposits": sum(1 for e in deposits if e.shares_minted == 0),
            "gross_inflow": gross_inflow,
            "gross_outflow": gross_outflow,
            "net_flow": gross_inflow - gross_outflow,
        }])

        return summary
