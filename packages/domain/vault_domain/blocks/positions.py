"""Holder positions computation block.

Aggregates the ledger by holder label into per-holder positions valued at
the pool's latest exchange rate.

Only rows carrying a holder_id are attributed. The vault does not track
individual share balances, so positions reflect what the ledger labels say;
shares moved between holders outside the vault are not visible here.
"""

from typing import List
import pandas as pd

from .base import Block, BlockContext
from ..engine.checked_math import mul_div_down

POSITION_COLUMNS = [
    "holder_id",
    "deposited",
    "withdrawn",
    "net_shares",
    "current_value",
    "pool_share_pct",
    "pnl",
]


class HolderPositionsBlock(Block):
    """Computes per-holder positions from the vault ledger.

    Inputs (from context):
        - vault_ledger: Ledger DataFrame produced by VaultLedgerBlock

    Outputs (to context):
        - vault_positions: DataFrame with columns:
            * holder_id: Holder label
            * deposited: Total assets deposited
            * withdrawn: Total assets paid out
            * net_shares: Shares minted minus shares burned
            * current_value: Assets the net shares redeem for now (truncated)
            * pool_share_pct: net_shares as % of total supply
            * pnl: current_value + withdrawn - deposited

    Example:
        Alice deposits 1000 into an empty pool (1000 shares), the pool later
        accrues to 1100 assets with 1000 shares outstanding:
            net_shares = 1000, current_value = 1100, pool_share_pct = 100.0, pnl = 100
    """

    def __init__(self, ledger_key: str = "vault_ledger"):
        self.ledger_key = ledger_key

    def inputs(self) -> List[str]:
        return [self.ledger_key]

    def outputs(self) -> List[str]:
        return ["vault_positions"]

    def execute(self, context: BlockContext) -> None:
        ledger_df: pd.DataFrame = context.get(self.ledger_key)
        context.set("vault_positions", self._compute_positions(ledger_df))

    def _compute_positions(self, ledger_df: pd.DataFrame) -> pd.DataFrame:
        labelled = ledger_df[ledger_df["holder_id"].notna()] if not ledger_df.empty else ledger_df
        if labelled.empty:
            return pd.DataFrame(columns=POSITION_COLUMNS)

        last_row = ledger_df.sort_values("sequence").iloc[-1]
        total_assets = int(last_row["assets_after"])
        total_supply = int(last_row["supply_after"])

        rows = []
        for holder_id, group in labelled.groupby("holder_id", sort=True):
            deposited = sum(int(v) for v in group["assets_in"])
            withdrawn = sum(int(v) for v in group["assets_out"])
            net_shares = (
                sum(int(v) for v in group["shares_minted"])
                - sum(int(v) for v in group["shares_burned"])
            )

            if total_supply > 0:
                current_value = mul_div_down(net_shares, total_assets, total_supply)
                pool_share_pct = net_shares / total_supply * 100
            else:
                current_value = 0
                pool_share_pct = 0.0

            rows.append({
                "holder_id": holder_id,
                "deposited": deposited,
                "withdrawn": withdrawn,
                "net_shares": net_shares,
                "current_value": current_value,
                "pool_share_pct": pool_share_pct,
                "pnl": current_value + withdrawn - deposited,
            })

        df = pd.DataFrame(rows, columns=POSITION_COLUMNS)

        # Largest holders first
        df = df.sort_values("net_shares", ascending=False, kind="stable").reset_index(drop=True)

        return df
