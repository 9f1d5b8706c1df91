"""Vault report renderer: summary, ledger and holder positions sheets."""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, Border, Side, Alignment, PatternFill
from openpyxl.workbook.defined_name import DefinedName
from openpyxl.worksheet.worksheet import Worksheet

from vault_domain.blocks import (
    BlockContext,
    BlockExecutor,
    HolderPositionsBlock,
    VaultLedgerBlock,
)
from vault_domain.schemas import LedgerEvent, VaultReportCFG

SUMMARY_SHEET = "Summary"
LEDGER_SHEET = "Ledger"
POSITIONS_SHEET = "Positions"

AMOUNT_FORMAT = "#,##0.0000000"
PRICE_FORMAT = "0.0000000"
PCT_FORMAT = "0.00"

EVENT_LABELS = {
    "pool_initialized": "Initialize",
    "deposit": "Deposit",
    "withdrawal": "Withdraw",
}


class LedgerSheetRenderer:
    """Render a vault history into a workbook.

    Values are written in display units (smallest unit / 10**display_decimals).
    Share prices and net flows are live formulas over the written values, so
    edits to the amounts recalculate in Excel.
    """

    def __init__(self, config: VaultReportCFG, events: List[LedgerEvent]):
        self.config = config
        self.events = list(events)

        self.bold_font = Font(bold=True)
        self.title_font = Font(bold=True, size=14)
        self.black_font = Font(color="000000")  # Black for calculated values

        # Header styling
        self.header_font = Font(bold=True, color="FFFFFF")  # White text on dark blue
        self.header_fill = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")
        self.total_fill = PatternFill(start_color="F2F2F2", end_color="F2F2F2", fill_type="solid")

        self.thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )
        self.center_align = Alignment(horizontal='center', vertical='center')

        # Label -> cell reference on the summary sheet, filled by build_workbook()
        self.summary_cells: Dict[str, str] = {}

    def render(self, output_path: str) -> str:
        wb = self.build_workbook()
        wb.save(output_path)
        return output_path

    def build_workbook(self) -> Workbook:
        context = self._run_blocks()

        wb = Workbook()
        wb.remove(wb.active)

        self._render_summary_sheet(wb, context.get("vault_summary"))
        self._render_ledger_sheet(wb, context.get("vault_ledger"))
        if self.config.include_positions:
            self._render_positions_sheet(wb, context.get("vault_positions"))

        return wb

    def _run_blocks(self) -> BlockContext:
        context = BlockContext()
        context.set("vault_events", self.events)
        BlockExecutor([HolderPositionsBlock(), VaultLedgerBlock()]).execute(context)
        return context

    # ------------------------------------------------------------------ #
    # Sheets
    # ------------------------------------------------------------------ #

    def _render_summary_sheet(self, wb: Workbook, summary_df: pd.DataFrame) -> None:
        sheet = wb.create_sheet(SUMMARY_SHEET)
        summary = summary_df.iloc[0]

        sheet["A1"] = self.config.title
        sheet["A1"].font = self.title_font

        asset_label = self.config.asset_label or summary["asset_id"]

        rows = [
            ("asset", "Asset", asset_label, None),
            ("total_assets", "Total Value Locked", self._display(summary["total_assets"]), AMOUNT_FORMAT),
            ("total_supply", "Total Shares", self._display(summary["total_supply"]), AMOUNT_FORMAT),
            ("share_price", "Share Price", None, PRICE_FORMAT),
            ("deposits_count", "Deposits", int(summary["deposits_count"]), "0"),
            ("withdrawals_count", "Withdrawals", int(summary["withdrawals_count"]), "0"),
            ("zero_share_deposits", "Zero-Share Deposits", int(summary["zero_share_deposits"]), "0"),
            ("gross_inflow", "Gross Inflow", self._display(summary["gross_inflow"]), AMOUNT_FORMAT),
            ("gross_outflow", "Gross Outflow", self._display(summary["gross_outflow"]), AMOUNT_FORMAT),
            ("net_flow", "Net Flow", None, AMOUNT_FORMAT),
        ]

        start_row = 3
        for offset, (key, _, _, _) in enumerate(rows):
            self.summary_cells[key] = f"B{start_row + offset}"

        for offset, (key, label, value, number_format) in enumerate(rows):
            row = start_row + offset
            sheet.cell(row=row, column=1, value=label).font = self.bold_font

            if key == "share_price":
                # Empty pool prices at the 1:1 bootstrap rate
                value = (
                    f"=IF({self.summary_cells['total_supply']}=0,1,"
                    f"{self.summary_cells['total_assets']}/{self.summary_cells['total_supply']})"
                )
            elif key == "net_flow":
                value = f"={self.summary_cells['gross_inflow']}-{self.summary_cells['gross_outflow']}"

            cell = sheet.cell(row=row, column=2, value=value)
            cell.font = self.black_font
            cell.border = self.thin_border
            if number_format:
                cell.number_format = number_format

        self._add_named_range(wb, SUMMARY_SHEET, "TotalValueLocked", self.summary_cells["total_assets"])
        self._add_named_range(wb, SUMMARY_SHEET, "TotalShares", self.summary_cells["total_supply"])
        self._add_named_range(wb, SUMMARY_SHEET, "SharePrice", self.summary_cells["share_price"])

        sheet.column_dimensions["A"].width = 24
        sheet.column_dimensions["B"].width = 24

    def _render_ledger_sheet(self, wb: Workbook, ledger_df: pd.DataFrame) -> None:
        sheet = wb.create_sheet(LEDGER_SHEET)
        headers = [
            "Seq", "Type", "Holder", "Assets In", "Assets Out",
            "Shares Minted", "Shares Burned", "Assets After", "Supply After", "Share Price",
        ]
        self._write_header(sheet, headers)

        for idx, entry in enumerate(ledger_df.itertuples(index=False), start=2):
            sheet.cell(row=idx, column=1, value=int(entry.sequence))
            sheet.cell(row=idx, column=2, value=EVENT_LABELS.get(entry.event_type, entry.event_type))
            sheet.cell(row=idx, column=3, value=entry.holder_id if isinstance(entry.holder_id, str) else None)

            amounts = [
                entry.assets_in, entry.assets_out, entry.shares_minted,
                entry.shares_burned, entry.assets_after, entry.supply_after,
            ]
            for col, amount in enumerate(amounts, start=4):
                cell = sheet.cell(row=idx, column=col, value=self._display(amount))
                cell.number_format = AMOUNT_FORMAT

            price = sheet.cell(row=idx, column=10, value=f"=IF(I{idx}=0,1,H{idx}/I{idx})")
            price.number_format = PRICE_FORMAT

            for col in range(1, len(headers) + 1):
                sheet.cell(row=idx, column=col).border = self.thin_border

        sheet.freeze_panes = "A2"
        for col in range(1, len(headers) + 1):
            sheet.column_dimensions[self._col_letter(col)].width = 16

    def _render_positions_sheet(self, wb: Workbook, positions_df: pd.DataFrame) -> None:
        sheet = wb.create_sheet(POSITIONS_SHEET)
        headers = [
            "Holder", "Deposited", "Withdrawn", "Net Shares",
            "Current Value", "Pool Share %", "PnL",
        ]
        self._write_header(sheet, headers)

        for idx, position in enumerate(positions_df.itertuples(index=False), start=2):
            sheet.cell(row=idx, column=1, value=position.holder_id)
            for col, amount in enumerate(
                [position.deposited, position.withdrawn, position.net_shares, position.current_value],
                start=2,
            ):
                cell = sheet.cell(row=idx, column=col, value=self._display(amount))
                cell.number_format = AMOUNT_FORMAT

            pct = sheet.cell(row=idx, column=6, value=float(position.pool_share_pct))
            pct.number_format = PCT_FORMAT

            pnl = sheet.cell(row=idx, column=7, value=f"=E{idx}+C{idx}-B{idx}")
            pnl.number_format = AMOUNT_FORMAT

            for col in range(1, len(headers) + 1):
                sheet.cell(row=idx, column=col).border = self.thin_border

        sheet.freeze_panes = "A2"
        sheet.column_dimensions["A"].width = 20

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _write_header(self, sheet: Worksheet, headers: List[str]) -> None:
        for col, header in enumerate(headers, start=1):
            cell = sheet.cell(row=1, column=col, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.center_align
            cell.border = self.thin_border

    def _display(self, amount) -> float:
        """Smallest-unit integer → display units."""
        return float(Decimal(int(amount)) / Decimal(self.config.unit_scale))

    def _add_named_range(
        self,
        workbook: Workbook,
        sheet_name: str,
        name: str,
        cell_ref: str
    ) -> None:
        column = "".join(ch for ch in cell_ref if ch.isalpha())
        row = "".join(ch for ch in cell_ref if ch.isdigit())
        workbook.defined_names.add(
            DefinedName(
                name=name,
                attr_text=f"'{sheet_name}'!${column}${row}"
            )
        )

    @staticmethod
    def _col_letter(idx: int) -> str:
        """Convert 1-based column index to Excel column letter."""
        letter = ""
        while idx > 0:
            idx, rem = divmod(idx - 1, 26)
            letter = chr(65 + rem) + letter
        return letter


__all__ = ["LedgerSheetRenderer"]
