"""Excel rendering for vault reports."""

from .ledger_sheet_renderer import LedgerSheetRenderer

__all__ = ["LedgerSheetRenderer"]
