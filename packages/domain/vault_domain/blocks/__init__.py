"""Computation blocks for vault reporting.

This package contains the computation layer that transforms ledger events into
DataFrames suitable for Excel rendering or other consumption.

Architecture:
    Events (ledger) → Blocks (computation) → DataFrames (output)

Available blocks:
- VaultLedgerBlock: Converts ledger events to ledger and summary DataFrames
- HolderPositionsBlock: Aggregates the ledger into per-holder positions

Usage:
    from vault_domain.blocks import BlockExecutor, BlockContext, VaultLedgerBlock, HolderPositionsBlock

    context = BlockContext()
    context.set("vault_events", vault.history)

    executor = BlockExecutor([HolderPositionsBlock(), VaultLedgerBlock()])
    executor.execute(context)

    positions_df = context.get("vault_positions")
"""

from .base import Block, BlockExecutor, BlockContext, CircularDependencyError, topological_sort
from .ledger import VaultLedgerBlock
from .positions import HolderPositionsBlock

__all__ = [
    "Block",
    "BlockExecutor",
    "BlockContext",
    "CircularDependencyError",
    "topological_sort",
    "VaultLedgerBlock",
    "HolderPositionsBlock",
]
