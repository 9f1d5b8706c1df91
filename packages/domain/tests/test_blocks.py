"""Tests for blocks architecture.

Tests cover:
- BlockContext get/set/has operations
- Topological sort and dependency resolution
- BlockExecutor validation and execution
- VaultLedgerBlock and HolderPositionsBlock over a vault history
"""

import pytest
import pandas as pd

from vault_domain import Vault, InMemoryStorage, VaultSettings
from vault_domain.blocks import (
    Block,
    BlockContext,
    BlockExecutor,
    VaultLedgerBlock,
    HolderPositionsBlock,
)
from vault_domain.blocks.base import topological_sort, CircularDependencyError
from vault_domain.blocks.ledger import LEDGER_COLUMNS
from vault_domain.blocks.positions import POSITION_COLUMNS


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def vault_history():
    """alice 1000 in, bob 500 in, alice redeems 400 shares -> pool (1100, 1100)."""
    vault = Vault(InMemoryStorage(), settings=VaultSettings())
    vault.initialize("USDC")
    vault.deposit(1_000, holder_id="alice")
    vault.deposit(500, holder_id="bob")
    vault.withdraw(400, holder_id="alice")
    return vault.history


def run_ledger(events):
    context = BlockContext()
    context.set("vault_events", events)
    VaultLedgerBlock().execute(context)
    return context


# =============================================================================
# BlockContext Tests
# =============================================================================

def test_block_context_get_set():
    """Test basic get/set operations."""
    context = BlockContext()
    context.set("key1", "value1")
    assert context.get("key1") == "value1"


def test_block_context_has():
    """Test has() method."""
    context = BlockContext()
    assert not context.has("key1")
    context.set("key1", "value1")
    assert context.has("key1")


def test_block_context_get_missing_key():
    """Test that getting missing key raises KeyError."""
    context = BlockContext()
    with pytest.raises(KeyError, match="Key 'missing' not found"):
        context.get("missing")


# =============================================================================
# Topological Sort Tests
# =============================================================================

class SimpleBlock(Block):
    """Simple block for testing."""

    def __init__(self, name, inputs, outputs):
        self.name = name
        self._inputs = inputs
        self._outputs = outputs

    def inputs(self):
        return self._inputs

    def outputs(self):
        return self._outputs

    def execute(self, context):
        for output in self._outputs:
            context.set(output, f"{self.name}_output")

    def __repr__(self):
        return f"SimpleBlock({self.name})"


def test_topological_sort_linear_chain():
    """Test sorting linear dependency chain: A -> B -> C."""
    block_a = SimpleBlock("A", [], ["data_a"])
    block_b = SimpleBlock("B", ["data_a"], ["data_b"])
    block_c = SimpleBlock("C", ["data_b"], ["data_c"])

    assert topological_sort([block_c, block_a, block_b]) == [block_a, block_b, block_c]


def test_topological_sort_circular_dependency():
    """Test that circular dependencies are detected."""
    block_a = SimpleBlock("A", ["data_b"], ["data_a"])
    block_b = SimpleBlock("B", ["data_a"], ["data_b"])

    with pytest.raises(CircularDependencyError, match="Circular dependency detected"):
        topological_sort([block_a, block_b])


def test_topological_sort_duplicate_output():
    """Test that duplicate outputs are detected."""
    block_a = SimpleBlock("A", [], ["data_a"])
    block_b = SimpleBlock("B", [], ["data_a"])

    with pytest.raises(ValueError, match="Multiple blocks produce"):
        topological_sort([block_a, block_b])


def test_topological_sort_vault_blocks():
    """Test that the ledger block runs before the positions block regardless of order."""
    positions = HolderPositionsBlock()
    ledger = VaultLedgerBlock()
    assert topological_sort([positions, ledger]) == [ledger, positions]


# =============================================================================
# BlockExecutor Tests
# =============================================================================

def test_block_executor_missing_input():
    """Test that executor validates required inputs."""
    executor = BlockExecutor([VaultLedgerBlock()])

    with pytest.raises(KeyError, match="requires input 'vault_events'"):
        executor.execute(BlockContext())


def test_block_executor_missing_output():
    """Test that executor validates block outputs."""

    class BadBlock(Block):
        def inputs(self):
            return []

        def outputs(self):
            return ["output"]

        def execute(self, context):
            pass

    with pytest.raises(ValueError, match="declared output 'output' but didn't write"):
        BlockExecutor([BadBlock()]).execute(BlockContext())


def test_block_executor_full_pipeline(vault_history):
    """Test executor produces ledger, summary and positions in one pass."""
    context = BlockContext()
    context.set("vault_events", vault_history)

    BlockExecutor([HolderPositionsBlock(), VaultLedgerBlock()]).execute(context)

    for key in ("vault_ledger", "vault_summary", "vault_positions"):
        assert context.has(key)


# =============================================================================
# VaultLedgerBlock Tests
# =============================================================================

def test_ledger_block_rows(vault_history):
    """Test one ledger row per event with flows split by direction."""
    ledger_df = run_ledger(vault_history).get("vault_ledger")

    assert list(ledger_df.columns) == LEDGER_COLUMNS
    assert list(ledger_df["event_type"]) == ["pool_initialized", "deposit", "deposit", "withdrawal"]
    assert list(ledger_df["sequence"]) == [0, 1, 2, 3]

    withdrawal = ledger_df.iloc[3]
    assert withdrawal["holder_id"] == "alice"
    assert withdrawal["assets_out"] == 400
    assert withdrawal["shares_burned"] == 400
    assert withdrawal["assets_in"] == 0
    assert (withdrawal["assets_before"], withdrawal["supply_before"]) == (1_500, 1_500)
    assert (withdrawal["assets_after"], withdrawal["supply_after"]) == (1_100, 1_100)
    assert withdrawal["share_price_after"] == 1.0


def test_ledger_block_sorts_by_sequence(vault_history):
    """Test events handed over out of order come back in sequence order."""
    ledger_df = run_ledger(list(reversed(vault_history))).get("vault_ledger")
    assert list(ledger_df["sequence"]) == [0, 1, 2, 3]


def test_ledger_block_summary(vault_history):
    """Test summary metrics after the last event."""
    summary = run_ledger(vault_history).get("vault_summary").iloc[0]

    assert summary["asset_id"] == "USDC"
    assert summary["total_assets"] == 1_100
    assert summary["total_supply"] == 1_100
    assert summary["share_price"] == 1.0
    assert summary["deposits_count"] == 2
    assert summary["withdrawals_count"] == 1
    assert summary["zero_share_deposits"] == 0
    assert summary["gross_inflow"] == 1_500
    assert summary["gross_outflow"] == 400
    assert summary["net_flow"] == 1_100


def test_ledger_block_empty_history():
    """Test an empty history yields an empty ledger and an empty-pool summary."""
    context = run_ledger([])

    ledger_df = context.get("vault_ledger")
    assert ledger_df.empty
    assert list(ledger_df.columns) == LEDGER_COLUMNS

    summary = context.get("vault_summary").iloc[0]
    assert summary["asset_id"] is None
    assert summary["total_assets"] == 0
    assert summary["share_price"] == 1.0


def test_ledger_block_counts_zero_share_deposits():
    """Test dust deposits are counted separately."""
    storage = InMemoryStorage()
    storage.set("asset_id", "USDC")
    storage.set("total_assets", 1_001)
    storage.set("total_supply", 1_000)
    vault = Vault(storage, settings=VaultSettings())
    vault.deposit(1)
    vault.deposit(3)

    summary = run_ledger(vault.history).get("vault_summary").iloc[0]
    assert summary["deposits_count"] == 2
    assert summary["zero_share_deposits"] == 1
    assert summary["asset_id"] is None


# =============================================================================
# HolderPositionsBlock Tests
# =============================================================================

def test_positions_block(vault_history):
    """Test per-holder positions valued at the latest exchange rate."""
    context = run_ledger(vault_history)
    HolderPositionsBlock().execute(context)
    positions_df = context.get("vault_positions")

    assert list(positions_df.columns) == POSITION_COLUMNS
    assert list(positions_df["holder_id"]) == ["alice", "bob"]

    alice = positions_df.iloc[0]
    assert alice["deposited"] == 1_000
    assert alice["withdrawn"] == 400
    assert alice["net_shares"] == 600
    assert alice["current_value"] == 600
    assert alice["pool_share_pct"] == pytest.approx(600 / 1_100 * 100)
    assert alice["pnl"] == 0

    bob = positions_df.iloc[1]
    assert bob["net_shares"] == 500
    assert bob["pool_share_pct"] == pytest.approx(500 / 1_100 * 100)


def test_positions_block_rounding_loss():
    """Test a holder entering at an uneven rate shows the truncation as PnL."""
    storage = InMemoryStorage()
    storage.set("asset_id", "USDC")
    storage.set("total_assets", 1_001)
    storage.set("total_supply", 1_000)
    vault = Vault(storage, settings=VaultSettings())
    vault.deposit(3, holder_id="carol")  # 2 shares, pool (1004, 1002)

    context = run_ledger(vault.history)
    HolderPositionsBlock().execute(context)
    carol = context.get("vault_positions").iloc[0]

    assert carol["net_shares"] == 2
    assert carol["current_value"] == 2
    assert carol["pnl"] == -1


def test_positions_block_ignores_unlabelled_rows():
    """Test events without holder_id do not produce positions."""
    vault = Vault(InMemoryStorage(), settings=VaultSettings())
    vault.initialize("USDC")
    vault.deposit(1_000)

    context = run_ledger(vault.history)
    HolderPositionsBlock().execute(context)
    positions_df = context.get("vault_positions")

    assert positions_df.empty
    assert list(positions_df.columns) == POSITION_COLUMNS


def test_positions_block_after_full_exit():
    """Test a drained pool values remaining positions at zero."""
    vault = Vault(InMemoryStorage(), settings=VaultSettings())
    vault.initialize("USDC")
    vault.deposit(1_000, holder_id="alice")
    vault.withdraw(1_000, holder_id="alice")

    context = run_ledger(vault.history)
    HolderPositionsBlock().execute(context)
    alice = context.get("vault_positions").iloc[0]

    assert alice["net_shares"] == 0
    assert alice["current_value"] == 0
    assert alice["pool_share_pct"] == 0.0
    assert alice["pnl"] == 0


def test_positions_block_custom_ledger_key(vault_history):
    """Test positions can read a ledger stored under another key."""
    context = run_ledger(vault_history)
    context.set("audited_ledger", context.get("vault_ledger"))

    block = HolderPositionsBlock(ledger_key="audited_ledger")
    assert block.inputs() == ["audited_ledger"]
    block.execute(context)

    assert isinstance(context.get("vault_positions"), pd.DataFrame)
