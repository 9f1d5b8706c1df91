"""Reporting pipeline for vault histories.

A vault report is built in stages. The ledger events are turned into a
ledger table, the ledger table into per-holder positions, and each stage
reads the previous one's DataFrames. Stages are Blocks; they exchange data
through a BlockContext keyed by name ("vault_events", "vault_ledger",
"vault_summary", "vault_positions"), and BlockExecutor runs them in the
order their keys require.

Reporting never touches pool storage: blocks only read events that the
Vault has already committed.
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field


# =============================================================================
# Block Context
# =============================================================================

@dataclass
class BlockContext:
    """Named values shared by the stages of one report run.

    The renderer seeds "vault_events"; every block adds its DataFrames.

    Example:
        context = BlockContext()
        context.set("vault_events", vault.history)

        VaultLedgerBlock().execute(context)

        ledger_df = context.get("vault_ledger")
    """

    _data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        """Return the value stored under key.

        Raises:
            KeyError: If no stage has produced key yet
        """
        try:
            return self._data[key]
        except KeyError:
            raise KeyError(
                f"Key '{key}' not found in context. Available keys: {self.keys()}"
            ) from None

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def has(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> List[str]:
        return list(self._data)


# =============================================================================
# Block Base Class
# =============================================================================

class Block(ABC):
    """One stage of the reporting pipeline.

    A block names the context keys it consumes and the keys it produces;
    the executor uses those names alone to order the stages.

    Subclass example:
        class NetFlowBlock(Block):
            def inputs(self) -> List[str]:
                return ["vault_summary"]

            def outputs(self) -> List[str]:
                return ["vault_net_flow"]

            def execute(self, context: BlockContext) -> None:
                summary = context.get("vault_summary").iloc[0]
                context.set("vault_net_flow", summary["net_flow"])
    """

    @abstractmethod
    def inputs(self) -> List[str]:
        """Context keys this block consumes."""

    @abstractmethod
    def outputs(self) -> List[str]:
        """Context keys this block produces."""

    @abstractmethod
    def execute(self, context: BlockContext) -> None:
        """Read the input keys, compute, and set every output key."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(inputs={self.inputs()}, outputs={self.outputs()})"


# =============================================================================
# Dependency Resolution
# =============================================================================

class CircularDependencyError(Exception):
    """Blocks consume each other's outputs in a cycle."""


def topological_sort(blocks: List[Block]) -> List[Block]:
    """Order blocks so each runs after the producers of its inputs.

    Kahn's algorithm over the producer -> consumer edges. A key that no block
    produces (such as "vault_events") is expected in the seeded context and
    adds no edge. Ties keep the order the blocks were given in.

    Raises:
        ValueError: If two blocks produce the same key
        CircularDependencyError: If no valid order exists

    Example:
        topological_sort([HolderPositionsBlock(), VaultLedgerBlock()])
        → [VaultLedgerBlock, HolderPositionsBlock]
    """
    producers: Dict[str, Block] = {}
    for block in blocks:
        for key in block.outputs():
            if key in producers:
                raise ValueError(
                    f"Multiple blocks produce '{key}': {producers[key]} and {block}"
                )
            producers[key] = block

    consumers: Dict[Block, List[Block]] = {block: [] for block in blocks}
    pending: Dict[Block, int] = {}
    for block in blocks:
        upstream = {producers[key] for key in block.inputs() if key in producers}
        pending[block] = len(upstream)
        for producer in upstream:
            consumers[producer].append(block)

    ready = deque(block for block in blocks if pending[block] == 0)
    ordered: List[Block] = []
    while ready:
        block = ready.popleft()
        ordered.append(block)
        for consumer in consumers[block]:
            pending[consumer] -= 1
            if pending[consumer] == 0:
                ready.append(consumer)

    if len(ordered) != len(blocks):
        stuck = [block for block in blocks if pending[block] > 0]
        raise CircularDependencyError(f"Circular dependency detected among blocks: {stuck}")

    return ordered


# =============================================================================
# Block Executor
# =============================================================================

class BlockExecutor:
    """Runs a set of reporting blocks over one context.

    Each block's inputs are checked before it runs and its outputs after, so
    a stage that forgets a key fails at that stage rather than downstream.

    Example:
        executor = BlockExecutor([HolderPositionsBlock(), VaultLedgerBlock()])
        context = BlockContext()
        context.set("vault_events", vault.history)

        executor.execute(context)

        summary_df = context.get("vault_summary")
        positions_df = context.get("vault_positions")
    """

    def __init__(self, blocks: List[Block]):
        self.blocks = blocks
        self._order: Optional[List[Block]] = None

    def execute(self, context: BlockContext) -> BlockContext:
        """Run every block once, in dependency order.

        Raises:
            CircularDependencyError: If the blocks cannot be ordered
            KeyError: If a block's input is missing when it is reached
            ValueError: If a block does not set one of its outputs
        """
        if self._order is None:
            self._order = topological_sort(self.blocks)

        for block in self._order:
            missing = [key for key in block.inputs() if not context.has(key)]
            if missing:
                raise KeyError(
                    f"Block {block} requires input '{missing[0]}' but it's not in context. "
                    f"Available keys: {context.keys()}"
                )

            block.execute(context)

            unset = [key for key in block.outputs() if not context.has(key)]
            if unset:
                raise ValueError(
                    f"Block {block} declared output '{unset[0]}' but didn't write it to context"
                )

        return context
