"""Ledger replay - audit a recorded vault history.

A vault history is reproducible: replaying its events in sequence order
through a fresh vault must return the same result and reach the same
totals at every step. replay_events() performs that replay and reports the
first event that does not reproduce.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import TypeAdapter, ValidationError

from ..config import VaultSettings
from ..errors import InvariantViolationError, VaultError
from ..schemas import LedgerEvent, PoolInitialized, PoolState, VaultEvent
from .storage import InMemoryStorage
from .vault import Vault

logger = logging.getLogger(__name__)

_EVENTS_ADAPTER = TypeAdapter(List[VaultEvent])


def parse_events(records: Iterable[Mapping[str, Any]]) -> List[LedgerEvent]:
    """Validate raw event dicts (e.g. loaded from JSON) into ledger events.

    Each record is dispatched on its event_type field.

    Raises:
        InvariantViolationError: If a record is not a valid ledger event
    """
    try:
        return _EVENTS_ADAPTER.validate_python(list(records))
    except ValidationError as exc:
        raise InvariantViolationError(
            f"Invalid ledger records: {exc.error_count()} error(s)",
            {"errors": [e["msg"] for e in exc.errors()]},
        ) from exc


def replay_events(
    events: Iterable[LedgerEvent],
    fee_rate: Optional[int] = None,
    settings: Optional[VaultSettings] = None,
) -> PoolState:
    """Replay a vault history and return the final pool state.

    Args:
        events: Ledger events; must start with PoolInitialized at sequence 0
                and be contiguous
        fee_rate: Fee rate for the replay vault (default: settings)
        settings: Settings for the replay vault (default: get_settings())

    Returns:
        PoolState after the last event

    Raises:
        InvariantViolationError: If the history is empty, out of order,
            or any recorded result or total does not reproduce. An error
            raised while re-applying an event is wrapped, with the original
            as __cause__.

    Example:
        vault = Vault(InMemoryStorage())
        vault.initialize("USDC")
        vault.deposit(1_000)

        replay_events(vault.history) == vault.state()  # True
    """
    ordered = sorted(events, key=lambda e: e.sequence)
    if not ordered:
        raise InvariantViolationError("Cannot replay an empty history")
    if not isinstance(ordered[0], PoolInitialized):
        raise InvariantViolationError(
            "History must start with pool initialization",
            {"first_event": type(ordered[0]).__name__},
        )

    vault = Vault(InMemoryStorage(), fee_rate=fee_rate, settings=settings)

    for expected_sequence, event in enumerate(ordered):
        if event.sequence != expected_sequence:
            raise InvariantViolationError(
                f"History gap: expected sequence {expected_sequence}, got {event.sequence}",
                {"sequence": event.sequence},
            )

        if vault.is_initialized:
            current = vault.state()
            if (current.total_assets, current.total_supply) != (event.assets_before, event.supply_before):
                raise InvariantViolationError(
                    f"Event {event.sequence} starts from a different pool state",
                    {
                        "sequence": event.sequence,
                        "recorded": [event.assets_before, event.supply_before],
                        "replayed": [current.total_assets, current.total_supply],
                    },
                )

        try:
            result = event.apply(vault)
        except VaultError as exc:
            raise InvariantViolationError(
                f"Event {event.sequence} does not reproduce: {exc.message}",
                {"sequence": event.sequence, "error_code": int(exc.code)},
            ) from exc

        if result != event.result:
            raise InvariantViolationError(
                f"Event {event.sequence} result does not reproduce: "
                f"recorded {event.result}, replayed {result}",
                {"sequence": event.sequence},
            )

        after = vault.state()
        if (after.total_assets, after.total_supply) != (event.assets_after, event.supply_after):
            raise InvariantViolationError(
                f"Event {event.sequence} ends at a different pool state",
                {
                    "sequence": event.sequence,
                    "recorded": [event.assets_after, event.supply_after],
                    "replayed": [after.total_assets, after.total_supply],
                },
            )

    final = vault.state()
    logger.debug(
        "Replayed %d events: assets=%d, supply=%d",
        len(ordered), final.total_assets, final.total_supply,
        extra={"operation": "replay", "asset_id": final.asset_id},
    )
    return final
