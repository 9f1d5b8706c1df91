"""Share-accounting engine.

The Vault converts deposited assets into shares at the pool's current
exchange rate and redeems shares back into a pro-rata amount of assets.
It owns exactly one pool, persisted through a StorageBackend, and exposes
it only through the operations below:

    initialize(asset_id)           bind the pool, zero the totals (once)
    deposit(amount) -> shares      mint shares for deposited assets
    withdraw(shares) -> assets     burn shares, compute assets owed
    total_assets() / total_supply() / get_config()
    preview_deposit() / preview_withdraw() / share_price() / state()

Rounding policy:
    Both conversions truncate, so any fractional remainder stays in the
    pool. A depositor never receives more shares, and a withdrawer never
    more assets, than their exact pro-rata amount.

Atomicity:
    Every operation loads the state once, performs all checks and all
    arithmetic, and only then writes to storage. A raised VaultError
    therefore never leaves a partially updated pool behind.

The vault never moves tokens. The caller transfers exactly the computed
amount in the same transaction, and serializes concurrent calls on the
same pool.
"""

import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import Callable, Iterator, List, Optional, Tuple

from pydantic import ValidationError

from ..config import VaultSettings, get_settings
from ..errors import (
    AlreadyInitializedError,
    DepositTooSmallError,
    InsufficientBalanceError,
    InvalidFeeRateError,
    InvalidInputError,
    InvariantViolationError,
    NotInitializedError,
    VaultError,
)
from ..schemas import (
    DepositApplied,
    LedgerEvent,
    PoolInitialized,
    PoolState,
    VaultConfig,
    WithdrawalApplied,
    MAX_FEE_RATE_BPS,
)
from .checked_math import checked_add, checked_sub, mul_div_down, require_i128
from .storage import (
    ASSET_ID_FIELD,
    TOTAL_ASSETS_FIELD,
    TOTAL_SUPPLY_FIELD,
    StorageBackend,
)

logger = logging.getLogger(__name__)


class Vault:
    """Pooled-asset vault over one storage scope.

    Example:
        vault = Vault(InMemoryStorage())
        vault.initialize("USDC")

        vault.deposit(1_000)          # 1000 shares (bootstrap 1:1)
        vault.deposit(500)            # 500 shares
        vault.withdraw(1_500)         # 1500 assets, pool back to (0, 0)

        vault.get_config()
        # VaultConfig(asset_id="USDC", total_supply=0, total_assets=0, fee_rate=30)
    """

    def __init__(
        self,
        storage: StorageBackend,
        fee_rate: Optional[int] = None,
        settings: Optional[VaultSettings] = None,
        event_sink: Optional[Callable[[LedgerEvent], None]] = None,
    ):
        """Create a vault over a storage scope.

        Args:
            storage: Persistence for this vault's fields
            fee_rate: Informational fee rate in basis points
                      (default: settings.default_fee_rate)
            settings: Vault settings (default: get_settings())
            event_sink: Receives each committed event instead of self.history.
                        Long-lived hosts pass one to persist events rather
                        than hold them all in memory.

        Raises:
            InvalidFeeRateError: If fee_rate is not an integer in 0..10000
        """
        self.storage = storage
        self.settings = settings or get_settings()

        if fee_rate is None:
            fee_rate = self.settings.default_fee_rate
        if isinstance(fee_rate, bool) or not isinstance(fee_rate, int):
            raise InvalidFeeRateError(fee_rate)
        if not 0 <= fee_rate <= MAX_FEE_RATE_BPS:
            raise InvalidFeeRateError(fee_rate)
        self.fee_rate = fee_rate

        # Committed transitions of this instance, in order. Grows for the
        # lifetime of the instance unless an event_sink is given.
        self.history: List[LedgerEvent] = []
        self.event_sink = event_sink
        self._next_sequence = 0

    # ------------------------------------------------------------------ #
    # Initialization
    # ------------------------------------------------------------------ #

    def initialize(self, asset_id: str) -> None:
        """Bind the pool to its underlying asset with zeroed totals.

        Initialization is a single irreversible transition: a second call is
        refused and does not touch the stored state.

        Raises:
            AlreadyInitializedError: If the pool is already bound to an asset
            InvalidInputError: If asset_id is not a non-empty string
        """
        with self._guard("initialize"):
            if self.storage.has(ASSET_ID_FIELD):
                raise AlreadyInitializedError(self.storage.get(ASSET_ID_FIELD))

            if not isinstance(asset_id, str) or not asset_id:
                raise InvalidInputError(
                    "asset_id must be a non-empty string", "asset_id", asset_id
                )

            state = PoolState(asset_id=asset_id)
            self.storage.set(ASSET_ID_FIELD, state.asset_id)
            self.storage.set(TOTAL_SUPPLY_FIELD, state.total_supply)
            self.storage.set(TOTAL_ASSETS_FIELD, state.total_assets)

        self._record(
            PoolInitialized(
                sequence=self._next_sequence,
                asset_id=asset_id,
                assets_before=0,
                supply_before=0,
                assets_after=0,
                supply_after=0,
            )
        )
        logger.info(
            "Vault initialized for asset %s", asset_id,
            extra={"operation": "initialize", "asset_id": asset_id},
        )

    # ------------------------------------------------------------------ #
    # Deposit
    # ------------------------------------------------------------------ #

    def deposit(self, amount: int, holder_id: Optional[str] = None) -> int:
        """Mint shares for a deposit of `amount` assets.

        Shares minted:
            - Empty pool (total_supply == 0): amount (1:1 bootstrap rate)
            - Otherwise: floor(amount * total_supply / total_assets)

        A dust deposit that computes zero shares is accepted unless
        settings.reject_zero_share_deposits is set.

        Args:
            amount: Assets deposited, in the asset's smallest unit (> 0)
            holder_id: Optional label recorded in the ledger event

        Returns:
            Number of shares minted

        Raises:
            InvalidInputError: If amount is not a positive integer
            NotInitializedError: If initialize() has not run
            DepositTooSmallError: If zero shares would be minted and that is rejected
            AmountOverflowError: If a new total exceeds 128 bits
        """
        with self._guard("deposit"):
            self._require_holder(holder_id)
            before = self._load_state("deposit")
            shares, after = self._compute_deposit(before, amount)

            if shares == 0:
                if self.settings.reject_zero_share_deposits:
                    raise DepositTooSmallError(amount, before.total_assets, before.total_supply)
                logger.warning(
                    "Deposit of %d mints zero shares; assets accrue to existing holders",
                    amount,
                    extra={"operation": "deposit", "asset_id": before.asset_id, "amount": amount},
                )

            event = DepositApplied(
                sequence=self._next_sequence,
                holder_id=holder_id,
                amount=amount,
                shares_minted=shares,
                assets_before=before.total_assets,
                supply_before=before.total_supply,
                assets_after=after.total_assets,
                supply_after=after.total_supply,
            )
            self._commit(before, after)

        self._record(event)
        logger.info(
            "Deposited %d, minted %d shares (assets=%d, supply=%d)",
            amount, shares, after.total_assets, after.total_supply,
            extra={
                "operation": "deposit",
                "asset_id": after.asset_id,
                "amount": amount,
                "shares": shares,
                "total_assets": after.total_assets,
                "total_supply": after.total_supply,
            },
        )
        return shares

    def preview_deposit(self, amount: int) -> int:
        """Shares a deposit of `amount` would mint right now (no state change)."""
        with self._guard("preview_deposit"):
            state = self._load_state("preview_deposit")
            shares, _ = self._compute_deposit(state, amount)
        return shares

    def _compute_deposit(self, state: PoolState, amount: int) -> Tuple[int, PoolState]:
        amount = require_i128(amount, "amount")
        if amount <= 0:
            raise InvalidInputError(f"Deposit amount must be positive, got {amount}", "amount", amount)

        if state.is_empty:
            # First depositor, or every share was redeemed: reset to 1:1
            shares = amount
        else:
            shares = mul_div_down(amount, state.total_supply, state.total_assets)

        after = self._successor(
            state,
            total_assets=checked_add(state.total_assets, amount),
            total_supply=checked_add(state.total_supply, shares),
        )
        return shares, after

    # ------------------------------------------------------------------ #
    # Withdraw
    # ------------------------------------------------------------------ #

    def withdraw(self, shares: int, holder_id: Optional[str] = None) -> int:
        """Burn `shares` and compute the assets owed for them.

        Assets paid: floor(shares * total_assets / total_supply). Redeeming
        the entire supply pays out the entire pool and leaves (0, 0).

        Whether the caller actually holds `shares` is checked by the share
        ledger outside the vault; only pool-level sufficiency is checked here.

        Args:
            shares: Shares redeemed (> 0)
            holder_id: Optional label recorded in the ledger event

        Returns:
            Assets owed to the withdrawer

        Raises:
            InvalidInputError: If shares is not a positive integer
            NotInitializedError: If initialize() has not run
            InsufficientBalanceError: If shares exceed the supply or the payout
                                      exceeds the pool's assets
            DivisionByZeroError: If the supply is zero at conversion time
        """
        with self._guard("withdraw"):
            self._require_holder(holder_id)
            before = self._load_state("withdraw")
            assets_paid, after = self._compute_withdraw(before, shares)
            event = WithdrawalApplied(
                sequence=self._next_sequence,
                holder_id=holder_id,
                shares=shares,
                assets_paid=assets_paid,
                assets_before=before.total_assets,
                supply_before=before.total_supply,
                assets_after=after.total_assets,
                supply_after=after.total_supply,
            )
            self._commit(before, after)

        self._record(event)
        logger.info(
            "Redeemed %d shares for %d (assets=%d, supply=%d)",
            shares, assets_paid, after.total_assets, after.total_supply,
            extra={
                "operation": "withdraw",
                "asset_id": after.asset_id,
                "amount": assets_paid,
                "shares": shares,
                "total_assets": after.total_assets,
                "total_supply": after.total_supply,
            },
        )
        return assets_paid

    def preview_withdraw(self, shares: int) -> int:
        """Assets a redemption of `shares` would pay right now (no state change)."""
        with self._guard("preview_withdraw"):
            state = self._load_state("preview_withdraw")
            assets_paid, _ = self._compute_withdraw(state, shares)
        return assets_paid

    def _compute_withdraw(self, state: PoolState, shares: int) -> Tuple[int, PoolState]:
        shares = require_i128(shares, "shares")
        if shares <= 0:
            raise InvalidInputError(f"Withdraw shares must be positive, got {shares}", "shares", shares)

        if shares > state.total_supply:
            raise InsufficientBalanceError(
                f"Cannot redeem {shares} shares: only {state.total_supply} outstanding",
                requested=shares,
                available=state.total_supply,
            )

        assets_paid = mul_div_down(shares, state.total_assets, state.total_supply)

        # Only reachable after an earlier invariant breach
        if assets_paid > state.total_assets:
            raise InsufficientBalanceError(
                f"Payout {assets_paid} exceeds pool assets {state.total_assets}",
                requested=assets_paid,
                available=state.total_assets,
            )

        after = self._successor(
            state,
            total_assets=checked_sub(state.total_assets, assets_paid),
            total_supply=checked_sub(state.total_supply, shares),
        )
        return assets_paid, after

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def total_assets(self) -> int:
        with self._guard("total_assets"):
            return self._load_state("total_assets").total_assets

    def total_supply(self) -> int:
        with self._guard("total_supply"):
            return self._load_state("total_supply").total_supply

    def get_config(self) -> VaultConfig:
        with self._guard("get_config"):
            state = self._load_state("get_config")
        return VaultConfig(
            asset_id=state.asset_id,
            total_supply=state.total_supply,
            total_assets=state.total_assets,
            fee_rate=self.fee_rate,
        )

    def state(self) -> PoolState:
        """Validated snapshot of the pool's current totals."""
        with self._guard("state"):
            return self._load_state("state")

    def share_price(self) -> Decimal:
        """Assets per share at the current exchange rate (1 for an empty pool)."""
        return self.state().share_price

    @property
    def is_initialized(self) -> bool:
        return self.storage.has(ASSET_ID_FIELD)

    # ------------------------------------------------------------------ #
    # State I/O
    # ------------------------------------------------------------------ #

    def _load_state(self, operation: str) -> PoolState:
        """Read and validate the pool fields.

        Raises:
            NotInitializedError: If no asset is bound
            InvariantViolationError: If a total is missing or breaks an invariant
        """
        if not self.storage.has(ASSET_ID_FIELD):
            raise NotInitializedError(operation)

        try:
            asset_id = self.storage.get(ASSET_ID_FIELD)
            total_assets = self.storage.get(TOTAL_ASSETS_FIELD)
            total_supply = self.storage.get(TOTAL_SUPPLY_FIELD)
        except KeyError as exc:
            raise InvariantViolationError(
                f"Pool state incomplete: {exc.args[0]}", {"operation": operation}
            ) from exc

        try:
            state = PoolState(
                asset_id=asset_id,
                total_assets=total_assets,
                total_supply=total_supply,
            )
        except ValidationError as exc:
            raise InvariantViolationError(
                f"Stored pool state is invalid: {exc.error_count()} error(s)",
                {
                    "operation": operation,
                    "total_assets": repr(total_assets),
                    "total_supply": repr(total_supply),
                },
            ) from exc

        logger.debug(
            "Invariants OK: assets=%d, supply=%d", state.total_assets, state.total_supply,
            extra={"operation": operation, "asset_id": state.asset_id},
        )
        return state

    def _successor(self, state: PoolState, total_assets: int, total_supply: int) -> PoolState:
        try:
            return PoolState(
                asset_id=state.asset_id,
                total_assets=total_assets,
                total_supply=total_supply,
            )
        except ValidationError as exc:
            raise InvariantViolationError(
                "Transition would break the pool invariants",
                {"total_assets": total_assets, "total_supply": total_supply},
            ) from exc

    def _require_holder(self, holder_id: Optional[str]) -> None:
        if holder_id is not None and (not isinstance(holder_id, str) or not holder_id):
            raise InvalidInputError(
                "holder_id must be a non-empty string when given", "holder_id", holder_id
            )

    def _commit(self, before: PoolState, after: PoolState) -> None:
        """Write both totals; restore the first if the second write fails."""
        self.storage.set(TOTAL_ASSETS_FIELD, after.total_assets)
        try:
            self.storage.set(TOTAL_SUPPLY_FIELD, after.total_supply)
        except Exception:
            self.storage.set(TOTAL_ASSETS_FIELD, before.total_assets)
            raise

    def _record(self, event: LedgerEvent) -> None:
        self._next_sequence += 1
        if self.event_sink is None:
            self.history.append(event)
        else:
            self.event_sink(event)

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        """Log a rejected operation with its error code, then re-raise."""
        try:
            yield
        except VaultError as exc:
            logger.warning(
                "Vault %s rejected: %s", operation, exc.message,
                extra={"operation": operation, "error_code": int(exc.code)},
            )
            raise
