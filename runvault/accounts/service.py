"""Account operations: the wallet and ledger state machine.

Every operation validates its input, checks balances against the stored
state, and then persists the new wallet, holdings and ledger entries in a
single ``store.apply`` call. Refused operations return a failed
``OperationResult`` and write nothing.
"""

import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Literal, Optional, Sequence

from runvault.accounts.base import AccountStore
from runvault.clock import Clock, SystemClock
from runvault.config import Settings
from runvault.metrics.earnings import accrued_minor
from runvault.models import (
    AssetBalances,
    EntryType,
    ErrorKind,
    LedgerEntry,
    OperationResult,
    RunOrder,
    Wallet,
)
from runvault.money import as_minor, format_minor, is_finite_number, round_half_up

logger = logging.getLogger(__name__)

# Tolerance when comparing float crypto amounts against holdings
CRYPTO_EPSILON = 1e-12

CRYPTO_SYMBOLS = ("BTC", "ETH")

Direction = Literal["CRYPTO_TO_USDT", "USDT_TO_CRYPTO"]


def _ref(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


class AccountService:
    """Applies financial operations to one store.

    Operations on the same user are serialised with a per-user lock.

    Args:
        store: Account storage.
        clock: Time source for timestamps.
        settings: Minimums and fee rates.
    """

    def __init__(
        self,
        store: AccountStore,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._settings = settings or Settings()
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @property
    def store(self) -> AccountStore:
        return self._store

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def clock(self) -> Clock:
        return self._clock

    # ==================== Reads ====================

    def get_wallet(self, user_id: str) -> Wallet:
        """Stored wallet, or an empty one in the configured currency."""
        wallet = self._store.find_wallet(user_id)
        if wallet is None:
            return Wallet(currency=self._settings.currency)
        return wallet

    def get_assets(self, user_id: str) -> AssetBalances:
        return self._store.get_assets(user_id)

    def get_ledger(self, user_id: str) -> list[LedgerEntry]:
        """Ledger entries, newest first."""
        return self._store.get_ledger(user_id)

    def get_accrued(self, user_id: str) -> int:
        """Earnings not yet paid out to the available balance."""
        return accrued_minor(self._store.get_ledger(user_id))

    # ==================== Helpers ====================

    @contextmanager
    def _user_lock(self, user_id: str) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks.setdefault(user_id, threading.Lock())
        with lock:
            yield

    def _entry(
        self,
        entry_type: EntryType,
        amount_minor: int,
        currency: str,
        ref_id: Optional[str] = None,
        meta: Optional[dict[str, Any]] = None,
        created_at=None,
    ) -> LedgerEntry:
        return LedgerEntry(
            type=entry_type,
            amount_minor=amount_minor,
            currency=currency,
            created_at=created_at or self._clock.now(),
            ref_id=ref_id,
            meta=meta or {},
        )

    def _wallet(self, current: Wallet, available: int, pending: int) -> Wallet:
        return Wallet(
            available_minor=available,
            pending_minor=pending,
            currency=current.currency,
            updated_at=self._clock.now(),
        )

    def _reject(self, operation: str, user_id: str, error: ErrorKind, message: str) -> OperationResult:
        logger.info("%s refused for %s: %s (%s)", operation, user_id, message, error.value)
        return OperationResult.fail(error, message)

    def _commit(
        self,
        operation: str,
        user_id: str,
        entries: Sequence[LedgerEntry],
        wallet: Optional[Wallet] = None,
        assets: Optional[AssetBalances] = None,
        message: str = "",
    ) -> OperationResult:
        self._store.apply(user_id, wallet=wallet, assets=assets, entries=entries)
        logger.info(
            "%s applied for %s: %s",
            operation,
            user_id,
            ", ".join(f"{e.type.value} {e.amount_minor}" for e in entries),
        )
        return OperationResult(
            ok=True,
            message=message,
            entries=list(entries),
            wallet=wallet if wallet is not None else self.get_wallet(user_id),
            assets=assets if assets is not None else self._store.get_assets(user_id),
        )

    def _positive_minor(self, amount_minor) -> Optional[int]:
        amount = as_minor(amount_minor)
        if amount is None or amount <= 0:
            return None
        return amount

    # ==================== Run ====================

    def start_run(self, user_id: str, amount_minor: int) -> OperationResult:
        """Move capital from the available balance into running capital.

        Args:
            user_id: Account ID.
            amount_minor: Amount to invest in minor units.

        Returns:
            OperationResult with one negative ADJUSTMENT entry on success.
        """
        amount = self._positive_minor(amount_minor)
        if amount is None:
            return self._reject("start_run", user_id, ErrorKind.INVALID_INPUT, "Invalid amount.")
        if amount < self._settings.min_invest_minor:
            return self._reject(
                "start_run",
                user_id,
                ErrorKind.BELOW_MINIMUM,
                f"Minimum investment is {format_minor(self._settings.min_invest_minor)}.",
            )

        with self._user_lock(user_id):
            wallet = self.get_wallet(user_id)
            if amount > wallet.available_minor:
                return self._reject(
                    "start_run", user_id, ErrorKind.INSUFFICIENT_BALANCE,
                    "Amount exceeds available balance.",
                )

            new_wallet = self._wallet(
                wallet,
                available=wallet.available_minor - amount,
                pending=wallet.pending_minor + amount,
            )
            entry = self._entry(EntryType.ADJUSTMENT, -amount, wallet.currency, ref_id="run-invest")
            return self._commit(
                "start_run", user_id, [entry], wallet=new_wallet,
                message=f"Running {format_minor(amount)}.",
            )

    def post_earning(self, user_id: str, order: RunOrder) -> OperationResult:
        """Record an emitted order as an EARN entry.

        The wallet is not touched: earnings accrue until a manual payout.
        """
        with self._user_lock(user_id):
            wallet = self.get_wallet(user_id)
            entry = self._entry(
                EntryType.EARN,
                order.profit_minor,
                wallet.currency,
                ref_id="run-order",
                meta={"platform": order.platform, "symbol": order.symbol},
                created_at=order.timestamp,
            )
            return self._commit("post_earning", user_id, [entry])

    def post_commission(
        self,
        user_id: str,
        amount_minor: int,
        ref_id: Optional[str] = None,
        meta: Optional[dict[str, Any]] = None,
    ) -> OperationResult:
        """Record a referral commission; it accrues like earnings."""
        amount = self._positive_minor(amount_minor)
        if amount is None:
            return self._reject("post_commission", user_id, ErrorKind.INVALID_INPUT, "Invalid amount.")

        with self._user_lock(user_id):
            wallet = self.get_wallet(user_id)
            entry = self._entry(
                EntryType.COMMISSION, amount, wallet.currency,
                ref_id=ref_id or _ref("ref"), meta=meta,
            )
            return self._commit("post_commission", user_id, [entry])

    def manual_payout(self, user_id: str) -> OperationResult:
        """Move all accrued earnings into the available balance."""
        with self._user_lock(user_id):
            accrued = accrued_minor(self._store.get_ledger(user_id))
            if accrued <= 0:
                return self._reject(
                    "manual_payout", user_id, ErrorKind.INSUFFICIENT_BALANCE,
                    "Nothing to pay out.",
                )

            wallet = self.get_wallet(user_id)
            new_wallet = self._wallet(
                wallet,
                available=wallet.available_minor + accrued,
                pending=wallet.pending_minor,
            )
            entry = self._entry(EntryType.PAYOUT, accrued, wallet.currency, ref_id=_ref("payout"))
            return self._commit(
                "manual_payout", user_id, [entry], wallet=new_wallet,
                message=f"Paid out {format_minor(accrued)}.",
            )

    # ==================== Deposits & withdrawals ====================

    def deposit(
        self,
        user_id: str,
        amount_minor: int,
        network: Optional[str] = None,
        tx_hash: Optional[str] = None,
    ) -> OperationResult:
        """Credit a confirmed deposit to the wallet and the USDT holding."""
        amount = self._positive_minor(amount_minor)
        if amount is None:
            return self._reject("deposit", user_id, ErrorKind.INVALID_INPUT, "Invalid amount.")

        with self._user_lock(user_id):
            wallet = self.get_wallet(user_id)
            assets = self._store.get_assets(user_id)
            new_wallet = self._wallet(
                wallet,
                available=wallet.available_minor + amount,
                pending=wallet.pending_minor,
            )
            new_assets = assets.model_copy(update={"usdt_minor": assets.usdt_minor + amount})
            meta = {k: v for k, v in (("network", network), ("tx_hash", tx_hash)) if v}
            entry = self._entry(EntryType.ADJUSTMENT, amount, wallet.currency, ref_id="deposit", meta=meta)
            return self._commit(
                "deposit", user_id, [entry], wallet=new_wallet, assets=new_assets,
                message=f"Deposited {format_minor(amount)}.",
            )

    def request_withdrawal(self, user_id: str, amount_minor: int) -> OperationResult:
        """Request a fiat withdrawal.

        The amount plus a fee moves out of the available balance; the amount
        itself is held as pending until paid.

        Returns:
            OperationResult with WITHDRAWAL_REQUEST and WITHDRAWAL_FEE entries.
        """
        amount = self._positive_minor(amount_minor)
        if amount is None:
            return self._reject("request_withdrawal", user_id, ErrorKind.INVALID_INPUT, "Invalid amount.")

        fee = round_half_up(amount * self._settings.withdrawal_fee_rate)
        with self._user_lock(user_id):
            wallet = self.get_wallet(user_id)
            if amount + fee > wallet.available_minor:
                return self._reject(
                    "request_withdrawal", user_id, ErrorKind.INSUFFICIENT_BALANCE,
                    f"Insufficient balance. Required: {format_minor(amount + fee)}, "
                    f"Available: {format_minor(wallet.available_minor)}",
                )

            new_wallet = self._wallet(
                wallet,
                available=wallet.available_minor - amount - fee,
                pending=wallet.pending_minor + amount,
            )
            entries = [
                self._entry(EntryType.WITHDRAWAL_REQUEST, -amount, wallet.currency, ref_id=_ref("wd")),
                self._entry(EntryType.WITHDRAWAL_FEE, -fee, wallet.currency, ref_id="fee"),
            ]
            return self._commit(
                "request_withdrawal", user_id, entries, wallet=new_wallet,
                message=f"Withdrawal of {format_minor(amount)} requested (fee {format_minor(fee)}).",
            )

    def request_crypto_withdrawal(self, user_id: str, symbol: str, amount_crypto: float) -> OperationResult:
        """Withdraw BTC or ETH; the holding is reduced by amount plus fee."""
        if symbol not in CRYPTO_SYMBOLS:
            return self._reject(
                "request_crypto_withdrawal", user_id, ErrorKind.INVALID_INPUT,
                f"Unsupported symbol: {symbol}",
            )
        if not is_finite_number(amount_crypto) or amount_crypto <= 0:
            return self._reject(
                "request_crypto_withdrawal", user_id, ErrorKind.INVALID_INPUT, "Invalid amount.",
            )

        amount = float(amount_crypto)
        fee = amount * self._settings.withdrawal_fee_rate
        total = amount + fee
        with self._user_lock(user_id):
            assets = self._store.get_assets(user_id)
            held = assets.holding(symbol)
            if total > held + CRYPTO_EPSILON:
                return self._reject(
                    "request_crypto_withdrawal", user_id, ErrorKind.INSUFFICIENT_BALANCE,
                    f"Insufficient {symbol}.",
                )

            new_assets = assets.with_holding(symbol, held - total)
            entry = self._entry(
                EntryType.WITHDRAWAL_REQUEST,
                0,
                symbol,
                ref_id=_ref(f"wd_{symbol}"),
                meta={"symbol": symbol, "amount_crypto": amount, "fee": fee},
            )
            return self._commit(
                "request_crypto_withdrawal", user_id, [entry], assets=new_assets,
                message=f"Withdrawal of {amount:.8f} {symbol} requested (fee {fee:.8f}).",
            )

    # ==================== Exchange & transfer ====================

    def exchange(
        self,
        user_id: str,
        direction: Direction,
        symbol: str,
        price_usdt: float,
        amount_crypto: Optional[float] = None,
        amount_usdt_minor: Optional[int] = None,
    ) -> OperationResult:
        """Convert between BTC/ETH and USDT.

        Args:
            direction: CRYPTO_TO_USDT or USDT_TO_CRYPTO.
            symbol: BTC or ETH.
            price_usdt: Market price in USDT per coin.
            amount_crypto: Coins to sell (CRYPTO_TO_USDT).
            amount_usdt_minor: USDT to spend in minor units (USDT_TO_CRYPTO).
        """
        if direction == "CRYPTO_TO_USDT":
            return self.exchange_to_usdt(user_id, symbol, amount_crypto, price_usdt)
        if direction == "USDT_TO_CRYPTO":
            return self.exchange_from_usdt(user_id, symbol, amount_usdt_minor, price_usdt)
        return self._reject("exchange", user_id, ErrorKind.INVALID_INPUT, f"Unknown direction: {direction}")

    def _check_exchange_input(self, user_id: str, symbol: str, price_usdt) -> Optional[OperationResult]:
        if symbol not in CRYPTO_SYMBOLS:
            return self._reject("exchange", user_id, ErrorKind.INVALID_INPUT, f"Unsupported symbol: {symbol}")
        if not is_finite_number(price_usdt) or price_usdt <= 0:
            return self._reject("exchange", user_id, ErrorKind.INVALID_INPUT, "Invalid price.")
        return None

    def exchange_to_usdt(self, user_id: str, symbol: str, amount_crypto, price_usdt) -> OperationResult:
        """Sell crypto for USDT; the proceeds also credit the available balance."""
        refused = self._check_exchange_input(user_id, symbol, price_usdt)
        if refused is not None:
            return refused
        if not is_finite_number(amount_crypto) or amount_crypto <= 0:
            return self._reject("exchange", user_id, ErrorKind.INVALID_INPUT, "Invalid amount.")

        amount = float(amount_crypto)
        proceeds = round_half_up(amount * float(price_usdt) * 100)
        if proceeds <= 0:
            return self._reject("exchange", user_id, ErrorKind.INVALID_INPUT, "Amount too small.")

        with self._user_lock(user_id):
            assets = self._store.get_assets(user_id)
            held = assets.holding(symbol)
            if amount > held + CRYPTO_EPSILON:
                return self._reject("exchange", user_id, ErrorKind.INSUFFICIENT_BALANCE, f"Insufficient {symbol}.")

            wallet = self.get_wallet(user_id)
            new_assets = assets.with_holding(symbol, held - amount).model_copy(
                update={"usdt_minor": assets.usdt_minor + proceeds}
            )
            new_wallet = self._wallet(
                wallet,
                available=wallet.available_minor + proceeds,
                pending=wallet.pending_minor,
            )
            entry = self._entry(
                EntryType.ADJUSTMENT, proceeds, wallet.currency,
                ref_id=f"EX_{symbol}_TO_USDT",
                meta={"symbol": symbol, "amount_crypto": amount, "price": float(price_usdt)},
            )
            return self._commit(
                "exchange", user_id, [entry], wallet=new_wallet, assets=new_assets,
                message=f"Exchanged {amount:.8f} {symbol} for {format_minor(proceeds)} USDT.",
            )

    def exchange_from_usdt(self, user_id: str, symbol: str, amount_usdt_minor, price_usdt) -> OperationResult:
        """Buy crypto with USDT; the spend also debits the available balance."""
        refused = self._check_exchange_input(user_id, symbol, price_usdt)
        if refused is not None:
            return refused
        amount = self._positive_minor(amount_usdt_minor)
        if amount is None:
            return self._reject("exchange", user_id, ErrorKind.INVALID_INPUT, "Invalid amount.")

        with self._user_lock(user_id):
            assets = self._store.get_assets(user_id)
            wallet = self.get_wallet(user_id)
            if amount > assets.usdt_minor or amount > wallet.available_minor:
                return self._reject("exchange", user_id, ErrorKind.INSUFFICIENT_BALANCE, "Insufficient USDT.")

            bought = amount / 100 / float(price_usdt)
            new_assets = assets.with_holding(symbol, assets.holding(symbol) + bought).model_copy(
                update={"usdt_minor": assets.usdt_minor - amount}
            )
            new_wallet = self._wallet(
                wallet,
                available=wallet.available_minor - amount,
                pending=wallet.pending_minor,
            )
            entry = self._entry(
                EntryType.ADJUSTMENT, -amount, wallet.currency,
                ref_id=f"EX_USDT_TO_{symbol}",
                meta={"symbol": symbol, "amount_crypto": bought, "price": float(price_usdt)},
            )
            return self._commit(
                "exchange", user_id, [entry], wallet=new_wallet, assets=new_assets,
                message=f"Exchanged {format_minor(amount)} USDT for {bought:.8f} {symbol}.",
            )

    def transfer(self, user_id: str, to_account_id: str, amount_minor: int) -> OperationResult:
        """Send funds to another account (fee-free). Only the sender side is recorded."""
        if not isinstance(to_account_id, str) or not to_account_id.strip():
            return self._reject("transfer", user_id, ErrorKind.INVALID_INPUT, "Recipient is required.")
        amount = self._positive_minor(amount_minor)
        if amount is None:
            return self._reject("transfer", user_id, ErrorKind.INVALID_INPUT, "Invalid amount.")

        with self._user_lock(user_id):
            wallet = self.get_wallet(user_id)
            if amount > wallet.available_minor:
                return self._reject("transfer", user_id, ErrorKind.INSUFFICIENT_BALANCE, "Insufficient balance.")

            new_wallet = self._wallet(
                wallet,
                available=wallet.available_minor - amount,
                pending=wallet.pending_minor,
            )
            entry = self._entry(
                EntryType.ADJUSTMENT, -amount, wallet.currency,
                ref_id="transfer", meta={"to_account_id": to_account_id.strip()},
            )
            return self._commit(
                "transfer", user_id, [entry], wallet=new_wallet,
                message=f"Transferred {format_minor(amount)} to {to_account_id.strip()}.",
            )
