"""Property-based tests for the account service.

**Feature: run-vault**
"""

import math
from datetime import datetime

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from runvault.accounts import AccountService, InMemoryStore
from runvault.clock import ManualClock
from runvault.config import Settings
from runvault.models import AssetBalances, EntryType, ErrorKind, RunOrder, Wallet


USER = "u_1"


@pytest.fixture
def clock():
    return ManualClock(datetime(2025, 1, 15, 9, 0, 0))


@pytest.fixture
def service(clock):
    """Service over an empty in-memory store."""
    return AccountService(InMemoryStore(), clock=clock, settings=Settings())


def funded(clock, available=0, pending=0, btc=0.0, eth=0.0, usdt=None):
    """Service whose user starts with the given balances."""
    store = InMemoryStore.from_snapshot(
        USER,
        Wallet(available_minor=available, pending_minor=pending),
        AssetBalances(usdt_minor=available if usdt is None else usdt, btc=btc, eth=eth),
    )
    return AccountService(store, clock=clock, settings=Settings())


def order(profit_minor, when=None):
    return RunOrder(
        platform="Binance",
        symbol="BTC/USDT",
        profit_minor=profit_minor,
        timestamp=when or datetime(2025, 1, 15, 10, 0, 0),
    )


def snapshot(service):
    return (
        service.get_wallet(USER),
        service.get_assets(USER),
        service.get_ledger(USER),
    )


# ============================================================================
# Start run
# ============================================================================

class TestStartRun:
    """Investing moves capital from available to running."""

    def test_minimum_accepted(self, clock):
        service = funded(clock, available=50_000)
        result = service.start_run(USER, 10_000)

        assert result.ok
        assert result.wallet.available_minor == 40_000
        assert result.wallet.pending_minor == 10_000
        [entry] = result.entries
        assert entry.type == EntryType.ADJUSTMENT
        assert entry.amount_minor == -10_000
        assert entry.ref_id == "run-invest"

    def test_below_minimum_rejected(self, clock):
        service = funded(clock, available=50_000)
        before = snapshot(service)

        result = service.start_run(USER, 9_999)

        assert not result.ok
        assert result.error == ErrorKind.BELOW_MINIMUM
        assert snapshot(service) == before

    def test_more_than_available_rejected(self, clock):
        service = funded(clock, available=10_000)
        result = service.start_run(USER, 10_001)

        assert result.error == ErrorKind.INSUFFICIENT_BALANCE
        assert service.get_wallet(USER).available_minor == 10_000

    @pytest.mark.parametrize("amount", [0, -100, 100.5, math.nan, math.inf, True, "100", None])
    def test_invalid_amounts(self, clock, amount):
        service = funded(clock, available=50_000)
        result = service.start_run(USER, amount)

        assert result.error == ErrorKind.INVALID_INPUT
        assert service.get_ledger(USER) == []

    def test_integral_float_accepted(self, clock):
        service = funded(clock, available=50_000)
        assert service.start_run(USER, 10_000.0).ok


# ============================================================================
# Earnings and payout
# ============================================================================

class TestEarningsAndPayout:
    """Earnings accrue in the ledger until a manual payout."""

    def test_earning_does_not_touch_wallet(self, clock):
        service = funded(clock, available=0, pending=10_000)
        result = service.post_earning(USER, order(37))

        assert result.ok
        assert service.get_wallet(USER) == Wallet(
            available_minor=0, pending_minor=10_000, updated_at=result.wallet.updated_at
        )
        [entry] = result.entries
        assert entry.type == EntryType.EARN
        assert entry.amount_minor == 37
        assert entry.ref_id == "run-order"
        assert entry.meta == {"platform": "Binance", "symbol": "BTC/USDT"}
        assert entry.created_at == datetime(2025, 1, 15, 10, 0, 0)
        assert service.get_accrued(USER) == 37

    def test_payout_moves_accrued(self, clock):
        service = funded(clock, available=500, pending=10_000)
        service.post_earning(USER, order(40))
        service.post_earning(USER, order(60))
        service.post_commission(USER, 25)

        result = service.manual_payout(USER)

        assert result.ok
        assert result.wallet.available_minor == 625
        assert result.wallet.pending_minor == 10_000
        [entry] = result.entries
        assert entry.type == EntryType.PAYOUT
        assert entry.amount_minor == 125
        assert entry.ref_id.startswith("payout_")
        assert service.get_accrued(USER) == 0

    def test_payout_with_nothing_accrued(self, service):
        result = service.manual_payout(USER)

        assert result.error == ErrorKind.INSUFFICIENT_BALANCE
        assert service.get_ledger(USER) == []

    def test_second_payout_refused(self, clock):
        service = funded(clock, pending=10_000)
        service.post_earning(USER, order(10))
        assert service.manual_payout(USER).ok
        assert service.manual_payout(USER).error == ErrorKind.INSUFFICIENT_BALANCE

    def test_commission_validation(self, service):
        assert service.post_commission(USER, 0).error == ErrorKind.INVALID_INPUT


# ============================================================================
# Deposits and withdrawals
# ============================================================================

class TestWithdrawals:
    """Withdrawals charge a fee on top and hold the amount as pending."""

    def test_deposit_credits_wallet_and_usdt(self, service):
        result = service.deposit(USER, 12_345, network="TRC20")

        assert result.ok
        assert result.wallet.available_minor == 12_345
        assert result.assets.usdt_minor == 12_345
        assert result.entries[0].ref_id == "deposit"
        assert result.entries[0].meta == {"network": "TRC20"}

    def test_fee_pushes_over_balance(self, clock):
        service = funded(clock, available=10_000)
        before = snapshot(service)

        result = service.request_withdrawal(USER, 10_000)

        assert result.error == ErrorKind.INSUFFICIENT_BALANCE
        assert snapshot(service) == before

    def test_withdrawal_with_fee(self, clock):
        service = funded(clock, available=10_000)
        result = service.request_withdrawal(USER, 9_900)

        assert result.ok
        assert result.wallet.available_minor == 1
        assert result.wallet.pending_minor == 9_900
        request, fee = result.entries
        assert request.type == EntryType.WITHDRAWAL_REQUEST
        assert request.amount_minor == -9_900
        assert request.ref_id.startswith("wd_")
        assert fee.type == EntryType.WITHDRAWAL_FEE
        assert fee.amount_minor == -99
        assert fee.ref_id == "fee"

    def test_fee_rounds_half_up(self, clock):
        service = funded(clock, available=100_000)
        result = service.request_withdrawal(USER, 150)

        # 1% of 150 is 1.5
        assert result.entries[1].amount_minor == -2

    def test_crypto_withdrawal(self, clock):
        service = funded(clock, btc=0.0101)
        result = service.request_crypto_withdrawal(USER, "BTC", 0.01)

        assert result.ok
        assert result.assets.btc == pytest.approx(0.0, abs=1e-12)
        [entry] = result.entries
        assert entry.type == EntryType.WITHDRAWAL_REQUEST
        assert entry.amount_minor == 0
        assert entry.currency == "BTC"
        assert entry.meta["fee"] == pytest.approx(0.0001)

    def test_crypto_withdrawal_insufficient(self, clock):
        service = funded(clock, eth=1.0)
        result = service.request_crypto_withdrawal(USER, "ETH", 1.0)

        assert result.error == ErrorKind.INSUFFICIENT_BALANCE
        assert service.get_assets(USER).eth == 1.0

    def test_crypto_withdrawal_unknown_symbol(self, clock):
        service = funded(clock, btc=1.0)
        assert service.request_crypto_withdrawal(USER, "DOGE", 0.1).error == ErrorKind.INVALID_INPUT


# ============================================================================
# Exchange and transfer
# ============================================================================

class TestExchange:
    """Exchanges move value between crypto and USDT at the given price."""

    def test_sell_btc_for_usdt(self, clock):
        service = funded(clock, btc=0.01)
        result = service.exchange(USER, "CRYPTO_TO_USDT", "BTC", 60_000, amount_crypto=0.01)

        assert result.ok
        assert result.assets.usdt_minor == 60_000
        assert result.assets.btc == pytest.approx(0.0, abs=1e-12)
        assert result.wallet.available_minor == 60_000
        assert result.entries[0].ref_id == "EX_BTC_TO_USDT"
        assert result.entries[0].amount_minor == 60_000

    def test_buy_eth_with_usdt(self, clock):
        service = funded(clock, available=30_000)
        result = service.exchange(USER, "USDT_TO_CRYPTO", "ETH", 3_000, amount_usdt_minor=30_000)

        assert result.ok
        assert result.assets.eth == pytest.approx(0.1)
        assert result.assets.usdt_minor == 0
        assert result.wallet.available_minor == 0
        assert result.entries[0].ref_id == "EX_USDT_TO_ETH"

    def test_sell_more_than_held(self, clock):
        service = funded(clock, btc=0.01)
        result = service.exchange_to_usdt(USER, "BTC", 0.02, 60_000)

        assert result.error == ErrorKind.INSUFFICIENT_BALANCE

    def test_dust_rejected(self, clock):
        service = funded(clock, btc=1.0)
        result = service.exchange_to_usdt(USER, "BTC", 1e-9, 60_000)

        assert result.error == ErrorKind.INVALID_INPUT

    @pytest.mark.parametrize("price", [0, -1, math.nan, math.inf])
    def test_bad_price(self, clock, price):
        service = funded(clock, btc=1.0)
        assert service.exchange_to_usdt(USER, "BTC", 0.1, price).error == ErrorKind.INVALID_INPUT

    def test_unknown_direction(self, clock):
        service = funded(clock, btc=1.0)
        assert service.exchange(USER, "SIDEWAYS", "BTC", 60_000).error == ErrorKind.INVALID_INPUT


class TestTransfer:
    """Transfers debit the sender without a fee."""

    def test_transfer(self, clock):
        service = funded(clock, available=5_000)
        result = service.transfer(USER, "u_2", 2_000)

        assert result.ok
        assert result.wallet.available_minor == 3_000
        assert result.entries[0].meta == {"to_account_id": "u_2"}

    def test_transfer_needs_recipient(self, clock):
        service = funded(clock, available=5_000)
        assert service.transfer(USER, "  ", 100).error == ErrorKind.INVALID_INPUT

    def test_transfer_insufficient(self, clock):
        service = funded(clock, available=5_000)
        assert service.transfer(USER, "u_2", 5_001).error == ErrorKind.INSUFFICIENT_BALANCE


# ============================================================================
# Ledger consistency
# ============================================================================

amounts = st.integers(min_value=-1_000, max_value=200_000)

operations = st.one_of(
    st.tuples(st.just("deposit"), amounts),
    st.tuples(st.just("start_run"), amounts),
    st.tuples(st.just("earn"), st.integers(min_value=1, max_value=5_000)),
    st.tuples(st.just("payout"), st.just(0)),
    st.tuples(st.just("withdraw"), amounts),
    st.tuples(st.just("buy_btc"), amounts),
    st.tuples(st.just("sell_btc"), st.integers(min_value=1, max_value=10_000)),
    st.tuples(st.just("transfer"), amounts),
)


def apply(service, op, value):
    if op == "deposit":
        return service.deposit(USER, value)
    if op == "start_run":
        return service.start_run(USER, value)
    if op == "earn":
        return service.post_earning(USER, order(value))
    if op == "payout":
        return service.manual_payout(USER)
    if op == "withdraw":
        return service.request_withdrawal(USER, value)
    if op == "buy_btc":
        return service.exchange_from_usdt(USER, "BTC", value, 60_000)
    if op == "sell_btc":
        return service.exchange_to_usdt(USER, "BTC", value / 1_000_000, 60_000)
    return service.transfer(USER, "u_2", value)


class TestLedgerConsistency:
    """
    **Feature: run-vault, Property 8: Ledger Reconciles With Wallet**
    **Validates: Ledger/Wallet State Machine**

    *For any* sequence of operations, balances stay non-negative, refused
    operations change nothing, and both wallet balances equal the sums of
    the ledger entries that moved them.
    """

    @given(ops=st.lists(operations, min_size=1, max_size=30))
    @settings(max_examples=100, deadline=None)
    def test_operation_sequences(self, ops):
        service = AccountService(
            InMemoryStore(), clock=ManualClock(datetime(2025, 1, 15, 9, 0, 0)), settings=Settings()
        )

        for op, value in ops:
            before = snapshot(service)
            result = apply(service, op, value)
            if not result.ok:
                assert result.error is not None
                assert snapshot(service) == before

            wallet, assets, ledger = snapshot(service)
            usd = [e for e in ledger if e.currency == "USD"]
            moves_available = (
                EntryType.ADJUSTMENT,
                EntryType.PAYOUT,
                EntryType.WITHDRAWAL_REQUEST,
                EntryType.WITHDRAWAL_FEE,
            )
            invested = -sum(e.amount_minor for e in usd if e.ref_id == "run-invest")
            withdrawn = -sum(e.amount_minor for e in usd if e.type == EntryType.WITHDRAWAL_REQUEST)

            assert wallet.available_minor >= 0
            assert wallet.pending_minor >= 0
            assert assets.usdt_minor >= 0
            assert assets.btc >= 0
            assert wallet.available_minor == sum(e.amount_minor for e in usd if e.type in moves_available)
            assert wallet.pending_minor == invested + withdrawn
            assert service.get_accrued(USER) >= 0


# ============================================================================
# Configured currency
# ============================================================================

class TestConfiguredCurrency:
    """New accounts use the configured currency; stored wallets keep theirs."""

    @pytest.fixture
    def eur_service(self, clock):
        return AccountService(InMemoryStore(), clock=clock, settings=Settings(currency="EUR"))

    def test_new_account_uses_configured_currency(self, eur_service):
        assert eur_service.get_wallet(USER).currency == "EUR"

        result = eur_service.deposit(USER, 20_000)

        assert result.ok
        assert result.wallet.currency == "EUR"
        assert [e.currency for e in result.entries] == ["EUR"]
        assert eur_service.store.get_wallet(USER).currency == "EUR"

    def test_stored_wallet_keeps_its_currency(self, clock):
        store = InMemoryStore.from_snapshot(USER, Wallet(available_minor=5_000), AssetBalances())
        service = AccountService(store, clock=clock, settings=Settings(currency="EUR"))

        assert service.get_wallet(USER).currency == "USD"

    def test_clock_shared_with_callers(self, clock, eur_service):
        assert eur_service.clock is clock
        assert eur_service.clock.today() == datetime(2025, 1, 15).date()
