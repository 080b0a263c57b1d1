"""Tests for the derived earnings and referral metrics.

**Feature: run-vault**
"""

from datetime import date, datetime

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from runvault.metrics import (
    accrued_minor,
    earnings_on,
    first_deposit_minor,
    first_reward_minor,
    friend_from_ledger,
    payout_status,
    summarize_referrals,
    today_share_minor,
    total_earnings,
    wallet_kpis,
    yesterday_summary,
    yield_percent,
)
from runvault.models import EntryType, LedgerEntry, ReferralFriend, Wallet


TODAY = date(2025, 1, 15)
YESTERDAY = datetime(2025, 1, 14, 15, 30)
NOW = datetime(2025, 1, 15, 10, 0)


def entry(entry_type, amount, when=NOW, ref_id=None):
    return LedgerEntry(type=entry_type, amount_minor=amount, created_at=when, ref_id=ref_id)


# ============================================================================
# Earnings
# ============================================================================

class TestDailyEarnings:
    """Daily totals count EARN and COMMISSION entries by local calendar day."""

    def test_counts_only_earning_types_on_day(self):
        ledger = [
            entry(EntryType.EARN, 100),
            entry(EntryType.COMMISSION, 20),
            entry(EntryType.PAYOUT, 500),
            entry(EntryType.EARN, 7, when=YESTERDAY),
            entry(EntryType.ADJUSTMENT, -10_000),
        ]
        assert earnings_on(ledger, TODAY) == 120
        assert earnings_on(ledger, YESTERDAY.date()) == 7

    def test_yesterday_fee_and_net(self):
        ledger = [entry(EntryType.EARN, 6_000, when=YESTERDAY), entry(EntryType.EARN, 4_000, when=YESTERDAY)]
        summary = yesterday_summary(ledger, TODAY)

        assert summary.day == YESTERDAY.date()
        assert summary.gross_minor == 10_000
        assert summary.fee_minor == 2_000
        assert summary.net_minor == 8_000

    def test_accrued_never_negative(self):
        ledger = [entry(EntryType.EARN, 100), entry(EntryType.PAYOUT, 150)]
        assert accrued_minor(ledger) == 0

    def test_total_earnings(self):
        ledger = [
            entry(EntryType.EARN, 100),
            entry(EntryType.COMMISSION, 50),
            entry(EntryType.PAYOUT, 150),
            entry(EntryType.WITHDRAWAL_FEE, -3),
        ]
        assert total_earnings(ledger) == 300

    @given(amounts=st.lists(st.integers(min_value=1, max_value=100_000), max_size=50))
    @settings(max_examples=100)
    def test_accrued_matches_unpaid(self, amounts):
        """
        *For any* earnings, accrued equals earned minus paid out.
        """
        ledger = [entry(EntryType.EARN, a) for a in amounts]
        paid = sum(amounts) // 2
        if paid:
            ledger.append(entry(EntryType.PAYOUT, paid))
        assert accrued_minor(ledger) == sum(amounts) - paid


class TestPayoutStatus:
    """Payout status compares today's payouts with yesterday's net."""

    @pytest.mark.parametrize(
        "paid, net, expected",
        [
            (8_000, 8_000, "SENT"),
            (9_000, 8_000, "SENT"),
            (3_000, 8_000, "PARTIAL"),
            (0, 8_000, "PENDING"),
            (0, 0, "PENDING"),
            (500, 0, "PENDING"),
        ],
    )
    def test_status(self, paid, net, expected):
        ledger = [entry(EntryType.PAYOUT, paid)] if paid else []
        status = payout_status(ledger, TODAY, net)

        assert status.status == expected
        assert status.paid_today_minor == paid

    def test_yesterdays_payouts_ignored(self):
        ledger = [entry(EntryType.PAYOUT, 8_000, when=YESTERDAY)]
        assert payout_status(ledger, TODAY, 8_000).status == "PENDING"


class TestYield:
    """Yield is net earnings over running capital."""

    def test_yield(self):
        assert yield_percent(8_000, 100_000) == pytest.approx(8.0)

    def test_no_capital(self):
        assert yield_percent(8_000, 0) is None

    def test_wallet_kpis(self):
        ledger = [
            entry(EntryType.EARN, 10_000, when=YESTERDAY),
            entry(EntryType.EARN, 300),
            entry(EntryType.PAYOUT, 8_000),
        ]
        kpis = wallet_kpis(Wallet(available_minor=8_000, pending_minor=100_000), ledger, TODAY)

        assert kpis["balance_minor"] == 8_000
        assert kpis["running_minor"] == 100_000
        assert kpis["accrued_minor"] == 2_300
        assert kpis["today_minor"] == 300
        assert kpis["yesterday_gross_minor"] == 10_000
        assert kpis["yesterday_fee_minor"] == 2_000
        assert kpis["yesterday_net_minor"] == 8_000
        assert kpis["payout_status"] == "SENT"
        assert kpis["paid_today_minor"] == 8_000
        assert kpis["yield_percent"] == pytest.approx(8.0)


# ============================================================================
# Referrals
# ============================================================================

class TestReferrals:
    """
    **Feature: run-vault, Property 9: Referral Rewards**
    **Validates: Derived Metrics Layer**

    Direct referrals earn a first deposit bonus; both levels share their
    same-day profit with the referrer.
    """

    def test_summary(self):
        friends = [
            ReferralFriend(user_id="a", level=1, first_deposit_minor=10_000, today_profit_minor=1_000),
            ReferralFriend(user_id="b", level=2, first_deposit_minor=50_000, today_profit_minor=2_000),
        ]
        summary = summarize_referrals(friends)

        assert summary.l1_count == 1
        assert summary.l2_count == 1
        assert summary.first_reward_minor == 3_000
        assert summary.today_share_minor == 200
        assert summary.total_minor == 3_200

    def test_per_friend_figures(self):
        direct = ReferralFriend(user_id="a", level=1, first_deposit_minor=10_000, today_profit_minor=1_005)
        second = ReferralFriend(user_id="b", level=2, first_deposit_minor=10_000, today_profit_minor=1_010)

        assert today_share_minor(direct) == 101
        assert today_share_minor(second) == 51
        assert first_reward_minor(direct) == 3_000
        assert first_reward_minor(second) == 0

    def test_empty(self):
        summary = summarize_referrals([])
        assert summary.total_minor == 0

    def test_friend_from_ledger(self):
        ledger = [
            entry(EntryType.EARN, 250),
            entry(EntryType.ADJUSTMENT, 20_000, when=datetime(2025, 1, 10), ref_id="deposit"),
            entry(EntryType.ADJUSTMENT, 5_000, when=datetime(2025, 1, 2), ref_id="deposit"),
            entry(EntryType.ADJUSTMENT, -10_000, ref_id="run-invest"),
        ]
        friend = friend_from_ledger("u_2", 1, ledger, TODAY)

        assert friend.name == "u_2"
        assert friend.first_deposit_minor == 5_000
        assert friend.today_profit_minor == 250
        assert first_deposit_minor([]) == 0
