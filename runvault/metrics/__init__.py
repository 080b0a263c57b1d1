"""Derived metrics for RunVault."""

from runvault.metrics.earnings import (
    PayoutStatus,
    YesterdaySummary,
    accrued_minor,
    earnings_on,
    payout_status,
    total_earnings,
    wallet_kpis,
    yesterday_summary,
    yield_percent,
)
from runvault.metrics.referrals import (
    first_deposit_minor,
    first_reward_minor,
    friend_from_ledger,
    summarize_referrals,
    today_share_minor,
)

__all__ = [
    "PayoutStatus",
    "YesterdaySummary",
    "accrued_minor",
    "earnings_on",
    "first_deposit_minor",
    "first_reward_minor",
    "friend_from_ledger",
    "payout_status",
    "summarize_referrals",
    "today_share_minor",
    "total_earnings",
    "wallet_kpis",
    "yesterday_summary",
    "yield_percent",
]
