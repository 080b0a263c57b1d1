"""Referral reward projections.

Rewards are derived from the referred users' ledgers; nothing is written.
"""

from datetime import date
from typing import Iterable, Literal, Optional

from runvault.metrics.earnings import earnings_on
from runvault.models import EntryType, LedgerEntry, ReferralFriend, ReferralSummary
from runvault.money import round_half_up

DIRECT_SHARE_RATE = 0.10
SECOND_LEVEL_SHARE_RATE = 0.05
FIRST_DEPOSIT_BONUS_RATE = 0.30


def first_deposit_minor(ledger: Iterable[LedgerEntry]) -> int:
    """Amount of the oldest deposit in a ledger, or 0 if there is none."""
    deposits = [
        e for e in ledger
        if e.type == EntryType.ADJUSTMENT and e.ref_id == "deposit" and e.amount_minor > 0
    ]
    if not deposits:
        return 0
    return min(deposits, key=lambda e: e.created_at).amount_minor


def friend_from_ledger(
    user_id: str,
    level: Literal[1, 2],
    ledger: list[LedgerEntry],
    today: date,
    name: Optional[str] = None,
) -> ReferralFriend:
    """Build a referral view of a user from their ledger."""
    return ReferralFriend(
        user_id=user_id,
        name=name or user_id,
        level=level,
        first_deposit_minor=first_deposit_minor(ledger),
        today_profit_minor=earnings_on(ledger, today),
    )


def share_rate(level: int) -> float:
    return DIRECT_SHARE_RATE if level == 1 else SECOND_LEVEL_SHARE_RATE


def today_share_minor(friend: ReferralFriend) -> int:
    """The referrer's share of one friend's same-day profit."""
    return round_half_up(friend.today_profit_minor * share_rate(friend.level))


def first_reward_minor(friend: ReferralFriend) -> int:
    """One-time bonus on a direct referral's first deposit."""
    if friend.level != 1 or friend.first_deposit_minor <= 0:
        return 0
    return round_half_up(friend.first_deposit_minor * FIRST_DEPOSIT_BONUS_RATE)


def summarize_referrals(friends: Iterable[ReferralFriend]) -> ReferralSummary:
    """Aggregate rewards across all referred users."""
    friends = list(friends)
    level1 = [f for f in friends if f.level == 1]
    level2 = [f for f in friends if f.level == 2]

    first_reward = sum(first_reward_minor(f) for f in level1)
    l1_today = sum(f.today_profit_minor for f in level1)
    l2_today = sum(f.today_profit_minor for f in level2)
    today_share = round_half_up(l1_today * DIRECT_SHARE_RATE + l2_today * SECOND_LEVEL_SHARE_RATE)

    return ReferralSummary(
        l1_count=len(level1),
        l2_count=len(level2),
        first_reward_minor=first_reward,
        today_share_minor=today_share,
        total_minor=first_reward + today_share,
    )
