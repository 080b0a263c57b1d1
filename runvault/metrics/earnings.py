"""Read-side earnings projections over a user's ledger.

Nothing here mutates state; every figure is recomputed from the ledger.
"""

from datetime import date, timedelta
from typing import Iterable, Literal, NamedTuple, Optional

from runvault.models import EARNING_TYPES, EntryType, LedgerEntry, Wallet
from runvault.money import round_half_up

# Fee withheld from yesterday's gross earnings
SERVICE_FEE_RATE = 0.20

PayoutState = Literal["SENT", "PARTIAL", "PENDING"]


class YesterdaySummary(NamedTuple):
    day: date
    gross_minor: int
    fee_minor: int
    net_minor: int


class PayoutStatus(NamedTuple):
    status: PayoutState
    paid_today_minor: int


def _on_day(entry: LedgerEntry, day: date) -> bool:
    return entry.created_at.date() == day


def earnings_on(ledger: Iterable[LedgerEntry], day: date) -> int:
    """Sum of EARN and COMMISSION entries created on a local calendar day."""
    return sum(e.amount_minor for e in ledger if e.type in EARNING_TYPES and _on_day(e, day))


def accrued_minor(ledger: Iterable[LedgerEntry]) -> int:
    """Earnings not yet moved to the available balance by a payout."""
    earned = 0
    paid = 0
    for entry in ledger:
        if entry.type in EARNING_TYPES:
            earned += entry.amount_minor
        elif entry.type == EntryType.PAYOUT:
            paid += entry.amount_minor
    return max(0, earned - paid)


def total_earnings(ledger: Iterable[LedgerEntry]) -> int:
    """All-time earnings: positive EARN, COMMISSION and PAYOUT amounts."""
    counted = (EntryType.EARN, EntryType.COMMISSION, EntryType.PAYOUT)
    return sum(max(0, e.amount_minor) for e in ledger if e.type in counted)


def yesterday_summary(
    ledger: Iterable[LedgerEntry],
    today: date,
    fee_rate: float = SERVICE_FEE_RATE,
) -> YesterdaySummary:
    """Yesterday's gross earnings, the service fee and the net after fee."""
    yesterday = today - timedelta(days=1)
    gross = earnings_on(ledger, yesterday)
    fee = round_half_up(gross * fee_rate)
    return YesterdaySummary(
        day=yesterday,
        gross_minor=gross,
        fee_minor=fee,
        net_minor=max(0, gross - fee),
    )


def payout_status(ledger: Iterable[LedgerEntry], today: date, net_minor: int) -> PayoutStatus:
    """Infer whether yesterday's net earnings have been paid out.

    Compares today's PAYOUT total with yesterday's net figure. This is a
    display heuristic, not a settlement record.
    """
    paid = sum(
        max(0, e.amount_minor)
        for e in ledger
        if e.type == EntryType.PAYOUT and _on_day(e, today)
    )
    if net_minor > 0 and paid >= net_minor:
        return PayoutStatus("SENT", paid)
    if 0 < paid < net_minor:
        return PayoutStatus("PARTIAL", paid)
    return PayoutStatus("PENDING", paid)


def yield_percent(net_minor: int, running_minor: int) -> Optional[float]:
    """Net earnings as a percentage of running capital; None without capital."""
    if running_minor <= 0:
        return None
    return net_minor / running_minor * 100


def wallet_kpis(
    wallet: Wallet,
    ledger: list[LedgerEntry],
    today: date,
    fee_rate: float = SERVICE_FEE_RATE,
) -> dict:
    """Calculate the wallet dashboard figures.

    Args:
        wallet: Current wallet.
        ledger: The user's ledger entries.
        today: Local calendar day to report for.
        fee_rate: Service fee withheld from yesterday's earnings.

    Returns:
        Dictionary with balance, running, accrued, total, today and
        yesterday figures (minor units), the payout status and yield.
    """
    summary = yesterday_summary(ledger, today, fee_rate)
    status = payout_status(ledger, today, summary.net_minor)

    return {
        "balance_minor": wallet.available_minor,
        "running_minor": wallet.pending_minor,
        "accrued_minor": accrued_minor(ledger),
        "total_minor": total_earnings(ledger),
        "today_minor": earnings_on(ledger, today),
        "yesterday_gross_minor": summary.gross_minor,
        "yesterday_fee_minor": summary.fee_minor,
        "yesterday_net_minor": summary.net_minor,
        "payout_status": status.status,
        "paid_today_minor": status.paid_today_minor,
        "yield_percent": yield_percent(summary.net_minor, wallet.pending_minor),
    }
