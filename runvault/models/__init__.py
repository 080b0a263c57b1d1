"""Data models for RunVault."""

from runvault.models.wallet import AssetBalances, Wallet
from runvault.models.ledger import EARNING_TYPES, EntryType, LedgerEntry, new_id
from runvault.models.plan import DailyPlan
from runvault.models.order import RunOrder
from runvault.models.result import ErrorKind, OperationResult
from runvault.models.referral import ReferralFriend, ReferralSummary

__all__ = [
    "AssetBalances",
    "DailyPlan",
    "EARNING_TYPES",
    "EntryType",
    "ErrorKind",
    "LedgerEntry",
    "OperationResult",
    "ReferralFriend",
    "ReferralSummary",
    "RunOrder",
    "Wallet",
    "new_id",
]
