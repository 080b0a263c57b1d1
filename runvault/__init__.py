"""RunVault - simulated run earnings with a consistent wallet ledger."""

__version__ = "0.1.0"

from runvault.accounts import AccountService, AccountStore, InMemoryStore
from runvault.engine import RunSession, build_plan
from runvault.models import (
    AssetBalances,
    DailyPlan,
    EntryType,
    ErrorKind,
    LedgerEntry,
    OperationResult,
    RunOrder,
    Wallet,
)

__all__ = [
    "AccountService",
    "AccountStore",
    "AssetBalances",
    "DailyPlan",
    "EntryType",
    "ErrorKind",
    "InMemoryStore",
    "LedgerEntry",
    "OperationResult",
    "RunOrder",
    "RunSession",
    "Wallet",
    "build_plan",
]
