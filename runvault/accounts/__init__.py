"""Account storage and operations for RunVault."""

from runvault.accounts.base import AccountStore
from runvault.accounts.memory import InMemoryStore
from runvault.accounts.service import AccountService

__all__ = [
    "AccountService",
    "AccountStore",
    "InMemoryStore",
]
