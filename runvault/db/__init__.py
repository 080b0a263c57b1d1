"""Persistence for RunVault."""

from runvault.db.store import DataStore

__all__ = ["DataStore"]
