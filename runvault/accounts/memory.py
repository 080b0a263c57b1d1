"""In-memory account store."""

from typing import Optional, Sequence

from runvault.accounts.base import AccountStore
from runvault.models import AssetBalances, LedgerEntry, Wallet


class InMemoryStore(AccountStore):
    """Process-local store, used for simulation and tests."""

    def __init__(self):
        self._wallets: dict[str, Wallet] = {}
        self._assets: dict[str, AssetBalances] = {}
        # Oldest first; reversed on read
        self._ledgers: dict[str, list[LedgerEntry]] = {}
        self._referrers: dict[str, str] = {}

    @classmethod
    def from_snapshot(
        cls,
        user_id: str,
        wallet: Wallet,
        assets: AssetBalances,
        ledger: Optional[Sequence[LedgerEntry]] = None,
    ) -> "InMemoryStore":
        """Create a store seeded with one user's state.

        Args:
            ledger: Entries newest first, as returned by ``get_ledger``.
        """
        store = cls()
        store._wallets[user_id] = wallet
        store._assets[user_id] = assets
        store._ledgers[user_id] = list(reversed(list(ledger or [])))
        return store

    def find_wallet(self, user_id: str) -> Optional[Wallet]:
        return self._wallets.get(user_id)

    def save_wallet(self, user_id: str, wallet: Wallet) -> None:
        self._wallets[user_id] = wallet

    def get_assets(self, user_id: str) -> AssetBalances:
        return self._assets.get(user_id) or AssetBalances()

    def save_assets(self, user_id: str, assets: AssetBalances) -> None:
        self._assets[user_id] = assets

    def append_entries(self, user_id: str, entries: Sequence[LedgerEntry]) -> None:
        self._ledgers.setdefault(user_id, []).extend(entries)

    def get_ledger(self, user_id: str) -> list[LedgerEntry]:
        return list(reversed(self._ledgers.get(user_id, [])))

    def add_referral(self, user_id: str, referrer_id: str) -> None:
        self._referrers[user_id] = referrer_id

    def get_referrals(self, referrer_id: str) -> list[str]:
        return [user for user, ref in self._referrers.items() if ref == referrer_id]
