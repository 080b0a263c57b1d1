"""Storage contracts for wallets, assets and the ledger."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from runvault.models import AssetBalances, LedgerEntry, Wallet


class AccountStore(ABC):
    """Abstract base class for account storage.

    Implementations (in-memory, SQLite) persist per-user wallets, crypto
    holdings and the append-only ledger. Users without stored state read
    as an empty wallet and empty holdings.
    """

    @abstractmethod
    def find_wallet(self, user_id: str) -> Optional[Wallet]:
        """Read a user's stored wallet.

        Args:
            user_id: Account ID.

        Returns:
            Stored wallet, or None for unknown users.
        """
        pass

    def get_wallet(self, user_id: str) -> Wallet:
        """Read a user's wallet, all-zero in the default currency if none is stored."""
        wallet = self.find_wallet(user_id)
        return wallet if wallet is not None else Wallet()

    @abstractmethod
    def save_wallet(self, user_id: str, wallet: Wallet) -> None:
        """Replace a user's wallet."""
        pass

    @abstractmethod
    def get_assets(self, user_id: str) -> AssetBalances:
        """Read a user's crypto holdings (all-zero for unknown users)."""
        pass

    @abstractmethod
    def save_assets(self, user_id: str, assets: AssetBalances) -> None:
        """Replace a user's crypto holdings."""
        pass

    @abstractmethod
    def append_entries(self, user_id: str, entries: Sequence[LedgerEntry]) -> None:
        """Append entries to a user's ledger, in the given order."""
        pass

    @abstractmethod
    def get_ledger(self, user_id: str) -> list[LedgerEntry]:
        """Read a user's ledger, newest first."""
        pass

    @abstractmethod
    def add_referral(self, user_id: str, referrer_id: str) -> None:
        """Record that ``referrer_id`` referred ``user_id``."""
        pass

    @abstractmethod
    def get_referrals(self, referrer_id: str) -> list[str]:
        """IDs of users directly referred by ``referrer_id``."""
        pass

    def apply(
        self,
        user_id: str,
        wallet: Optional[Wallet] = None,
        assets: Optional[AssetBalances] = None,
        entries: Sequence[LedgerEntry] = (),
    ) -> None:
        """Persist one operation's full effect.

        Stores that can write atomically override this to use a single
        transaction.
        """
        if wallet is not None:
            self.save_wallet(user_id, wallet)
        if assets is not None:
            self.save_assets(user_id, assets)
        if entries:
            self.append_entries(user_id, entries)
