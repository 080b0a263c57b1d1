"""SQLite data store for RunVault."""

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from runvault.accounts.base import AccountStore
from runvault.models import AssetBalances, EntryType, LedgerEntry, Wallet


class DataStore(AccountStore):
    """SQLite-based account store for RunVault."""

    REQUIRED_TABLES = [
        "wallets",
        "assets",
        "ledger",
        "referrals",
    ]

    def __init__(self, db_path: Path):
        """Initialize the data store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            # Wallets table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS wallets (
                    user_id TEXT PRIMARY KEY,
                    available_minor INTEGER NOT NULL,
                    pending_minor INTEGER NOT NULL,
                    currency TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            # Crypto holdings table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS assets (
                    user_id TEXT PRIMARY KEY,
                    usdt_minor INTEGER NOT NULL,
                    btc REAL NOT NULL,
                    eth REAL NOT NULL
                )
            """)

            # Ledger table (append-only)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS ledger (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    user_id TEXT NOT NULL,
                    type TEXT NOT NULL,
                    amount_minor INTEGER NOT NULL,
                    currency TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    ref_id TEXT,
                    meta TEXT NOT NULL DEFAULT '{}'
                )
            """)
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_ledger_user ON ledger (user_id, created_at)"
            )

            # Referrals table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS referrals (
                    user_id TEXT PRIMARY KEY,
                    referrer_id TEXT NOT NULL
                )
            """)
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Writers ====================

    @staticmethod
    def _write_wallet(cursor: sqlite3.Cursor, user_id: str, wallet: Wallet) -> None:
        cursor.execute(
            """
            INSERT OR REPLACE INTO wallets
            (user_id, available_minor, pending_minor, currency, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                user_id,
                wallet.available_minor,
                wallet.pending_minor,
                wallet.currency,
                wallet.updated_at.isoformat(),
            ),
        )

    @staticmethod
    def _write_assets(cursor: sqlite3.Cursor, user_id: str, assets: AssetBalances) -> None:
        cursor.execute(
            """
            INSERT OR REPLACE INTO assets (user_id, usdt_minor, btc, eth)
            VALUES (?, ?, ?, ?)
            """,
            (user_id, assets.usdt_minor, assets.btc, assets.eth),
        )

    @staticmethod
    def _write_entries(
        cursor: sqlite3.Cursor, user_id: str, entries: Sequence[LedgerEntry]
    ) -> None:
        for entry in entries:
            cursor.execute(
                """
                INSERT INTO ledger
                (id, user_id, type, amount_minor, currency, created_at, ref_id, meta)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id,
                    user_id,
                    entry.type.value,
                    entry.amount_minor,
                    entry.currency,
                    entry.created_at.isoformat(),
                    entry.ref_id,
                    json.dumps(entry.meta),
                ),
            )

    def _transaction(self, writer) -> None:
        """Run ``writer(cursor)`` inside one write transaction."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            try:
                writer(cursor)
            except Exception:
                cursor.execute("ROLLBACK")
                raise
            cursor.execute("COMMIT")
        finally:
            conn.close()

    def apply(
        self,
        user_id: str,
        wallet: Optional[Wallet] = None,
        assets: Optional[AssetBalances] = None,
        entries: Sequence[LedgerEntry] = (),
    ) -> None:
        """Persist one operation's wallet, holdings and entries atomically."""

        def write(cursor: sqlite3.Cursor) -> None:
            if wallet is not None:
                self._write_wallet(cursor, user_id, wallet)
            if assets is not None:
                self._write_assets(cursor, user_id, assets)
            if entries:
                self._write_entries(cursor, user_id, entries)

        self._transaction(write)

    # ==================== Wallets ====================

    def find_wallet(self, user_id: str) -> Optional[Wallet]:
        """Get a user's stored wallet.

        Args:
            user_id: Account ID.

        Returns:
            Stored wallet, or None if none is stored.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT available_minor, pending_minor, currency, updated_at
                FROM wallets WHERE user_id = ?
                """,
                (user_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return Wallet(
                available_minor=row["available_minor"],
                pending_minor=row["pending_minor"],
                currency=row["currency"],
                updated_at=datetime.fromisoformat(row["updated_at"]),
            )
        finally:
            conn.close()

    def save_wallet(self, user_id: str, wallet: Wallet) -> None:
        self._transaction(lambda cursor: self._write_wallet(cursor, user_id, wallet))

    # ==================== Assets ====================

    def get_assets(self, user_id: str) -> AssetBalances:
        """Get a user's crypto holdings (all-zero if none are stored)."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT usdt_minor, btc, eth FROM assets WHERE user_id = ?",
                (user_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return AssetBalances()
            return AssetBalances(
                usdt_minor=row["usdt_minor"],
                btc=row["btc"],
                eth=row["eth"],
            )
        finally:
            conn.close()

    def save_assets(self, user_id: str, assets: AssetBalances) -> None:
        self._transaction(lambda cursor: self._write_assets(cursor, user_id, assets))

    # ==================== Ledger ====================

    def append_entries(self, user_id: str, entries: Sequence[LedgerEntry]) -> None:
        self._transaction(lambda cursor: self._write_entries(cursor, user_id, entries))

    def get_ledger(self, user_id: str) -> list[LedgerEntry]:
        """Get a user's ledger.

        Args:
            user_id: Account ID.

        Returns:
            Entries newest first; entries written later win ties on time.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, type, amount_minor, currency, created_at, ref_id, meta
                FROM ledger
                WHERE user_id = ?
                ORDER BY created_at DESC, seq DESC
                """,
                (user_id,),
            )
            return [
                LedgerEntry(
                    id=row["id"],
                    type=EntryType(row["type"]),
                    amount_minor=row["amount_minor"],
                    currency=row["currency"],
                    created_at=datetime.fromisoformat(row["created_at"]),
                    ref_id=row["ref_id"],
                    meta=json.loads(row["meta"] or "{}"),
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    # ==================== Referrals ====================

    def add_referral(self, user_id: str, referrer_id: str) -> None:
        """Record that ``referrer_id`` referred ``user_id``."""

        def write(cursor: sqlite3.Cursor) -> None:
            cursor.execute(
                "INSERT OR REPLACE INTO referrals (user_id, referrer_id) VALUES (?, ?)",
                (user_id, referrer_id),
            )

        self._transaction(write)

    def get_referrals(self, referrer_id: str) -> list[str]:
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT user_id FROM referrals WHERE referrer_id = ? ORDER BY user_id",
                (referrer_id,),
            )
            return [row["user_id"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Stats ====================

    def get_stats(self) -> dict:
        """Get database statistics.

        Returns:
            Dictionary with table record counts.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            stats = {}
            for table in self.REQUIRED_TABLES:
                cursor.execute(f"SELECT COUNT(*) as count FROM {table}")
                stats[table] = cursor.fetchone()["count"]
            return stats
        finally:
            conn.close()
