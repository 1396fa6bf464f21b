"""
Transfer storage: insert-if-absent persistence and history reads.

SQLite backend for the wallet_transactions table; designed so the backend
can be swapped (e.g. PostgreSQL) via a different TransferStoreBackend.
The PRIMARY KEY on id is the durability guarantee against duplicate rows:
inserts use ON CONFLICT(id) DO NOTHING, so overlapping runs are safe.
"""

from __future__ import annotations

import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from wallet_history.database.models import TransferRecord
from wallet_history.history_logging import get_logger

logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# Schema (SQLite). For PostgreSQL: amount BIGINT, time TIMESTAMP, and %s.
# -----------------------------------------------------------------------------

SCHEMA_WALLET_TRANSACTIONS = """
CREATE TABLE IF NOT EXISTS wallet_transactions (
    id TEXT PRIMARY KEY,
    from_wallet TEXT NOT NULL,
    to_wallet TEXT NOT NULL,
    amount INTEGER NOT NULL CHECK (amount > 0),
    time INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS ix_wallet_transactions_from ON wallet_transactions(from_wallet);
CREATE INDEX IF NOT EXISTS ix_wallet_transactions_to ON wallet_transactions(to_wallet);
CREATE INDEX IF NOT EXISTS ix_wallet_transactions_time ON wallet_transactions(time);
"""


# -----------------------------------------------------------------------------
# Abstract backend: swap implementation for PostgreSQL later.
# -----------------------------------------------------------------------------


class TransferStoreBackend(ABC):
    """Abstract interface for transfer persistence."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        ...

    @abstractmethod
    def exists(self, transfer_id: str) -> bool:
        """Return True if a transfer with this id is stored."""
        ...

    @abstractmethod
    def insert_if_absent(self, record: TransferRecord) -> bool:
        """Insert record unless its id exists. Returns True if a row was inserted."""
        ...

    @abstractmethod
    def get_transfer_history(
        self,
        wallet: str,
        *,
        limit: int = 500,
        since_timestamp: int | None = None,
        until_timestamp: int | None = None,
    ) -> list[TransferRecord]:
        """Return transfers where wallet is sender or receiver, newest first."""
        ...

    @abstractmethod
    def count_transfers(self) -> int:
        """Return total stored transfer rows."""
        ...


# -----------------------------------------------------------------------------
# SQLite backend
# -----------------------------------------------------------------------------


class SQLiteBackend(TransferStoreBackend):
    """SQLite implementation; single file, one connection per operation."""

    def __init__(self, path: str | Path, *, timeout_sec: float = 5.0) -> None:
        self._path = Path(path)
        self._timeout_sec = timeout_sec

    def _connect(self) -> sqlite3.Connection:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._path), timeout=self._timeout_sec)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        conn = self._connect()
        try:
            cur = conn.cursor()
            yield cur
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        with self._cursor() as cur:
            cur.executescript(SCHEMA_WALLET_TRANSACTIONS)

    def exists(self, transfer_id: str) -> bool:
        with self._cursor() as cur:
            cur.execute("SELECT 1 FROM wallet_transactions WHERE id = ?", (transfer_id,))
            return cur.fetchone() is not None

    def insert_if_absent(self, record: TransferRecord) -> bool:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO wallet_transactions (id, from_wallet, to_wallet, amount, time)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO NOTHING
                """,
                (
                    record.id,
                    record.from_address,
                    record.to_address,
                    record.amount,
                    record.timestamp,
                ),
            )
            return cur.rowcount > 0

    def get_transfer_history(
        self,
        wallet: str,
        *,
        limit: int = 500,
        since_timestamp: int | None = None,
        until_timestamp: int | None = None,
    ) -> list[TransferRecord]:
        sql = """
            SELECT id, from_wallet, to_wallet, amount, time
            FROM wallet_transactions WHERE (from_wallet = ? OR to_wallet = ?)
        """
        params: list[Any] = [wallet, wallet]
        if since_timestamp is not None:
            sql += " AND time >= ?"
            params.append(since_timestamp)
        if until_timestamp is not None:
            sql += " AND time <= ?"
            params.append(until_timestamp)
        sql += " ORDER BY time DESC, id DESC LIMIT ?"
        params.append(limit)
        with self._cursor() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [
            TransferRecord(
                id=row["id"],
                from_address=row["from_wallet"],
                to_address=row["to_wallet"],
                amount=row["amount"],
                timestamp=row["time"],
            )
            for row in rows
        ]

    def count_transfers(self) -> int:
        with self._cursor() as cur:
            cur.execute("SELECT COUNT(*) FROM wallet_transactions")
            return int(cur.fetchone()[0])


# -----------------------------------------------------------------------------
# Database facade: single entrypoint; backend is swappable.
# -----------------------------------------------------------------------------


class Database:
    """
    Transfer storage facade used by DedupStore and the CLI history command.

    Uses a TransferStoreBackend (SQLite by default).
    """

    def __init__(self, backend: TransferStoreBackend) -> None:
        self._backend = backend

    def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        self._backend.ensure_schema()

    def exists(self, transfer_id: str) -> bool:
        return self._backend.exists(transfer_id)

    def insert_if_absent(self, record: TransferRecord) -> bool:
        """Insert unless the id is already stored. Returns True if inserted."""
        return self._backend.insert_if_absent(record)

    def get_transfer_history(
        self,
        wallet: str,
        *,
        limit: int = 500,
        since_timestamp: int | None = None,
        until_timestamp: int | None = None,
    ) -> list[TransferRecord]:
        return self._backend.get_transfer_history(
            wallet, limit=limit, since_timestamp=since_timestamp, until_timestamp=until_timestamp
        )

    def count_transfers(self) -> int:
        return self._backend.count_transfers()


def get_database(path: str | Path | None = None) -> Database:
    """
    Return a Database with its schema ensured.

    path: SQLite file (e.g. "data/wallet_history.db"). Default: "wallet_history.db" in cwd.
    """
    if path is None:
        path = Path("wallet_history.db")
    backend = SQLiteBackend(path)
    db = Database(backend)
    db.ensure_schema()
    logger.debug("transfer_store_ready", path=str(path))
    return db
