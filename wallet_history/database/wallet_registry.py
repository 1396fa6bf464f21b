"""
Wallet registry — SQLAlchemy-backed list of tracked wallet addresses.

Works with any SQLAlchemy URL (sqlite:///... by default, PostgreSQL via
DATABASE_URL). One WalletRegistry per run, constructed by the worker and
passed to whatever needs it.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from solders.pubkey import Pubkey
from sqlalchemy import Column, Integer, String, create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from wallet_history.core.exceptions import InvalidWalletError
from wallet_history.database.models import TrackedWallet
from wallet_history.history_logging import get_logger, short_id

logger = get_logger(__name__)

Base = declarative_base()


class TrackedWalletRow(Base):
    """One row per tracked wallet address."""

    __tablename__ = "wallets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    address = Column(String(64), unique=True, nullable=False, index=True)

    def to_model(self) -> TrackedWallet:
        return TrackedWallet(id=self.id, address=self.address)


def validate_wallet(wallet: str) -> str:
    """Return the stripped address if it is a valid Solana public key; raise InvalidWalletError."""
    address = (wallet or "").strip()
    if not address:
        raise InvalidWalletError(wallet or "", "wallet must be non-empty")
    try:
        Pubkey.from_string(address)
    except Exception as e:
        raise InvalidWalletError(address, str(e)) from e
    return address


def is_valid_wallet(wallet: str) -> bool:
    """Return True if wallet is a valid Solana (Pubkey) address."""
    try:
        validate_wallet(wallet)
        return True
    except InvalidWalletError:
        return False


class WalletRegistry:
    """Tracked wallet CRUD over SQLAlchemy sessions."""

    def __init__(self, database_url: str, *, engine: Any = None) -> None:
        connect_args: dict[str, Any] = {}
        if database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self._url = database_url
        self._engine = engine or create_engine(
            database_url, connect_args=connect_args, pool_pre_ping=True
        )
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Single session; commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_db(self) -> None:
        """Create the wallets table if it does not exist. Safe to call on every startup."""
        Base.metadata.create_all(bind=self._engine)
        logger.info("wallet_registry_init_db", url=self._url.split("?")[0].split("//")[-1])

    def dispose(self) -> None:
        self._engine.dispose()

    def add_wallet(self, wallet: str) -> bool:
        """
        Insert wallet after Pubkey validation.
        Returns True if inserted, False if it was already tracked.
        """
        address = validate_wallet(wallet)
        try:
            with self._session_scope() as session:
                session.add(TrackedWalletRow(address=address))
                session.flush()
        except IntegrityError:
            logger.info("wallet_already_tracked", wallet_id=short_id(address))
            return False
        logger.info("wallet_added", wallet_id=short_id(address))
        return True

    def remove_wallet(self, wallet: str) -> bool:
        """Delete a tracked wallet. Returns True if a row was removed."""
        address = (wallet or "").strip()
        with self._session_scope() as session:
            deleted = (
                session.query(TrackedWalletRow)
                .filter(TrackedWalletRow.address == address)
                .delete()
            )
        if deleted:
            logger.info("wallet_removed", wallet_id=short_id(address))
        return bool(deleted)

    def list_wallets(self) -> list[TrackedWallet]:
        with self._session_scope() as session:
            rows = session.query(TrackedWalletRow).order_by(TrackedWalletRow.id).all()
            return [r.to_model() for r in rows]

    def list_tracked_addresses(self) -> list[str]:
        """Return tracked addresses in registration order."""
        return [w.address for w in self.list_wallets()]

    def seed_default_wallet(self, wallet: str) -> bool:
        """Register wallet only when the registry is empty. Returns True if it was added."""
        if self.list_tracked_addresses():
            return False
        added = self.add_wallet(wallet)
        if added:
            logger.info("wallet_registry_seeded", wallet_id=short_id(wallet))
        return added
