"""
At-most-once transfer storage.

exists() lets the orchestrator skip a network fetch for signatures already
stored; persist() is insert-if-absent, so a racing or repeated run never
creates a second row. The storage uniqueness constraint is the real guarantee.
"""

from __future__ import annotations

from typing import Protocol

from wallet_history.database.models import TransferRecord
from wallet_history.history_logging import get_logger, short_id

logger = get_logger(__name__)


class TransferStorage(Protocol):
    def exists(self, transfer_id: str) -> bool: ...

    def insert_if_absent(self, record: TransferRecord) -> bool: ...


class DedupStore:
    """Existence check plus insert-if-absent over a TransferStorage."""

    def __init__(self, storage: TransferStorage) -> None:
        self._storage = storage

    def exists(self, transfer_id: str) -> bool:
        return self._storage.exists(transfer_id)

    def persist(self, record: TransferRecord) -> bool:
        """Store record. Returns False (and does nothing) if the id was already stored."""
        inserted = self._storage.insert_if_absent(record)
        if inserted:
            logger.debug(
                "transfer_stored",
                signature=short_id(record.id),
                from_wallet=short_id(record.from_address),
                to_wallet=short_id(record.to_address),
                amount_lamports=record.amount,
            )
        else:
            logger.info("transfer_duplicate_ignored", signature=short_id(record.id))
        return inserted
