"""
Domain models for database entities.

Transfer records and tracked wallets. Used by the repository layer; no ORM
coupling for transfers so the backend stays swappable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

UNKNOWN_COUNTERPARTY = "unknown"
LAMPORTS_PER_SOL = 1_000_000_000


@dataclass(frozen=True)
class TransferRecord:
    """Single reconstructed SOL transfer; id is the transaction signature."""

    id: str
    from_address: str
    to_address: str
    amount: int
    """Transfer amount in lamports; always > 0."""
    timestamp: int
    """Unix timestamp (seconds): blockTime, or ingestion wall clock when missing."""

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("TransferRecord.id must be non-empty")
        if self.amount <= 0:
            raise ValueError("TransferRecord.amount must be positive")

    @property
    def amount_sol(self) -> float:
        return self.amount / float(LAMPORTS_PER_SOL)

    def direction_for(self, wallet: str) -> str:
        """Return 'in', 'out' or 'other' relative to wallet."""
        if self.to_address == wallet:
            return "in"
        if self.from_address == wallet:
            return "out"
        return "other"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "from": self.from_address,
            "to": self.to_address,
            "amount": self.amount,
            "amount_sol": self.amount_sol,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class TrackedWallet:
    """Registry entry for a wallet whose history is ingested."""

    id: int
    address: str
