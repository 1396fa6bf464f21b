"""
Data models for provider output.

SignatureRecord is ephemeral: produced by pagination, consumed by
reconstruction, never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class SignatureRecord:
    """
    Normalized transaction signature info from getSignaturesForAddress.

    Mirrors Solana RPC response fields; block_time is None when the
    provider has no timestamp for the slot.
    """

    signature: str
    block_time: int | None  # Unix timestamp; None if not available
    slot: int | None = None
    err: Any = None  # None if success; dict from RPC if the tx failed

    @classmethod
    def from_rpc_item(cls, item: dict[str, Any]) -> "SignatureRecord":
        """Build from a single getSignaturesForAddress result item."""
        block_time = item.get("blockTime")
        slot = item.get("slot")
        return cls(
            signature=item["signature"],
            block_time=int(block_time) if block_time is not None else None,
            slot=int(slot) if slot is not None else None,
            err=item.get("err"),
        )

    def in_window(self, cutoff: int) -> bool:
        """True when block_time is known and not older than cutoff."""
        return self.block_time is not None and self.block_time >= cutoff
