"""
Transfer reconstruction from getTransaction payloads.

Derives {from, to, amount, timestamp} for one watched wallet from its
pre/post lamport balances. Counterparty is the first other account whose
balance moved the opposite way ("unknown" if none). Purely structural apart
from the fetch: no storage access.
"""

from __future__ import annotations

import time
from typing import Any, Callable

from wallet_history.database.models import UNKNOWN_COUNTERPARTY, TransferRecord
from wallet_history.history_logging import get_logger, short_id
from wallet_history.ingestion.retry import RateLimitedClient

logger = get_logger(__name__)

# Base fee for a single signature; a bare 5000-lamport delta with no
# counterparty is vote/housekeeping traffic, not a transfer.
FEE_ONLY_LAMPORTS = 5000


def get_account_keys(
    message: dict[str, Any],
    meta: dict[str, Any] | None = None,
) -> list[str]:
    """
    Resolve accountKeys to a list of base58 strings (handles json vs jsonParsed).
    For versioned transactions, appends meta.loadedAddresses (writable + readonly),
    which is the order pre/postBalances are reported in.

    Malformed shapes resolve to no keys; an unrecognized entry becomes "" so
    positions still line up with the balance arrays.
    """
    keys = message.get("accountKeys")
    out: list[str] = []
    if isinstance(keys, list):
        for k in keys:
            if isinstance(k, str):
                out.append(k)
            elif isinstance(k, dict):
                out.append(str(k.get("pubkey", "")))
            else:
                out.append("")
    loaded = (meta or {}).get("loadedAddresses")
    if not isinstance(loaded, dict):
        return out
    for role in ("writable", "readonly"):
        addrs = loaded.get(role)
        if not isinstance(addrs, list):
            continue
        for addr in addrs:
            out.append(addr if isinstance(addr, str) else str(addr))
    return out


def _get_message_and_meta(raw: dict[str, Any]) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
    """Return (transaction.message, meta) from a getTransaction-style result."""
    tx_obj = raw.get("transaction")
    if not isinstance(tx_obj, dict):
        return None, None
    message = tx_obj.get("message")
    if not isinstance(message, dict):
        return None, None
    meta = raw.get("meta")
    if not isinstance(meta, dict):
        meta = None
    return message, meta


def _first_index(
    pre: list[int],
    post: list[int],
    *,
    skip: int,
    increased: bool,
) -> int | None:
    for i, (before, after) in enumerate(zip(pre, post)):
        if i == skip:
            continue
        if (after > before) if increased else (after < before):
            return i
    return None


class TransactionReconstructor:
    """Fetches a transaction and decodes the watched wallet's SOL transfer."""

    def __init__(
        self,
        client: RateLimitedClient,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._clock = clock

    def reconstruct(self, signature: str, watched_address: str) -> TransferRecord | None:
        """
        Fetch via the rate-limited client and decode. Provider errors propagate;
        an unavailable transaction returns None.
        """
        raw = self._client.get_transaction(signature)
        if raw is None:
            logger.info(
                "reconstruct_tx_unavailable",
                wallet_id=short_id(watched_address),
                signature=short_id(signature),
            )
            return None
        return self.decode(raw, signature, watched_address)

    def decode(
        self,
        raw: dict[str, Any],
        signature: str,
        watched_address: str,
    ) -> TransferRecord | None:
        """Decode a getTransaction result into a TransferRecord, or None if not a transfer for the wallet."""
        sig = short_id(signature)
        wallet = short_id(watched_address)

        message, meta = _get_message_and_meta(raw)
        if message is None or meta is None:
            logger.info("reconstruct_meta_missing", wallet_id=wallet, signature=sig)
            return None

        account_keys = get_account_keys(message, meta)
        try:
            pos = account_keys.index(watched_address)
        except ValueError:
            logger.info("reconstruct_wallet_not_in_accounts", wallet_id=wallet, signature=sig)
            return None

        pre = meta.get("preBalances")
        post = meta.get("postBalances")
        if not isinstance(pre, list) or not isinstance(post, list) or pos >= min(len(pre), len(post)):
            logger.warning("reconstruct_balances_malformed", wallet_id=wallet, signature=sig)
            return None

        try:
            pre_balances = [int(b) for b in pre]
            post_balances = [int(b) for b in post]
        except (TypeError, ValueError):
            logger.warning("reconstruct_balances_malformed", wallet_id=wallet, signature=sig)
            return None

        delta = post_balances[pos] - pre_balances[pos]
        if delta == 0:
            logger.debug("reconstruct_zero_delta", wallet_id=wallet, signature=sig)
            return None

        incoming = delta > 0
        # Incoming: sender is the first account that lost lamports; outgoing: first that gained.
        idx = _first_index(pre_balances, post_balances, skip=pos, increased=not incoming)
        counterparty = (
            account_keys[idx]
            if idx is not None and idx < len(account_keys) and account_keys[idx]
            else UNKNOWN_COUNTERPARTY
        )
        amount = abs(delta)

        if amount == FEE_ONLY_LAMPORTS and counterparty == UNKNOWN_COUNTERPARTY:
            logger.debug("reconstruct_fee_only_skipped", wallet_id=wallet, signature=sig)
            return None

        block_time = raw.get("blockTime")
        if block_time is not None:
            try:
                timestamp = int(block_time)
            except (TypeError, ValueError):
                block_time = None
        if block_time is None:
            timestamp = int(self._clock())
            logger.info("reconstruct_block_time_fallback", wallet_id=wallet, signature=sig)

        if incoming:
            from_address, to_address = counterparty, watched_address
        else:
            from_address, to_address = watched_address, counterparty
        return TransferRecord(
            id=signature,
            from_address=from_address,
            to_address=to_address,
            amount=amount,
            timestamp=timestamp,
        )
