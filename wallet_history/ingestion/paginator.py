"""
Signature pagination over getSignaturesForAddress, newest first.

Walks a wallet's history backward with the "before" cursor and yields only
signatures inside the lookback window. Stops on an empty page, on a page with
nothing in the window, on a short page (no more history), or as soon as a page
crosses the window boundary. Records without blockTime are treated as outside
the window.
"""

from __future__ import annotations

import time
from typing import Callable, Iterator

from wallet_history.history_logging import get_logger, short_id
from wallet_history.ingestion.retry import RateLimitedClient
from wallet_history.provider.models import SignatureRecord

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 1000
DEFAULT_PAGE_DELAY_SEC = 1.0


class SignaturePaginator:
    """Lazy, finite sequence of in-window SignatureRecord batches for one address."""

    def __init__(
        self,
        client: RateLimitedClient,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        page_delay_sec: float = DEFAULT_PAGE_DELAY_SEC,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not (1 <= page_size <= DEFAULT_PAGE_SIZE):
            raise ValueError(f"page_size must be between 1 and {DEFAULT_PAGE_SIZE}")
        self._client = client
        self._page_size = page_size
        self._page_delay_sec = page_delay_sec
        self._sleep = sleep

    def iter_batches(self, address: str, cutoff: int) -> Iterator[list[SignatureRecord]]:
        """
        Yield filtered pages of signatures with block_time >= cutoff.

        Provider errors propagate to the caller; the next page is only
        requested when the consumer asks for it.
        """
        before: str | None = None
        page_no = 0
        total = 0
        while True:
            if page_no > 0:
                self._sleep(self._page_delay_sec)
            page_no += 1
            page = self._client.get_signatures_for_address(
                address, limit=self._page_size, before=before
            )
            if not page:
                logger.info("paginator_empty_page", wallet_id=short_id(address), page=page_no)
                break

            in_window = [r for r in page if r.in_window(cutoff)]
            if not in_window:
                logger.info(
                    "paginator_window_exhausted",
                    wallet_id=short_id(address),
                    page=page_no,
                    page_size=len(page),
                )
                break

            crossed_boundary = any(
                r.block_time is not None and r.block_time < cutoff for r in page
            )
            total += len(in_window)
            logger.info(
                "paginator_page",
                wallet_id=short_id(address),
                page=page_no,
                fetched=len(page),
                in_window=len(in_window),
                total_in_window=total,
            )
            yield in_window

            if len(page) < self._page_size:
                logger.info("paginator_history_end", wallet_id=short_id(address), page=page_no)
                break
            if crossed_boundary:
                logger.info("paginator_window_boundary", wallet_id=short_id(address), page=page_no)
                break
            before = page[-1].signature

    def iter_signatures(self, address: str, cutoff: int) -> Iterator[SignatureRecord]:
        """Flatten iter_batches into single records."""
        for batch in self.iter_batches(address, cutoff):
            yield from batch
