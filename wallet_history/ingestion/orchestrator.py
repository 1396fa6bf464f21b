"""
Ingestion orchestrator: pagination → dedup check → fetch/reconstruct → persist.

Strictly sequential: one wallet at a time, one signature at a time, so the
request rate against the provider stays predictable. Two modes share the
pipeline: BACKFILL (365-day lookback, slower per-signature pacing) and
INCREMENTAL (24-hour lookback).

Error isolation:
- per signature: ProviderError (including exhausted rate-limit retries) is
  logged and the signature skipped;
- per wallet: InvalidWalletError or a ProviderError during pagination is
  logged and the run moves on to the next wallet;
- anything else (storage, programming errors) propagates.
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable

from wallet_history.core.exceptions import InvalidWalletError, ProviderError
from wallet_history.database.wallet_registry import validate_wallet
from wallet_history.history_logging import bind_wallet, get_logger, short_id
from wallet_history.ingestion.dedup import DedupStore
from wallet_history.ingestion.paginator import SignaturePaginator
from wallet_history.ingestion.reconstructor import TransactionReconstructor

logger = get_logger(__name__)

SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR
PROGRESS_LOG_EVERY = 50


class IngestionMode(str, enum.Enum):
    BACKFILL = "backfill"
    INCREMENTAL = "incremental"


@dataclass
class OrchestratorConfig:
    """Lookback windows and per-signature pacing for both modes."""

    backfill_lookback_sec: float = 365 * SECONDS_PER_DAY
    incremental_lookback_sec: float = 24 * SECONDS_PER_HOUR
    backfill_signature_delay_sec: float = 0.5
    incremental_signature_delay_sec: float = 0.25
    max_signatures_per_wallet: int | None = None

    def lookback_sec(self, mode: IngestionMode) -> float:
        if mode is IngestionMode.BACKFILL:
            return self.backfill_lookback_sec
        return self.incremental_lookback_sec

    def signature_delay_sec(self, mode: IngestionMode) -> float:
        if mode is IngestionMode.BACKFILL:
            return self.backfill_signature_delay_sec
        return self.incremental_signature_delay_sec


@dataclass
class WalletIngestionResult:
    """Per-wallet counters; error is set when the wallet was abandoned."""

    address: str
    mode: IngestionMode
    signatures_seen: int = 0
    already_stored: int = 0
    fetched: int = 0
    filtered: int = 0
    stored: int = 0
    duplicates: int = 0
    failed: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RunSummary:
    """Aggregate outcome of one orchestrator run."""

    mode: IngestionMode
    results: list[WalletIngestionResult] = field(default_factory=list)

    @property
    def wallets(self) -> int:
        return len(self.results)

    @property
    def failed_wallets(self) -> list[str]:
        return [r.address for r in self.results if not r.ok]

    @property
    def stored(self) -> int:
        return sum(r.stored for r in self.results)

    @property
    def signatures_seen(self) -> int:
        return sum(r.signatures_seen for r in self.results)


class IngestionOrchestrator:
    """Drives the ingestion pipeline for one or many wallets."""

    def __init__(
        self,
        paginator: SignaturePaginator,
        reconstructor: TransactionReconstructor,
        store: DedupStore,
        config: OrchestratorConfig | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._paginator = paginator
        self._reconstructor = reconstructor
        self._store = store
        self._config = config or OrchestratorConfig()
        self._sleep = sleep
        self._clock = clock

    def cutoff_for(self, mode: IngestionMode) -> int:
        """Earliest blockTime (Unix seconds) inside the mode's lookback window."""
        return int(self._clock() - self._config.lookback_sec(mode))

    def ingest_wallet(self, address: str, mode: IngestionMode) -> WalletIngestionResult:
        """
        Ingest one wallet. Raises InvalidWalletError for a bad address and
        ProviderError if signature pagination fails; per-signature failures
        are counted, not raised.
        """
        address = validate_wallet(address)
        log = bind_wallet(address)
        result = WalletIngestionResult(address=address, mode=mode)
        cutoff = self.cutoff_for(mode)
        delay = self._config.signature_delay_sec(mode)
        cap = self._config.max_signatures_per_wallet
        log.info("wallet_ingest_started", mode=mode.value, cutoff=cutoff)

        for record in self._paginator.iter_signatures(address, cutoff):
            if cap is not None and result.signatures_seen >= cap:
                log.info("wallet_ingest_cap_reached", max_signatures=cap)
                break
            result.signatures_seen += 1
            self._process_signature(record.signature, address, result, delay)
            if result.signatures_seen % PROGRESS_LOG_EVERY == 0:
                log.info(
                    "wallet_ingest_progress",
                    signatures_seen=result.signatures_seen,
                    stored=result.stored,
                )

        log.info(
            "wallet_ingest_done",
            mode=mode.value,
            signatures_seen=result.signatures_seen,
            already_stored=result.already_stored,
            fetched=result.fetched,
            filtered=result.filtered,
            stored=result.stored,
            duplicates=result.duplicates,
            failed=result.failed,
        )
        return result

    def _process_signature(
        self,
        signature: str,
        address: str,
        result: WalletIngestionResult,
        delay: float,
    ) -> None:
        if self._store.exists(signature):
            result.already_stored += 1
            logger.debug(
                "signature_already_stored",
                wallet_id=short_id(address),
                signature=short_id(signature),
            )
            return
        if result.fetched > 0:
            self._sleep(delay)
        result.fetched += 1
        try:
            record = self._reconstructor.reconstruct(signature, address)
        except ProviderError as e:
            result.failed += 1
            logger.warning(
                "signature_fetch_failed",
                wallet_id=short_id(address),
                signature=short_id(signature),
                error=str(e),
            )
            return
        if record is None:
            result.filtered += 1
            return
        if self._store.persist(record):
            result.stored += 1
        else:
            result.duplicates += 1

    def run(self, addresses: Iterable[str], mode: IngestionMode) -> RunSummary:
        """Ingest each address in order; per-wallet failures are logged and recorded."""
        summary = RunSummary(mode=mode)
        addresses = list(addresses)
        logger.info("ingest_run_started", mode=mode.value, wallet_count=len(addresses))
        for address in addresses:
            try:
                result = self.ingest_wallet(address, mode)
            except (InvalidWalletError, ProviderError) as e:
                logger.warning(
                    "wallet_ingest_failed",
                    wallet_id=short_id(address),
                    mode=mode.value,
                    error=str(e),
                )
                result = WalletIngestionResult(address=address, mode=mode, error=str(e))
            summary.results.append(result)
        logger.info(
            "ingest_run_done",
            mode=mode.value,
            wallets=summary.wallets,
            failed_wallets=len(summary.failed_wallets),
            signatures_seen=summary.signatures_seen,
            stored=summary.stored,
        )
        return summary

    def run_backfill(self, address: str) -> RunSummary:
        return self.run([address], IngestionMode.BACKFILL)

    def run_incremental(self, addresses: Iterable[str]) -> RunSummary:
        return self.run(addresses, IngestionMode.INCREMENTAL)
