"""
Worker runner — run lifecycle for backfill and incremental sweeps.

- build_pipeline(): construct provider client, storage, registry and the
  ingestion components from Settings; handles are created once per run and
  passed down explicitly.
- run_backfill(): 365-day history for one address (on demand).
- run_incremental_sweep(): 24-hour window for every tracked wallet; seeds the
  default wallet when the registry is empty.
- run_scheduled_sweep(): repeat the sweep every SWEEP_INTERVAL_SEC via APScheduler.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from apscheduler.schedulers.blocking import BlockingScheduler

from wallet_history.config.env import mask_rpc_url
from wallet_history.config.settings import Settings
from wallet_history.database import Database, WalletRegistry, get_database
from wallet_history.history_logging import get_logger
from wallet_history.ingestion import (
    DedupStore,
    IngestionOrchestrator,
    OrchestratorConfig,
    RateLimitedClient,
    RetryPolicy,
    RunSummary,
    SignaturePaginator,
    TransactionReconstructor,
)
from wallet_history.ingestion.orchestrator import SECONDS_PER_DAY, SECONDS_PER_HOUR
from wallet_history.provider import SolanaRpcClient

logger = get_logger(__name__)

SWEEP_JOB_ID = "wallet_history_incremental_sweep"


@dataclass
class Pipeline:
    """Handles for one run; close() releases the HTTP client and DB engine."""

    provider: Any
    database: Database
    registry: WalletRegistry
    orchestrator: IngestionOrchestrator

    def close(self) -> None:
        close = getattr(self.provider, "close", None)
        if close is not None:
            close()
        self.registry.dispose()

    def __enter__(self) -> "Pipeline":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def orchestrator_config_from(settings: Settings) -> OrchestratorConfig:
    return OrchestratorConfig(
        backfill_lookback_sec=settings.backfill_lookback_days * SECONDS_PER_DAY,
        incremental_lookback_sec=settings.incremental_lookback_hours * SECONDS_PER_HOUR,
        backfill_signature_delay_sec=settings.backfill_signature_delay_sec,
        incremental_signature_delay_sec=settings.incremental_signature_delay_sec,
        max_signatures_per_wallet=settings.max_signatures_per_wallet,
    )


def build_pipeline(
    settings: Settings,
    *,
    provider: Any = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.time,
) -> Pipeline:
    """Wire provider → rate-limited client → paginator/reconstructor → dedup store → orchestrator."""
    database = get_database(settings.db_path)
    registry = WalletRegistry(settings.database_url)
    try:
        registry.init_db()
        # HTTP client is opened only once storage is ready.
        if provider is None:
            provider = SolanaRpcClient(settings.rpc_url, timeout_sec=settings.request_timeout_sec)
    except Exception:
        registry.dispose()
        raise

    client = RateLimitedClient(
        provider,
        RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            initial_delay_sec=settings.retry_initial_delay_sec,
            max_delay_sec=settings.retry_max_delay_sec,
        ),
        sleep=sleep,
    )
    orchestrator = IngestionOrchestrator(
        SignaturePaginator(
            client,
            page_size=settings.page_size,
            page_delay_sec=settings.page_delay_sec,
            sleep=sleep,
        ),
        TransactionReconstructor(client, clock=clock),
        DedupStore(database),
        orchestrator_config_from(settings),
        sleep=sleep,
        clock=clock,
    )
    logger.info(
        "pipeline_built",
        rpc_url=mask_rpc_url(settings.rpc_url),
        db_path=str(settings.db_path),
        page_size=settings.page_size,
        retry_max_attempts=settings.retry_max_attempts,
    )
    return Pipeline(provider=provider, database=database, registry=registry, orchestrator=orchestrator)


def run_backfill(settings: Settings, address: str, **pipeline_kwargs: Any) -> RunSummary:
    """Historical backfill (BACKFILL lookback) for a single address."""
    with build_pipeline(settings, **pipeline_kwargs) as pipeline:
        return pipeline.orchestrator.run_backfill(address)


def run_incremental_sweep(
    settings: Settings,
    *,
    seed_default: bool = True,
    **pipeline_kwargs: Any,
) -> RunSummary:
    """Incremental sweep over every tracked wallet (INCREMENTAL lookback)."""
    with build_pipeline(settings, **pipeline_kwargs) as pipeline:
        if seed_default and settings.default_wallet:
            pipeline.registry.seed_default_wallet(settings.default_wallet)
        addresses = pipeline.registry.list_tracked_addresses()
        if not addresses:
            logger.warning("sweep_no_wallets")
        return pipeline.orchestrator.run_incremental(addresses)


def _sweep_job(settings: Settings, seed_default: bool) -> None:
    """Scheduled job: log start, run one sweep, log end. Errors are logged and re-raised to APScheduler."""
    logger.info("sweep_job_start")
    try:
        summary = run_incremental_sweep(settings, seed_default=seed_default)
    except Exception as e:
        logger.exception("sweep_job_error", error=str(e))
        raise
    logger.info(
        "sweep_job_end",
        wallets=summary.wallets,
        stored=summary.stored,
        failed_wallets=len(summary.failed_wallets),
    )


def run_scheduled_sweep(settings: Settings, *, seed_default: bool = True) -> int:
    """
    Run the incremental sweep now and then every sweep_interval_sec until
    interrupted. One job instance at a time; missed runs are coalesced.
    """
    scheduler = BlockingScheduler()
    scheduler.add_job(
        _sweep_job,
        "interval",
        seconds=max(1.0, settings.sweep_interval_sec),
        args=(settings, seed_default),
        id=SWEEP_JOB_ID,
        max_instances=1,
        coalesce=True,
        next_run_time=datetime.now(timezone.utc),
    )
    logger.info("sweep_scheduler_started", interval_sec=settings.sweep_interval_sec)
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("sweep_scheduler_stopped")
    return 0
