"""
Worker package — builds one ingestion pipeline per run and drives the two
invocation modes (on-demand backfill, periodic incremental sweep).
"""

from wallet_history.worker.runner import (
    Pipeline,
    build_pipeline,
    run_backfill,
    run_incremental_sweep,
    run_scheduled_sweep,
)

__all__ = [
    "Pipeline",
    "build_pipeline",
    "run_backfill",
    "run_incremental_sweep",
    "run_scheduled_sweep",
]
