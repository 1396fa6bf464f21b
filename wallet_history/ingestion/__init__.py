# Wallet history ingestion: retry, pagination, reconstruction, dedup, orchestration.

from wallet_history.ingestion.dedup import DedupStore
from wallet_history.ingestion.orchestrator import (
    IngestionMode,
    IngestionOrchestrator,
    OrchestratorConfig,
    RunSummary,
    WalletIngestionResult,
)
from wallet_history.ingestion.paginator import SignaturePaginator
from wallet_history.ingestion.reconstructor import TransactionReconstructor
from wallet_history.ingestion.retry import RateLimitedClient, RetryPolicy

__all__ = [
    "DedupStore",
    "IngestionMode",
    "IngestionOrchestrator",
    "OrchestratorConfig",
    "RateLimitedClient",
    "RetryPolicy",
    "RunSummary",
    "SignaturePaginator",
    "TransactionReconstructor",
    "WalletIngestionResult",
]
