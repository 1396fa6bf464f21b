"""
Application settings.

Builds a frozen Settings dataclass from environment variables (after .env is
loaded). Numeric values are validated here so a bad value fails the run at
startup instead of mid-ingestion.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from wallet_history.config.env import get_solana_rpc_url, load_env

DEFAULT_DB_PATH = "wallet_history.db"
DEFAULT_WALLET = "Df9nkXFqWJsm1pjjjfZ1R7uFKkwoSBcAvEYyjy36pVjz"
MAX_PAGE_SIZE = 1000


@dataclass(frozen=True)
class Settings:
    """
    Run configuration for provider access, pacing, storage and scheduling.

    Storage is split in two: transfers (wallet_transactions) always live in the
    SQLite file at db_path, while the wallet registry (wallets) lives at
    database_url. database_url defaults to the same SQLite file, so both tables
    share one database unless DATABASE_URL points the registry elsewhere.
    """

    rpc_url: str
    db_path: Path
    database_url: str
    request_timeout_sec: float = 30.0
    retry_max_attempts: int = 5
    retry_initial_delay_sec: float = 0.5
    retry_max_delay_sec: float = 60.0
    page_size: int = MAX_PAGE_SIZE
    page_delay_sec: float = 1.0
    backfill_lookback_days: float = 365.0
    incremental_lookback_hours: float = 24.0
    backfill_signature_delay_sec: float = 0.5
    incremental_signature_delay_sec: float = 0.25
    max_signatures_per_wallet: int | None = None
    sweep_interval_sec: float = 300.0
    default_wallet: str = DEFAULT_WALLET

    def __post_init__(self) -> None:
        if not self.rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        if self.retry_max_attempts < 1:
            raise ValueError("RETRY_MAX_ATTEMPTS must be >= 1")
        if not (1 <= self.page_size <= MAX_PAGE_SIZE):
            raise ValueError(f"PAGE_SIZE must be between 1 and {MAX_PAGE_SIZE}")
        if self.max_signatures_per_wallet is not None and self.max_signatures_per_wallet < 1:
            raise ValueError("MAX_SIGNATURES_PER_WALLET must be >= 1 when set")
        for name in (
            "request_timeout_sec",
            "retry_initial_delay_sec",
            "retry_max_delay_sec",
            "page_delay_sec",
            "backfill_lookback_days",
            "incremental_lookback_hours",
            "backfill_signature_delay_sec",
            "incremental_signature_delay_sec",
            "sweep_interval_sec",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")


def _env_str(name: str, default: str) -> str:
    return (os.getenv(name) or "").strip() or default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str, default: int | None) -> int | None:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def get_settings() -> Settings:
    """
    Return the current application settings.

    Reads the environment on every call; callers build one Settings per run
    and pass it down.
    """
    load_env()
    db_path = Path(_env_str("DB_PATH", DEFAULT_DB_PATH))
    database_url = _env_str("DATABASE_URL", f"sqlite:///{db_path}")
    return Settings(
        rpc_url=get_solana_rpc_url(),
        db_path=db_path,
        database_url=database_url,
        request_timeout_sec=_env_float("REQUEST_TIMEOUT_SEC", 30.0),
        retry_max_attempts=_env_int("RETRY_MAX_ATTEMPTS", 5),
        retry_initial_delay_sec=_env_float("RETRY_INITIAL_DELAY_SEC", 0.5),
        retry_max_delay_sec=_env_float("RETRY_MAX_DELAY_SEC", 60.0),
        page_size=_env_int("PAGE_SIZE", MAX_PAGE_SIZE),
        page_delay_sec=_env_float("PAGE_DELAY_SEC", 1.0),
        backfill_lookback_days=_env_float("BACKFILL_LOOKBACK_DAYS", 365.0),
        incremental_lookback_hours=_env_float("INCREMENTAL_LOOKBACK_HOURS", 24.0),
        backfill_signature_delay_sec=_env_float("BACKFILL_SIGNATURE_DELAY_SEC", 0.5),
        incremental_signature_delay_sec=_env_float("INCREMENTAL_SIGNATURE_DELAY_SEC", 0.25),
        max_signatures_per_wallet=_env_int("MAX_SIGNATURES_PER_WALLET", None),
        sweep_interval_sec=_env_float("SWEEP_INTERVAL_SEC", 300.0),
        default_wallet=_env_str("DEFAULT_WALLET", DEFAULT_WALLET),
    )
