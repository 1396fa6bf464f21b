"""
structlog setup for the ingestion worker.

Every line carries event_type, level, logger and an ISO timestamp, plus the
run fields the caller passes (wallet_id, signature, page, stored, failed...).
Addresses and signatures are long base58 strings, so log fields hold them
through short_id(). LOG_FORMAT=json (default) writes one JSON object per line
to stdout; any other value switches to the console renderer.

Imports nothing from wallet_history so every module can use it.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

SHORT_ID_LEN = 16
WALLET_LOGGER_NAME = "wallet_history.wallet"


def _stamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _event_type(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Emit the event name as event_type (e.g. "paginator_page", "wallet_ingest_done")."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def _renderer() -> Any:
    if LOG_FORMAT == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _stamp,
            _event_type,
            _renderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, LOG_LEVEL, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def short_id(value: str | None) -> str:
    """First 16 chars of an address or signature, "..." appended when cut."""
    if not value:
        return ""
    if len(value) <= SHORT_ID_LEN:
        return value
    return value[:SHORT_ID_LEN] + "..."


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger; call with a snake_case event and keyword fields:

        logger = get_logger(__name__)
        logger.info("paginator_page", wallet_id=short_id(addr), page=2, in_window=87)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_wallet(wallet_id: str) -> structlog.BoundLogger:
    """Logger for one wallet's ingestion; wallet_id is already shortened."""
    return get_logger(WALLET_LOGGER_NAME).bind(wallet_id=short_id(wallet_id))
