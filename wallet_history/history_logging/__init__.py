"""
Structured logging for Wallet History.

JSON logs with timestamp, event_type, wallet_id and run counters.
Use get_logger() in all modules for aggregation-friendly output.
"""

from wallet_history.history_logging.logger import bind_wallet, get_logger, short_id

__all__ = ["bind_wallet", "get_logger", "short_id"]
