"""
Configuration management for the wallet history worker.

Loads and validates settings from environment variables and an optional
.env file. Exposes a single source of truth for all run configuration.
"""

from wallet_history.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
