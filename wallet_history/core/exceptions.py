"""
Application-level exceptions.

ProviderError and its RateLimitError subclass come from the chain data
provider; RateLimitError is the only retryable one. InvalidWalletError marks a
per-wallet failure. Anything outside this hierarchy is treated as fatal.
"""

from __future__ import annotations


class WalletHistoryError(Exception):
    """Base class for all wallet history errors."""


class ProviderError(WalletHistoryError):
    """Chain data provider call failed (transport, HTTP status, or JSON-RPC error)."""

    def __init__(self, message: str, *, code: int | None = None, method: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.method = method


class RateLimitError(ProviderError):
    """Provider answered with a rate-limit signal (HTTP 429 / Too Many Requests)."""


class InvalidWalletError(WalletHistoryError, ValueError):
    """Wallet address is not a valid Solana public key."""

    def __init__(self, wallet: str, reason: str = "invalid") -> None:
        super().__init__(f"Invalid Solana wallet {wallet!r}: {reason}")
        self.wallet = wallet
