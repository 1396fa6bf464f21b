"""
Retry with exponential backoff for provider calls.

RetryPolicy is generic: an operation is retried only while `is_retryable`
says so, waiting initial_delay_sec, then doubling (capped at max_delay_sec),
for at most max_attempts total attempts. RateLimitedClient applies the policy
to every provider call the pipeline makes.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from wallet_history.core.exceptions import RateLimitError
from wallet_history.history_logging import get_logger, short_id
from wallet_history.provider.models import SignatureRecord

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_INITIAL_DELAY_SEC = 0.5
DEFAULT_MAX_DELAY_SEC = 60.0


def is_rate_limit_error(error: BaseException) -> bool:
    return isinstance(error, RateLimitError)


@dataclass
class RetryPolicy:
    """Bounded exponential backoff parameterized by an is-retryable predicate."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    initial_delay_sec: float = DEFAULT_INITIAL_DELAY_SEC
    max_delay_sec: float | None = DEFAULT_MAX_DELAY_SEC
    is_retryable: Callable[[BaseException], bool] = field(default=is_rate_limit_error)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_delay_sec < 0:
            raise ValueError("initial_delay_sec must be non-negative")

    def delay_for(self, retry_number: int) -> float:
        """Delay before retry N (1-based): initial * 2**(N-1), capped."""
        delay = self.initial_delay_sec * (2 ** (retry_number - 1))
        if self.max_delay_sec is not None:
            delay = min(delay, self.max_delay_sec)
        return delay

    def run(
        self,
        operation: Callable[..., T],
        *args: Any,
        sleep: Callable[[float], None] = time.sleep,
        label: str | None = None,
        **kwargs: Any,
    ) -> T:
        """
        Call operation(*args, **kwargs). Retryable errors are retried after a
        backoff sleep; any other error propagates immediately. When attempts are
        exhausted the last error is re-raised.
        """
        name = label or getattr(operation, "__name__", "operation")
        attempt = 1
        while True:
            try:
                return operation(*args, **kwargs)
            except Exception as e:
                if not self.is_retryable(e):
                    raise
                if attempt >= self.max_attempts:
                    logger.error(
                        "provider_retry_exhausted",
                        operation=name,
                        attempts=attempt,
                        error=str(e),
                    )
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "provider_rate_limited",
                    operation=name,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    retry_in_sec=delay,
                    error=str(e),
                )
                sleep(delay)
                attempt += 1


class RateLimitedClient:
    """
    Wraps the chain data provider so every call goes through the retry policy.

    `provider` is anything exposing get_signatures_for_address(address, limit=, before=)
    and get_transaction(signature), e.g. SolanaRpcClient or a test double.
    """

    def __init__(
        self,
        provider: Any,
        policy: RetryPolicy | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._provider = provider
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    def call(self, operation: Callable[..., T], *args: Any, label: str | None = None, **kwargs: Any) -> T:
        """Run any provider operation under the retry policy."""
        return self._policy.run(operation, *args, sleep=self._sleep, label=label, **kwargs)

    def get_signatures_for_address(
        self,
        address: str,
        *,
        limit: int,
        before: str | None = None,
    ) -> list[SignatureRecord]:
        logger.debug(
            "provider_signatures_request",
            wallet_id=short_id(address),
            limit=limit,
            before=short_id(before),
        )
        return self.call(
            self._provider.get_signatures_for_address,
            address,
            limit=limit,
            before=before,
            label="getSignaturesForAddress",
        )

    def get_transaction(self, signature: str) -> dict[str, Any] | None:
        return self.call(
            self._provider.get_transaction,
            signature,
            label="getTransaction",
        )
