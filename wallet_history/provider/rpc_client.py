"""
Solana JSON-RPC client over HTTP.

Two read-only operations: getSignaturesForAddress (paginated with a
"before" cursor) and getTransaction. Rate-limit answers (HTTP 429, or a
JSON-RPC error carrying code 429 / "Too Many Requests") raise RateLimitError;
every other failure raises ProviderError. No retries here: RateLimitedClient
owns retry policy.
"""

from __future__ import annotations

from typing import Any

import httpx

from wallet_history.core.exceptions import ProviderError, RateLimitError
from wallet_history.history_logging import get_logger, short_id
from wallet_history.provider.models import SignatureRecord

logger = get_logger(__name__)

RATE_LIMIT_STATUS = 429
_RATE_LIMIT_MARKERS = ("too many requests", "rate limit")
DEFAULT_TIMEOUT_SEC = 30.0
MAX_SIGNATURES_LIMIT = 1000


def _is_rate_limit_rpc_error(err: dict[str, Any]) -> bool:
    code = err.get("code")
    message = str(err.get("message") or "").lower()
    return code == RATE_LIMIT_STATUS or any(m in message for m in _RATE_LIMIT_MARKERS)


class SolanaRpcClient:
    """
    Minimal synchronous JSON-RPC client for the two calls the ingestion
    pipeline consumes. Owns one httpx.Client; close() or use as a context manager.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        commitment: str = "confirmed",
        http_client: httpx.Client | None = None,
    ) -> None:
        if not rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        self._rpc_url = rpc_url.strip().rstrip("/")
        self._commitment = commitment
        self._client = http_client or httpx.Client(timeout=httpx.Timeout(timeout_sec))
        self._request_id = 0

    def __enter__(self) -> "SolanaRpcClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    def _post(self, method: str, params: list[Any]) -> Any:
        """Perform one JSON-RPC call; return `result` or raise ProviderError/RateLimitError."""
        body = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": params,
        }
        try:
            resp = self._client.post(self._rpc_url, json=body)
        except httpx.HTTPError as e:
            raise ProviderError(f"{method} transport error: {e}", method=method) from e
        if resp.status_code == RATE_LIMIT_STATUS:
            raise RateLimitError(
                f"{method}: 429 Too Many Requests",
                code=RATE_LIMIT_STATUS,
                method=method,
            )
        try:
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"{method} HTTP {resp.status_code}", code=resp.status_code, method=method
            ) from e
        except ValueError as e:
            raise ProviderError(f"{method} returned non-JSON body", method=method) from e
        if not isinstance(data, dict):
            raise ProviderError(f"{method} returned malformed envelope", method=method)
        err = data.get("error")
        if err:
            err = err if isinstance(err, dict) else {"message": str(err)}
            message = f"Solana RPC error: {err.get('message', err)} (code={err.get('code')})"
            if _is_rate_limit_rpc_error(err):
                raise RateLimitError(message, code=err.get("code"), method=method)
            raise ProviderError(message, code=err.get("code"), method=method)
        if "result" not in data:
            raise ProviderError(f"{method} returned no result", method=method)
        return data["result"]

    def get_signatures_for_address(
        self,
        address: str,
        *,
        limit: int = MAX_SIGNATURES_LIMIT,
        before: str | None = None,
    ) -> list[SignatureRecord]:
        """Return up to `limit` signatures for address, newest first, older than `before`."""
        if not (1 <= limit <= MAX_SIGNATURES_LIMIT):
            raise ValueError(f"limit must be between 1 and {MAX_SIGNATURES_LIMIT}")
        opts: dict[str, Any] = {"limit": limit, "commitment": self._commitment}
        if before is not None:
            opts["before"] = before
        result = self._post("getSignaturesForAddress", [address, opts])
        if not isinstance(result, list):
            raise ProviderError(
                "getSignaturesForAddress result is not a list",
                method="getSignaturesForAddress",
            )
        records: list[SignatureRecord] = []
        for item in result:
            if not isinstance(item, dict) or "signature" not in item:
                continue
            try:
                records.append(SignatureRecord.from_rpc_item(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("rpc_signature_item_skipped", wallet_id=short_id(address), error=str(e))
        return records

    def get_transaction(self, signature: str) -> dict[str, Any] | None:
        """
        Fetch a single transaction by signature (JSON encoding).
        Returns the raw result object (transaction, meta, blockTime, slot) or None
        when the provider does not have it.
        """
        result = self._post(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "json",
                    "commitment": self._commitment,
                    "maxSupportedTransactionVersion": 0,
                },
            ],
        )
        if result is None:
            return None
        if not isinstance(result, dict):
            raise ProviderError("getTransaction result is not an object", method="getTransaction")
        return result
