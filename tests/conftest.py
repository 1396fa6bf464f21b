"""
Pytest fixtures for wallet history tests.

Uses a temporary SQLite DB for transfers and the wallet registry, an in-memory
provider double that serves a fixed signature history, and recorded sleeps so
no test actually waits.
"""

from __future__ import annotations

from typing import Any

import pytest

from wallet_history.provider.models import SignatureRecord

# Valid Solana pubkeys (base58, 32 bytes)
WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
WALLET_2 = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"
OTHER = "Df9nkXFqWJsm1pjjjfZ1R7uFKkwoSBcAvEYyjy36pVjz"
SYSTEM_PROGRAM = "11111111111111111111111111111111"

NOW = 1_700_000_000


class FakeProvider:
    """
    In-memory chain data provider.

    histories: address -> SignatureRecord list, newest first; pages are sliced
    after the `before` cursor like getSignaturesForAddress.
    transactions: signature -> raw getTransaction result (missing -> None).
    signature_errors / transaction_errors: exceptions raised (and consumed) before serving.
    """

    def __init__(
        self,
        histories: dict[str, list[SignatureRecord]] | None = None,
        transactions: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self.histories = dict(histories or {})
        self.transactions = dict(transactions or {})
        self.signature_errors: dict[str, list[Exception]] = {}
        self.transaction_errors: dict[str, list[Exception]] = {}
        self.signature_calls: list[tuple[str, int, str | None]] = []
        self.transaction_calls: list[str] = []

    def get_signatures_for_address(
        self,
        address: str,
        *,
        limit: int,
        before: str | None = None,
    ) -> list[SignatureRecord]:
        self.signature_calls.append((address, limit, before))
        errors = self.signature_errors.get(address)
        if errors:
            raise errors.pop(0)
        history = self.histories.get(address, [])
        start = 0
        if before is not None:
            idx = next((i for i, r in enumerate(history) if r.signature == before), None)
            if idx is None:
                return []
            start = idx + 1
        return history[start:start + limit]

    def get_transaction(self, signature: str) -> dict[str, Any] | None:
        self.transaction_calls.append(signature)
        errors = self.transaction_errors.get(signature)
        if errors:
            raise errors.pop(0)
        return self.transactions.get(signature)


def build_tx(
    accounts: list[Any],
    pre: list[int],
    post: list[int],
    *,
    block_time: int | None = NOW - 60,
    loaded: dict[str, list[str]] | None = None,
    signature: str = "sig",
) -> dict[str, Any]:
    """Raw getTransaction-style result with the fields the reconstructor reads."""
    meta: dict[str, Any] = {"err": None, "fee": 5000, "preBalances": pre, "postBalances": post}
    if loaded is not None:
        meta["loadedAddresses"] = loaded
    return {
        "slot": 250_000_000,
        "blockTime": block_time,
        "meta": meta,
        "transaction": {
            "signatures": [signature],
            "message": {"accountKeys": accounts, "instructions": []},
        },
    }


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def sleeps() -> list[float]:
    """Collects every delay a component asked to sleep."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    return sleeps.append


@pytest.fixture
def clock():
    return lambda: float(NOW)


@pytest.fixture
def transfer_db(tmp_path):
    """Fresh SQLite transfer store per test."""
    from wallet_history.database import get_database

    return get_database(tmp_path / "wallet_history.db")


@pytest.fixture
def registry(tmp_path):
    """Fresh SQLAlchemy wallet registry per test (SQLite file in tmp_path)."""
    from wallet_history.database import WalletRegistry

    reg = WalletRegistry(f"sqlite:///{tmp_path / 'registry.db'}")
    reg.init_db()
    yield reg
    reg.dispose()


@pytest.fixture
def make_orchestrator(provider, transfer_db, fake_sleep, clock):
    """Build an orchestrator wired to the fake provider and temp DB."""
    from wallet_history.ingestion import (
        DedupStore,
        IngestionOrchestrator,
        OrchestratorConfig,
        RateLimitedClient,
        RetryPolicy,
        SignaturePaginator,
        TransactionReconstructor,
    )

    def _make(
        *,
        page_size: int = 1000,
        config: OrchestratorConfig | None = None,
        storage: Any = None,
        max_attempts: int = 3,
    ):
        client = RateLimitedClient(
            provider,
            RetryPolicy(max_attempts=max_attempts, initial_delay_sec=0.5),
            sleep=fake_sleep,
        )
        return IngestionOrchestrator(
            SignaturePaginator(client, page_size=page_size, page_delay_sec=1.0, sleep=fake_sleep),
            TransactionReconstructor(client, clock=clock),
            DedupStore(storage if storage is not None else transfer_db),
            config or OrchestratorConfig(),
            sleep=fake_sleep,
            clock=clock,
        )

    return _make
