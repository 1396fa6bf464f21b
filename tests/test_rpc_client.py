"""
Pytest tests for SolanaRpcClient request shape and error classification.

Uses httpx.MockTransport so no network is touched.
"""

from __future__ import annotations

import json

import httpx
import pytest

from conftest import WALLET
from wallet_history.core.exceptions import ProviderError, RateLimitError
from wallet_history.provider.rpc_client import SolanaRpcClient

RPC_URL = "https://rpc.example.test"


def _client(handler) -> SolanaRpcClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return SolanaRpcClient(RPC_URL, http_client=http)


def _ok(result):
    return lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})


def test_get_signatures_request_and_parsing():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "jsonrpc": "2.0",
                "id": 1,
                "result": [
                    {"signature": "s1", "blockTime": 1700000000, "slot": 10, "err": None},
                    {"signature": "s2", "blockTime": None, "slot": 9, "err": {"InstructionError": []}},
                ],
            },
        )

    with _client(handler) as client:
        records = client.get_signatures_for_address(WALLET, limit=2, before="s0")

    body = seen[0]
    assert body["method"] == "getSignaturesForAddress"
    assert body["params"][0] == WALLET
    assert body["params"][1]["limit"] == 2
    assert body["params"][1]["before"] == "s0"
    assert [r.signature for r in records] == ["s1", "s2"]
    assert records[0].block_time == 1700000000
    assert records[1].block_time is None


def test_before_omitted_on_first_page():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": []})

    with _client(handler) as client:
        assert client.get_signatures_for_address(WALLET) == []

    assert "before" not in seen[0]["params"][1]
    assert seen[0]["params"][1]["limit"] == 1000


def test_get_transaction_params_and_none():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": None})

    with _client(handler) as client:
        assert client.get_transaction("sig") is None

    opts = seen[0]["params"][1]
    assert seen[0]["method"] == "getTransaction"
    assert opts["encoding"] == "json"
    assert opts["maxSupportedTransactionVersion"] == 0


def test_get_transaction_returns_raw_object():
    raw = {"slot": 1, "blockTime": 2, "meta": {}, "transaction": {}}
    with _client(_ok(raw)) as client:
        assert client.get_transaction("sig") == raw


def test_http_429_is_rate_limit():
    with _client(lambda r: httpx.Response(429, text="Too Many Requests")) as client:
        with pytest.raises(RateLimitError) as exc:
            client.get_transaction("sig")
    assert exc.value.code == 429


def test_rpc_error_rate_limit_message():
    def handler(request):
        return httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32005, "message": "Too many requests for a specific RPC call"}},
        )

    with _client(handler) as client:
        with pytest.raises(RateLimitError):
            client.get_signatures_for_address(WALLET)


def test_rpc_error_is_provider_error_not_rate_limit():
    def handler(request):
        return httpx.Response(
            200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "Invalid param"}}
        )

    with _client(handler) as client:
        with pytest.raises(ProviderError) as exc:
            client.get_signatures_for_address(WALLET)
    assert not isinstance(exc.value, RateLimitError)
    assert exc.value.code == -32602


def test_http_500_is_provider_error():
    with _client(lambda r: httpx.Response(500, text="oops")) as client:
        with pytest.raises(ProviderError) as exc:
            client.get_transaction("sig")
    assert not isinstance(exc.value, RateLimitError)
    assert exc.value.code == 500


def test_transport_error_is_provider_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client:
        with pytest.raises(ProviderError):
            client.get_transaction("sig")


def test_non_json_body_is_provider_error():
    with _client(lambda r: httpx.Response(200, text="<html>")) as client:
        with pytest.raises(ProviderError):
            client.get_transaction("sig")


def test_missing_result_is_provider_error():
    with _client(lambda r: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1})) as client:
        with pytest.raises(ProviderError):
            client.get_transaction("sig")


def test_limit_out_of_range_rejected():
    with _client(_ok([])) as client:
        with pytest.raises(ValueError):
            client.get_signatures_for_address(WALLET, limit=1001)
