"""
Pytest tests for worker runner: pipeline wiring from Settings, default wallet
seeding, and scheduler registration.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import NOW, OTHER, WALLET, FakeProvider, build_tx
from wallet_history.config import Settings
from wallet_history.database import WalletRegistry, get_database
from wallet_history.ingestion import IngestionMode
from wallet_history.provider.models import SignatureRecord
from wallet_history.worker import runner


def _settings(tmp_path: Path, **overrides) -> Settings:
    db_path = tmp_path / "runner.db"
    values = dict(
        rpc_url="https://rpc.example.test",
        db_path=db_path,
        database_url=f"sqlite:///{db_path}",
    )
    values.update(overrides)
    return Settings(**values)


def _provider_with_transfer(address: str, sig: str) -> FakeProvider:
    return FakeProvider(
        histories={address: [SignatureRecord(sig, NOW - 120)]},
        transactions={sig: build_tx([address, WALLET], [50_000, 0], [30_000, 20_000])},
    )


def test_orchestrator_config_from_settings(tmp_path):
    config = runner.orchestrator_config_from(
        _settings(tmp_path, incremental_lookback_hours=2, max_signatures_per_wallet=10)
    )

    assert config.lookback_sec(IngestionMode.INCREMENTAL) == 7200
    assert config.lookback_sec(IngestionMode.BACKFILL) == 365 * 86_400
    assert config.max_signatures_per_wallet == 10


def test_incremental_sweep_seeds_default_wallet(tmp_path, sleeps, fake_sleep, clock):
    settings = _settings(tmp_path, default_wallet=OTHER)
    provider = _provider_with_transfer(OTHER, "seed-sig")

    summary = runner.run_incremental_sweep(settings, provider=provider, sleep=fake_sleep, clock=clock)

    assert [r.address for r in summary.results] == [OTHER]
    assert summary.stored == 1
    [stored] = get_database(settings.db_path).get_transfer_history(OTHER)
    assert stored.from_address == OTHER and stored.to_address == WALLET


def test_incremental_sweep_without_seed_has_no_wallets(tmp_path, fake_sleep, clock):
    settings = _settings(tmp_path)

    summary = runner.run_incremental_sweep(
        settings, seed_default=False, provider=FakeProvider(), sleep=fake_sleep, clock=clock
    )

    assert summary.wallets == 0


def test_sweep_uses_registered_wallets(tmp_path, fake_sleep, clock):
    settings = _settings(tmp_path)
    registry = WalletRegistry(settings.database_url)
    registry.init_db()
    registry.add_wallet(OTHER)
    registry.dispose()

    summary = runner.run_incremental_sweep(
        settings,
        provider=_provider_with_transfer(OTHER, "reg-sig"),
        sleep=fake_sleep,
        clock=clock,
    )

    assert [r.address for r in summary.results] == [OTHER]


def test_backfill_uses_settings_pacing(tmp_path, sleeps, fake_sleep, clock):
    settings = _settings(tmp_path, backfill_signature_delay_sec=0.75)
    provider = FakeProvider(
        histories={OTHER: [SignatureRecord("b1", NOW - 10), SignatureRecord("b2", NOW - 20)]},
        transactions={
            "b1": build_tx([OTHER, WALLET], [50_000, 0], [30_000, 20_000]),
            "b2": build_tx([WALLET, OTHER], [50_000, 0], [30_000, 20_000]),
        },
    )

    summary = runner.run_backfill(settings, OTHER, provider=provider, sleep=fake_sleep, clock=clock)

    assert summary.mode is IngestionMode.BACKFILL
    assert summary.stored == 2
    assert sleeps == [0.75]


def test_scheduled_sweep_registers_interval_job(tmp_path, monkeypatch):
    jobs = []

    class FakeScheduler:
        def add_job(self, func, trigger, **kwargs):
            jobs.append((func, trigger, kwargs))

        def start(self):
            raise KeyboardInterrupt

    monkeypatch.setattr(runner, "BlockingScheduler", FakeScheduler)

    assert runner.run_scheduled_sweep(_settings(tmp_path, sweep_interval_sec=60)) == 0
    [(func, trigger, kwargs)] = jobs
    assert func is runner._sweep_job
    assert trigger == "interval"
    assert kwargs["seconds"] == 60
    assert kwargs["id"] == runner.SWEEP_JOB_ID
    assert kwargs["max_instances"] == 1
    assert kwargs["next_run_time"] is not None


def test_build_pipeline_storage_failure_opens_no_http_client(tmp_path, monkeypatch):
    """If the registry cannot be initialised, no RPC client is created and the engine is disposed."""
    created = []
    disposed = []

    def fail_init(self):
        raise RuntimeError("registry unavailable")

    monkeypatch.setattr(runner, "SolanaRpcClient", lambda *a, **kw: created.append(a))
    monkeypatch.setattr(WalletRegistry, "init_db", fail_init)
    monkeypatch.setattr(WalletRegistry, "dispose", lambda self: disposed.append(self))

    with pytest.raises(RuntimeError, match="registry unavailable"):
        runner.build_pipeline(_settings(tmp_path))

    assert created == []
    assert len(disposed) == 1


def test_registry_shares_transfer_db_file_by_default(tmp_path, monkeypatch):
    db_path = tmp_path / "shared.db"
    monkeypatch.setenv("DB_PATH", str(db_path))
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("SOLANA_RPC_URL", "https://rpc.example.test")

    from wallet_history.config import get_settings

    settings = get_settings()

    assert settings.database_url == f"sqlite:///{db_path}"
