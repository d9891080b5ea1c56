"""End-to-end runs of the embedded metastore on a real socket."""

from __future__ import annotations

import shutil
import socket
import threading
from pathlib import Path

import pytest

from metastore_harness.client import MetastoreClient, MetastoreClientError
from metastore_harness.db import CatalogStore, engine_log_path
from metastore_harness.runner import (
    EndpointProbeReadiness,
    FixedDelayReadiness,
    LocalMetastore,
    ProcessExitIntercepted,
    ProcessGuard,
    ServiceConfiguration,
    ServicePhase,
)
from metastore_harness.service import AuthBridge, EmbeddedMetastoreBackend
from metastore_harness.settings import ConfVar, MetastoreSettings
from metastore_harness.testing import running_metastore


def test_catalog_and_txn_calls(configuration: ServiceConfiguration) -> None:
    with running_metastore(
        configuration,
        backend=EmbeddedMetastoreBackend(),
        readiness=EndpointProbeReadiness(timeout=20),
        cancel_timeout=10.0,
    ) as metastore:
        assert metastore.phase is ServicePhase.READY
        client = MetastoreClient(metastore.metastore_uri or "")
        assert client.health() == "ok"
        assert client.list_databases() == ["default"]

        client.create_database("sales")
        client.create_table("sales", "orders", [{"name": "id", "type": "bigint"}])
        assert client.list_tables("sales") == ["orders"]
        assert client.get_table("sales", "orders")["database"] == "sales"
        with pytest.raises(MetastoreClientError) as excinfo:
            client.create_database("sales")
        assert excinfo.value.status == 409

        txn_ids = client.open_txns(2)
        assert txn_ids == [1, 2]
        assert client.commit_txn(txn_ids[0])["state"] == "c"
        assert client.abort_txn(txn_ids[1])["state"] == "a"
        store_dir = Path(metastore.store_dir)
        log_path = engine_log_path(metastore.settings)

    assert metastore.phase is ServicePhase.STOPPED
    assert not metastore.handle.supervisor.is_alive()  # type: ignore[union-attr]
    assert not store_dir.exists()
    assert not log_path.exists()
    assert ProcessGuard.active() is None


def test_cleanup_drops_txn_schema_before_shutdown(configuration: ServiceConfiguration) -> None:
    metastore = LocalMetastore(
        configuration,
        readiness=EndpointProbeReadiness(timeout=20),
    )
    metastore.configure()
    metastore.start()
    try:
        client = MetastoreClient(metastore.metastore_uri or "")
        client.open_txns(1)
        assert metastore.clean_db() is True
        with pytest.raises(MetastoreClientError) as excinfo:
            client.open_txns(1)
        assert excinfo.value.status == 503
        assert metastore.prep_db() is True
        assert client.open_txns(1) == [1]
    finally:
        assert metastore.stop(cleanup=False) == []
    assert Path(metastore.store_dir).is_dir()
    log_text = engine_log_path(metastore.settings).read_text(encoding="utf-8")
    assert "Store shut down" in log_text
    shutil.rmtree(metastore.store_dir)


def test_token_protected_service(configuration: ServiceConfiguration) -> None:
    bridge = AuthBridge.with_random_token()
    with running_metastore(
        configuration,
        auth_bridge=bridge,
        readiness=EndpointProbeReadiness(timeout=20),
    ) as metastore:
        uri = metastore.metastore_uri or ""
        with pytest.raises(MetastoreClientError) as excinfo:
            MetastoreClient(uri).list_databases()
        assert excinfo.value.status == 401
        assert MetastoreClient(uri, token=bridge.token).list_databases() == ["default"]


def test_port_conflict_is_contained(configuration: ServiceConfiguration) -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
        blocker.bind(("127.0.0.1", configuration.port))
        blocker.listen()
        metastore = LocalMetastore(configuration, readiness=FixedDelayReadiness(0))
        metastore.configure()
        metastore.start()
        handle = metastore.handle
        assert handle is not None
        assert handle.supervisor.wait(20)

    outcome = handle.outcome
    assert outcome is not None and outcome.failed
    assert isinstance(outcome.error, ProcessExitIntercepted)
    assert outcome.exit_status == 1
    assert handle.guard.intercepted
    assert metastore.stop(cleanup=True) == []
    assert not Path(metastore.store_dir).exists()


def test_fixed_paths_end_to_end(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    for leftover in ("/tmp/ms-db", "/tmp/scratch", "/tmp/warehouse"):
        shutil.rmtree(leftover, ignore_errors=True)
    configuration = (
        ServiceConfiguration.builder()
        .hostname("localhost")
        .port(9933)
        .store_dir("/tmp/ms-db")
        .scratch_dir("/tmp/scratch")
        .warehouse_dir("/tmp/warehouse")
        .settings(MetastoreSettings())
        .build()
    )
    metastore = LocalMetastore(configuration, readiness=EndpointProbeReadiness(timeout=20))
    metastore.configure()
    assert metastore.metastore_uri == "thrift://localhost:9933"
    assert metastore.connection_url == "jdbc:derby:;databaseName=/tmp/ms-db;create=true"
    assert metastore.settings.get_var(ConfVar.WAREHOUSE_DIR) == "/tmp/warehouse"

    metastore.start()
    try:
        assert metastore.phase is ServicePhase.READY
        assert MetastoreClient(metastore.metastore_uri).health() == "ok"
        assert Path("/tmp/ms-db").is_dir()
        assert (tmp_path / "derby.log").exists()
    finally:
        failures = metastore.stop(cleanup=True)
    assert failures == []
    assert not Path("/tmp/ms-db").exists()
    assert not (tmp_path / "derby.log").exists()


def test_shutdown_does_not_recreate_removed_engine_log(
    configuration: ServiceConfiguration, monkeypatch: pytest.MonkeyPatch
) -> None:
    metastore = LocalMetastore(configuration)
    metastore.configure()
    settings = metastore.settings
    log_path = engine_log_path(settings)
    original_close = CatalogStore.close

    def _close_after_teardown(store: CatalogStore) -> None:
        original_close(store)
        log_path.unlink()

    monkeypatch.setattr(CatalogStore, "close", _close_after_teardown)
    stop_event = threading.Event()
    stop_event.set()
    EmbeddedMetastoreBackend().start_service(
        configuration.port, AuthBridge(), settings, stop_event=stop_event
    )
    assert not log_path.exists()
    shutil.rmtree(metastore.store_dir)
