"""Shared pytest fixtures."""

from __future__ import annotations

import socket
import threading
from collections.abc import Iterator
from pathlib import Path

import pytest

from metastore_harness.db.testing import create_test_store
from metastore_harness.runner import (
    FixedDelayReadiness,
    LocalMetastore,
    ProcessGuard,
    ServiceConfiguration,
)
from metastore_harness.service import AuthBridge, EmbeddedMetastoreBackend
from metastore_harness.settings import ConfVar, MetastoreSettings


class FakeBackend(EmbeddedMetastoreBackend):
    """Real schema handling, but a service that only waits for the stop event."""

    def __init__(self) -> None:
        super().__init__()
        self.started = threading.Event()
        self.calls: list[str] = []

    def start_service(
        self,
        port: int,
        auth_bridge: AuthBridge,
        settings: MetastoreSettings,
        *,
        stop_event: threading.Event,
    ) -> None:
        self.calls.append("start_service")
        self.started.set()
        stop_event.wait()

    def prepare_schema(self, settings: MetastoreSettings) -> None:
        self.calls.append("prepare_schema")
        super().prepare_schema(settings)

    def clean_schema(self, settings: MetastoreSettings) -> None:
        self.calls.append("clean_schema")
        super().clean_schema(settings)


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return int(sock.getsockname()[1])


@pytest.fixture(autouse=True)
def _release_process_guard() -> Iterator[None]:
    yield
    guard = ProcessGuard.active()
    if guard is not None:
        guard.restore()


@pytest.fixture()
def catalog_store():
    return create_test_store()


@pytest.fixture()
def configuration(tmp_path: Path) -> ServiceConfiguration:
    settings = MetastoreSettings({ConfVar.ENGINE_LOG_FILE.value: str(tmp_path / "derby.log")})
    return (
        ServiceConfiguration.builder()
        .hostname("127.0.0.1")
        .port(free_port())
        .store_dir(tmp_path / "ms-db")
        .scratch_dir(tmp_path / "scratch")
        .warehouse_dir(tmp_path / "warehouse")
        .settings(settings)
        .build()
    )


@pytest.fixture()
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def metastore(
    configuration: ServiceConfiguration, fake_backend: FakeBackend
) -> Iterator[LocalMetastore]:
    instance = LocalMetastore(
        configuration,
        backend=fake_backend,
        readiness=FixedDelayReadiness(0),
        cancel_timeout=5.0,
    )
    yield instance
    instance.stop(cleanup=True)


@pytest.fixture()
def unused_port() -> int:
    return free_port()
