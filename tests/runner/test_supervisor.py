from __future__ import annotations

import os
import sys
import threading

from metastore_harness.errors import LaunchFailure
from metastore_harness.runner import LaunchSupervisor, ProcessExitIntercepted, ProcessGuard
from metastore_harness.service import AuthBridge
from metastore_harness.settings import MetastoreSettings


class BlockingBackend:
    def __init__(self) -> None:
        self.started = threading.Event()

    def start_service(self, port, auth_bridge, settings, *, stop_event) -> None:
        self.started.set()
        stop_event.wait()


class FailingBackend:
    def start_service(self, port, auth_bridge, settings, *, stop_event) -> None:
        raise RuntimeError("boom")


class ExitingBackend:
    def __init__(self, exit_call) -> None:
        self.exit_call = exit_call

    def start_service(self, port, auth_bridge, settings, *, stop_event) -> None:
        self.exit_call(2)


class StubbornBackend:
    def __init__(self) -> None:
        self.release = threading.Event()

    def start_service(self, port, auth_bridge, settings, *, stop_event) -> None:
        self.release.wait(5)


def _supervisor(backend) -> LaunchSupervisor:
    return LaunchSupervisor(backend, 9999, MetastoreSettings(), AuthBridge())


def test_failure_is_captured_not_raised() -> None:
    supervisor = _supervisor(FailingBackend())
    supervisor.start()
    assert supervisor.wait(5)
    outcome = supervisor.outcome
    assert outcome is not None and outcome.failed
    assert isinstance(outcome.error, LaunchFailure)
    assert isinstance(outcome.error.__cause__, RuntimeError)
    assert supervisor.finished


def test_plain_sys_exit_is_captured() -> None:
    supervisor = _supervisor(ExitingBackend(lambda status: sys.exit(status)))
    supervisor.start()
    assert supervisor.wait(5)
    assert supervisor.outcome is not None
    assert supervisor.outcome.exit_status == 2
    assert supervisor.outcome.failed


def test_guarded_os_exit_becomes_outcome() -> None:
    with ProcessGuard():
        supervisor = _supervisor(ExitingBackend(lambda status: os._exit(status)))
        supervisor.start()
        assert supervisor.wait(5)
    outcome = supervisor.outcome
    assert outcome is not None
    assert isinstance(outcome.error, ProcessExitIntercepted)
    assert outcome.exit_status == 2


def test_cancel_stops_cooperative_backend() -> None:
    backend = BlockingBackend()
    supervisor = _supervisor(backend)
    supervisor.start()
    assert backend.started.wait(5)
    assert supervisor.is_alive()
    assert supervisor.cancel(timeout=5)
    assert supervisor.outcome is not None
    assert not supervisor.outcome.failed
    assert supervisor.outcome.exit_status == 0


def test_cancel_reports_backend_that_ignores_stop() -> None:
    backend = StubbornBackend()
    supervisor = _supervisor(backend)
    supervisor.start()
    try:
        assert supervisor.cancel(timeout=0.05) is False
        assert supervisor.stop_event.is_set()
    finally:
        backend.release.set()
    assert supervisor.wait(5)


def test_cancel_before_start_is_harmless() -> None:
    supervisor = _supervisor(BlockingBackend())
    assert supervisor.cancel(timeout=0.1) is True
    assert not supervisor.started


def test_thread_is_named_daemon() -> None:
    supervisor = LaunchSupervisor(
        BlockingBackend(), 9999, MetastoreSettings(), AuthBridge(), name="ms-test"
    )
    thread = supervisor._thread  # noqa: SLF001 - test helper
    assert thread.daemon
    assert thread.name == "ms-test"
