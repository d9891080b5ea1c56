from __future__ import annotations

import socket
import threading
import time

from metastore_harness.runner import EndpointProbeReadiness, FixedDelayReadiness, LaunchSupervisor
from metastore_harness.service import AuthBridge
from metastore_harness.settings import MetastoreSettings


class _Backend:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail

    def start_service(self, port, auth_bridge, settings, *, stop_event: threading.Event) -> None:
        if self.fail:
            raise RuntimeError("cannot bind")
        stop_event.wait()


def _running(port: int, fail: bool = False) -> LaunchSupervisor:
    supervisor = LaunchSupervisor(_Backend(fail), port, MetastoreSettings(), AuthBridge())
    supervisor.start()
    return supervisor


def test_fixed_delay_always_sleeps_full_delay(unused_port: int) -> None:
    slept: list[float] = []
    gate = FixedDelayReadiness(5.0, sleep=slept.append)
    supervisor = _running(unused_port)
    try:
        # Nothing listens on the port; the fixed gate does not look.
        assert gate.wait("127.0.0.1", unused_port, supervisor) is True
        assert slept == [5.0]
    finally:
        supervisor.cancel(timeout=5)


def test_probe_succeeds_when_endpoint_listens(unused_port: int) -> None:
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    listener.bind(("127.0.0.1", unused_port))
    listener.listen()
    supervisor = _running(unused_port)
    try:
        assert EndpointProbeReadiness(timeout=5).wait("127.0.0.1", unused_port, supervisor)
    finally:
        supervisor.cancel(timeout=5)
        listener.close()


def test_probe_returns_early_when_launch_fails(unused_port: int) -> None:
    supervisor = _running(unused_port, fail=True)
    start = time.monotonic()
    assert EndpointProbeReadiness(timeout=10).wait("127.0.0.1", unused_port, supervisor) is False
    assert time.monotonic() - start < 10
    assert supervisor.outcome is not None and supervisor.outcome.failed


def test_probe_times_out_without_listener(unused_port: int) -> None:
    supervisor = _running(unused_port)
    try:
        gate = EndpointProbeReadiness(timeout=0.3, interval=0.05)
        assert gate.wait("127.0.0.1", unused_port, supervisor) is False
    finally:
        supervisor.cancel(timeout=5)
