"""Readiness gates run between launching the metastore and using it."""

from __future__ import annotations

import logging
import socket
import time
from collections.abc import Callable
from typing import Protocol

from .supervisor import LaunchSupervisor

__all__ = ["EndpointProbeReadiness", "FixedDelayReadiness", "ReadinessGate"]

logger = logging.getLogger("metastore_harness.runner")

DEFAULT_READINESS_DELAY = 5.0


class ReadinessGate(Protocol):
    def wait(self, host: str, port: int, supervisor: LaunchSupervisor) -> bool: ...


class FixedDelayReadiness:
    """Sleep for a fixed delay and assume the service is bound afterwards.

    The endpoint is never checked, so a slow start races the first client
    call. Use :class:`EndpointProbeReadiness` when that matters.
    """

    def __init__(
        self,
        delay: float = DEFAULT_READINESS_DELAY,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.delay = delay
        self._sleep = sleep

    def wait(self, host: str, port: int, supervisor: LaunchSupervisor) -> bool:
        logger.debug("Waiting %.1fs for metastore on %s:%s", self.delay, host, port)
        self._sleep(self.delay)
        return True


class EndpointProbeReadiness:
    """Poll a TCP connect to the endpoint until it answers or time runs out."""

    def __init__(self, timeout: float = 30.0, interval: float = 0.1) -> None:
        self.timeout = timeout
        self.interval = interval

    def wait(self, host: str, port: int, supervisor: LaunchSupervisor) -> bool:
        deadline = time.monotonic() + self.timeout
        while time.monotonic() < deadline:
            if supervisor.finished:
                logger.error(
                    "Metastore thread exited before binding",
                    extra={"host": host, "port": port},
                )
                return False
            if _port_open(host, port, self.interval):
                return True
            time.sleep(self.interval)
        logger.error(
            "Metastore endpoint not reachable",
            extra={"host": host, "port": port, "timeout": self.timeout},
        )
        return False


def _port_open(host: str, port: int, timeout: float) -> bool:
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False
