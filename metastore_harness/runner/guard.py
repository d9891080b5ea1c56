"""Scoped interception of process-exit attempts made by the embedded service."""

from __future__ import annotations

import logging
import os
import sys
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, NoReturn

from metastore_harness.errors import MetastoreHarnessError

__all__ = ["ProcessExitIntercepted", "ProcessGuard", "ProcessGuardError"]

logger = logging.getLogger("metastore_harness.runner.guard")

_install_lock = threading.Lock()
_active_guard: ProcessGuard | None = None


class ProcessGuardError(MetastoreHarnessError):
    """Raised when a second guard is installed while one is active."""


class ProcessExitIntercepted(SystemExit):
    """Raised in place of a suppressed ``sys.exit``/``os._exit`` call."""

    def __init__(self, status: Any, via: str) -> None:
        super().__init__(status)
        self.status = status
        self.via = via

    def __str__(self) -> str:
        return f"{self.via}({self.status!r}) intercepted"


class ProcessGuard:
    """Replace the process exit hooks for the lifetime of one metastore.

    Only one guard can be installed at a time; the patched hooks are process
    wide, so two metastores in the same interpreter are not supported. Exits
    from forked children and from threads inside :meth:`authorize` reach the
    previous hooks.
    """

    def __init__(self) -> None:
        self._previous_sys_exit: Callable[..., NoReturn] | None = None
        self._previous_os_exit: Callable[[int], NoReturn] | None = None
        self._owner_pid: int | None = None
        self._local = threading.local()
        self.intercepted: list[ProcessExitIntercepted] = []

    @staticmethod
    def active() -> ProcessGuard | None:
        return _active_guard

    @property
    def installed(self) -> bool:
        return self._previous_os_exit is not None

    def __enter__(self) -> ProcessGuard:
        self.install()
        return self

    def __exit__(self, *exc: object) -> None:
        self.restore()

    def install(self) -> None:
        global _active_guard
        with _install_lock:
            if _active_guard is not None:
                raise ProcessGuardError("A process guard is already installed")
            self._previous_sys_exit = sys.exit
            self._previous_os_exit = os._exit
            self._owner_pid = os.getpid()
            sys.exit = self._intercept_sys_exit
            os._exit = self._intercept_os_exit
            _active_guard = self
        logger.debug("Process exit guard installed")

    def restore(self) -> None:
        global _active_guard
        with _install_lock:
            if not self.installed:
                return
            sys.exit = self._previous_sys_exit  # type: ignore[assignment]
            os._exit = self._previous_os_exit  # type: ignore[assignment]
            self._previous_sys_exit = None
            self._previous_os_exit = None
            self._owner_pid = None
            if _active_guard is self:
                _active_guard = None
        logger.debug("Process exit guard restored")

    @contextmanager
    def authorize(self) -> Iterator[None]:
        """Let exit calls made by this thread inside the block reach the previous hooks."""

        previous = getattr(self._local, "authorized", False)
        self._local.authorized = True
        try:
            yield
        finally:
            self._local.authorized = previous

    def _intercept_sys_exit(self, status: Any = None) -> NoReturn:
        if self._passes_through() and self._previous_sys_exit is not None:
            self._previous_sys_exit(status)
        raise self._record(status, "sys.exit")

    def _intercept_os_exit(self, status: int) -> NoReturn:
        if self._passes_through() and self._previous_os_exit is not None:
            self._previous_os_exit(status)
        raise self._record(status, "os._exit")

    def _passes_through(self) -> bool:
        if self._owner_pid is not None and os.getpid() != self._owner_pid:
            return True
        return getattr(self._local, "authorized", False)

    def _record(self, status: Any, via: str) -> ProcessExitIntercepted:
        signal = ProcessExitIntercepted(status, via)
        self.intercepted.append(signal)
        logger.warning(
            "metastore.exit_intercepted",
            extra={"via": via, "status": status, "thread_name": threading.current_thread().name},
        )
        return signal
