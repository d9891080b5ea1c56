"""Launch supervisor running the metastore entry point on a background thread."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from metastore_harness.errors import LaunchFailure
from metastore_harness.settings import MetastoreSettings

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from metastore_harness.service.bridge import AuthBridge
    from metastore_harness.service.backend import MetastoreBackend

__all__ = ["LaunchOutcome", "LaunchSupervisor"]

logger = logging.getLogger("metastore_harness.runner")


@dataclass(slots=True)
class LaunchOutcome:
    """How the background entry point finished."""

    exit_status: int | str | None = None
    error: BaseException | None = None

    @property
    def failed(self) -> bool:
        if self.error is not None:
            return True
        return self.exit_status not in (None, 0)


class LaunchSupervisor:
    """Run ``backend.start_service`` on a daemon thread and trap its failures.

    Nothing raised by the entry point reaches the caller: the failure is
    logged and kept on :attr:`outcome`. Cancellation only sets the stop event
    the backend was handed; a backend that ignores it keeps its thread alive.
    """

    def __init__(
        self,
        backend: MetastoreBackend,
        port: int,
        settings: MetastoreSettings,
        auth_bridge: AuthBridge,
        *,
        name: str | None = None,
    ) -> None:
        self.backend = backend
        self.port = port
        self.settings = settings
        self.auth_bridge = auth_bridge
        self.stop_event = threading.Event()
        self.outcome: LaunchOutcome | None = None
        self._done = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            name=name or f"metastore-{port}",
            daemon=True,
        )

    @property
    def started(self) -> bool:
        return self._thread.ident is not None

    @property
    def finished(self) -> bool:
        return self._done.is_set()

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> None:
        logger.info("Starting metastore thread", extra={"port": self.port})
        self._thread.start()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the entry point returns; ``True`` if it did."""

        return self._done.wait(timeout)

    def cancel(self, timeout: float | None = 10.0) -> bool:
        """Signal the entry point to stop and join it for up to ``timeout``."""

        self.stop_event.set()
        if not self.started:
            return True
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning(
                "Metastore thread still running after cancellation",
                extra={"port": self.port, "timeout": timeout},
            )
            return False
        return True

    def _run(self) -> None:
        try:
            self.backend.start_service(
                self.port, self.auth_bridge, self.settings, stop_event=self.stop_event
            )
        except SystemExit as exc:
            self.outcome = LaunchOutcome(exit_status=exc.code, error=exc)
            logger.error(
                "Metastore entry point requested process exit",
                extra={"port": self.port, "status": exc.code},
            )
        except Exception as exc:
            failure = LaunchFailure(str(exc) or type(exc).__name__)
            failure.__cause__ = exc
            self.outcome = LaunchOutcome(error=failure)
            logger.exception("Metastore entry point failed", extra={"port": self.port})
        else:
            self.outcome = LaunchOutcome(exit_status=0)
            logger.info("Metastore entry point returned", extra={"port": self.port})
        finally:
            self._done.set()
