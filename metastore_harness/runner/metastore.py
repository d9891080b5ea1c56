"""Lifecycle manager for an embedded metastore used by integration tests."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from metastore_harness.db.session import engine_log_path
from metastore_harness.db.txn import TxnSchema
from metastore_harness.errors import LifecycleError, SchemaOperationFailure, TeardownStepFailure
from metastore_harness.service.backend import EmbeddedMetastoreBackend, MetastoreBackend
from metastore_harness.service.bridge import AuthBridge
from metastore_harness.settings import ConfVar, MetastoreSettings

from .artifacts import delete_path
from .config import ServiceConfiguration
from .guard import ProcessGuard
from .readiness import FixedDelayReadiness, ReadinessGate
from .supervisor import LaunchOutcome, LaunchSupervisor

__all__ = ["LocalMetastore", "ServiceHandle", "ServicePhase"]

logger = logging.getLogger("metastore_harness.runner")


class ServicePhase(str, enum.Enum):
    """Lifecycle phases of one launch; they only move forward."""

    CREATED = "created"
    STARTING = "starting"
    READY = "ready"
    STOPPING = "stopping"
    STOPPED = "stopped"


_PHASE_ORDER = list(ServicePhase)


@dataclass(slots=True)
class ServiceHandle:
    """Runtime state of one launched metastore."""

    supervisor: LaunchSupervisor
    guard: ProcessGuard
    phase: ServicePhase = ServicePhase.CREATED

    def advance(self, phase: ServicePhase) -> None:
        if _PHASE_ORDER.index(phase) <= _PHASE_ORDER.index(self.phase):
            raise LifecycleError(f"Cannot move from {self.phase.value} to {phase.value}")
        self.phase = phase

    @property
    def outcome(self) -> LaunchOutcome | None:
        return self.supervisor.outcome


class LocalMetastore:
    """Configure, launch, prepare, and tear down one embedded metastore.

    Only :meth:`ServiceConfiguration.builder` fails loudly. Everything after
    launch is best effort: failures are logged and show up as failing test
    calls against the service rather than exceptions from this class.
    """

    def __init__(
        self,
        configuration: ServiceConfiguration,
        *,
        backend: MetastoreBackend | None = None,
        readiness: ReadinessGate | None = None,
        auth_bridge: AuthBridge | None = None,
        cancel_timeout: float | None = 10.0,
    ) -> None:
        self.configuration = configuration
        self.backend = backend or EmbeddedMetastoreBackend()
        self.readiness = readiness or FixedDelayReadiness()
        self.auth_bridge = auth_bridge or AuthBridge()
        self.cancel_timeout = cancel_timeout
        self._settings = configuration.settings.copy()
        self._configured = False
        self._handle: ServiceHandle | None = None

    # Accessors ----------------------------------------------------------
    @property
    def metastore_hostname(self) -> str:
        return self.configuration.hostname

    @property
    def metastore_port(self) -> int:
        return self.configuration.port

    @property
    def store_dir(self) -> str:
        return self.configuration.store_dir

    @property
    def scratch_dir(self) -> str:
        return self.configuration.scratch_dir

    @property
    def warehouse_dir(self) -> str:
        return self.configuration.warehouse_dir

    @property
    def settings(self) -> MetastoreSettings:
        return self._settings

    @property
    def metastore_uri(self) -> str | None:
        return self._settings.get_var(ConfVar.METASTORE_URIS)

    @property
    def connection_url(self) -> str | None:
        return self._settings.get_var(ConfVar.CONNECTION_URL)

    @property
    def handle(self) -> ServiceHandle | None:
        return self._handle

    @property
    def phase(self) -> ServicePhase:
        return self._handle.phase if self._handle is not None else ServicePhase.CREATED

    # Lifecycle ----------------------------------------------------------
    def configure(self) -> None:
        """Write the derived endpoint, paths, and connection URL into the settings."""

        config = self.configuration
        self._settings.set_var(ConfVar.METASTORE_URIS, config.metastore_uri)
        self._settings.set_var(ConfVar.SCRATCH_DIR, config.scratch_dir)
        self._settings.set_var(ConfVar.CONNECTION_URL, config.connection_url)
        self._settings.set_var(ConfVar.WAREHOUSE_DIR, str(Path(config.warehouse_dir).absolute()))
        self._settings.set_bool(ConfVar.IN_TEST, True)
        self._configured = True

    def start(self) -> None:
        if self._handle is not None and self._handle.phase is not ServicePhase.STOPPED:
            raise LifecycleError(
                f"Metastore on port {self.metastore_port} is already {self._handle.phase.value}"
            )
        if not self._configured:
            self.configure()
        logger.info("Starting metastore on port %s", self.metastore_port)
        guard = ProcessGuard()
        guard.install()
        supervisor = LaunchSupervisor(
            self.backend,
            self.metastore_port,
            self._settings,
            self.auth_bridge,
        )
        handle = ServiceHandle(supervisor=supervisor, guard=guard)
        self._handle = handle
        handle.advance(ServicePhase.STARTING)
        try:
            supervisor.start()
        except BaseException:
            guard.restore()
            handle.advance(ServicePhase.STOPPED)
            raise
        if self.readiness.wait(self.metastore_hostname, self.metastore_port, supervisor):
            handle.advance(ServicePhase.READY)
        else:
            logger.error(
                "Metastore did not become ready",
                extra={"port": self.metastore_port, "outcome": supervisor.outcome},
            )
        self.prep_db()

    def stop(self, cleanup: bool = True) -> list[TeardownStepFailure]:
        """Tear the instance down; never raises.

        With ``cleanup`` the transaction schema is dropped first and the store
        directory plus engine log are removed after the thread is cancelled.
        Returns the steps that failed.
        """

        logger.info("Stopping metastore on port %s", self.metastore_port)
        failures: list[TeardownStepFailure] = []
        if cleanup:
            self._teardown_step("clean_db", self._clean_db_step, failures)
        self._teardown_step("cancel", self._cancel, failures)
        if cleanup:
            self._teardown_step("delete_store_dir", self._delete_store_dir, failures)
            self._teardown_step("delete_engine_log", self._delete_engine_log, failures)
        return failures

    def prep_db(self) -> bool:
        """Create the transaction schema if absent; ``False`` on failure."""

        logger.info("Prepping the metastore database")
        try:
            TxnSchema.set_conf_values(self._settings)
            self.backend.prepare_schema(self._settings)
        except Exception as exc:
            _log_schema_failure("prepare", exc)
            return False
        return True

    def clean_db(self) -> bool:
        """Drop the transaction schema if present; ``False`` on failure."""

        logger.info("Cleaning up the metastore database")
        try:
            TxnSchema.set_conf_values(self._settings)
            self.backend.clean_schema(self._settings)
        except Exception as exc:
            _log_schema_failure("clean", exc)
            return False
        return True

    # Teardown steps -----------------------------------------------------
    def _teardown_step(
        self,
        name: str,
        step: Callable[[], None],
        failures: list[TeardownStepFailure],
    ) -> None:
        try:
            step()
        except Exception as exc:
            failure = TeardownStepFailure(name, exc)
            failures.append(failure)
            logger.error(str(failure), exc_info=exc, extra={"port": self.metastore_port})

    def _clean_db_step(self) -> None:
        if not self.clean_db():
            raise SchemaOperationFailure("clean_db reported a failure")

    def _cancel(self) -> None:
        handle = self._handle
        if handle is None or handle.phase is ServicePhase.STOPPED:
            logger.debug("No running metastore to cancel", extra={"port": self.metastore_port})
            return
        handle.advance(ServicePhase.STOPPING)
        try:
            handle.supervisor.cancel(self.cancel_timeout)
        finally:
            handle.guard.restore()
            handle.advance(ServicePhase.STOPPED)

    def _delete_store_dir(self) -> None:
        delete_path(self.store_dir)

    def _delete_engine_log(self) -> None:
        delete_path(engine_log_path(self._settings))


def _log_schema_failure(operation: str, exc: Exception) -> None:
    failure = SchemaOperationFailure(f"Schema {operation} failed: {exc}")
    logger.error(str(failure), exc_info=exc)
