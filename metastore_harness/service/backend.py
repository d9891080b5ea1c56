"""Entry points the lifecycle manager uses to run a metastore."""

from __future__ import annotations

import logging
import threading
from typing import Protocol, runtime_checkable
from urllib.parse import urlsplit

import uvicorn

from metastore_harness.db import CatalogStore, TxnSchema
from metastore_harness.db.session import append_engine_log
from metastore_harness.settings import ConfVar, MetastoreSettings

from .app import create_app
from .bridge import AuthBridge

__all__ = ["EmbeddedMetastoreBackend", "MetastoreBackend"]

logger = logging.getLogger("metastore_harness.service")

DEFAULT_BIND_HOST = "127.0.0.1"


@runtime_checkable
class MetastoreBackend(Protocol):
    """What the lifecycle manager needs from a metastore implementation."""

    def start_service(
        self,
        port: int,
        auth_bridge: AuthBridge,
        settings: MetastoreSettings,
        *,
        stop_event: threading.Event,
    ) -> None:
        """Serve until ``stop_event`` is set or the service fails."""

    def prepare_schema(self, settings: MetastoreSettings) -> None: ...

    def clean_schema(self, settings: MetastoreSettings) -> None: ...


class _EmbeddedServer(uvicorn.Server):
    # The supervisor owns shutdown through the stop event.
    def install_signal_handlers(self) -> None:  # pragma: no cover - uvicorn hook
        return None


class EmbeddedMetastoreBackend:
    """Serve the catalog API with uvicorn on the caller's thread."""

    def __init__(self, *, log_level: str = "warning", poll_interval: float = 0.1) -> None:
        self.log_level = log_level
        self.poll_interval = poll_interval

    def start_service(
        self,
        port: int,
        auth_bridge: AuthBridge,
        settings: MetastoreSettings,
        *,
        stop_event: threading.Event,
    ) -> None:
        store = CatalogStore.from_settings(settings)
        host = bind_host(settings)
        app = create_app(store, auth_bridge, port=port)
        config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level=self.log_level,
            access_log=False,
            lifespan="off",
        )
        server = _EmbeddedServer(config)
        watcher = threading.Thread(
            target=self._watch,
            args=(server, stop_event),
            name=f"metastore-{port}-stop",
            daemon=True,
        )
        watcher.start()
        logger.info("Serving metastore", extra={"host": host, "port": port})
        try:
            server.run()
        finally:
            stop_event.set()
            watcher.join(timeout=self.poll_interval * 10)
            store.close()
            # A log removed by teardown is not recreated.
            append_engine_log(settings, "Store shut down", create=False)
            logger.info("Metastore stopped", extra={"host": host, "port": port})

    def prepare_schema(self, settings: MetastoreSettings) -> None:
        TxnSchema.from_settings(settings).prepare()

    def clean_schema(self, settings: MetastoreSettings) -> None:
        TxnSchema.from_settings(settings).clean()

    def _watch(self, server: uvicorn.Server, stop_event: threading.Event) -> None:
        stop_event.wait()
        server.should_exit = True


def bind_host(settings: MetastoreSettings) -> str:
    """Return the host named by the configured metastore URI."""

    uri = settings.get_var(ConfVar.METASTORE_URIS)
    if not uri:
        return DEFAULT_BIND_HOST
    # Several URIs may be configured; the embedded instance binds the first.
    first = uri.split(",")[0].strip()
    return urlsplit(first).hostname or DEFAULT_BIND_HOST
