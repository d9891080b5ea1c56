"""FastAPI application for the embedded metastore."""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from metastore_harness.db import (
    AlreadyExistsError,
    CatalogError,
    CatalogStore,
    NoSuchObjectError,
    SchemaNotPreparedError,
)
from metastore_harness.version import __version__

from .bridge import AuthBridge
from .context import AppContext
from .middleware import AuditLoggerMiddleware
from .routers import catalog, txns
from .schemas import APIMessage

_ERROR_STATUS: tuple[tuple[type[Exception], int], ...] = (
    (NoSuchObjectError, status.HTTP_404_NOT_FOUND),
    (AlreadyExistsError, status.HTTP_409_CONFLICT),
    (CatalogError, status.HTTP_400_BAD_REQUEST),
    (SchemaNotPreparedError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def create_app(
    store: CatalogStore,
    auth_bridge: AuthBridge | None = None,
    *,
    port: int | None = None,
) -> FastAPI:
    """Instantiate the metastore API around ``store``."""

    app = FastAPI(
        title="Embedded Metastore",
        version=__version__,
        docs_url=None,
        redoc_url=None,
    )
    app.state.context = AppContext(store=store, auth_bridge=auth_bridge or AuthBridge())
    app.add_middleware(AuditLoggerMiddleware, port=port)

    app.include_router(catalog.router)
    app.include_router(txns.router)

    for error_type, status_code in _ERROR_STATUS:
        app.add_exception_handler(error_type, _error_handler(status_code))

    @app.get("/healthz", response_model=APIMessage, tags=["system"])
    def healthz() -> APIMessage:
        return APIMessage(message="ok")

    return app


def _error_handler(status_code: int):
    async def handler(_: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


__all__ = ["create_app"]
