"""Audit logging for catalog and transaction calls."""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import unquote

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger("metastore_harness.service.audit")


def catalog_target(path: str) -> dict[str, Any]:
    """Name the catalog object a request path addresses.

    ``/databases/sales/tables/orders`` gives ``resource="table"`` with the
    database and table names; ``/txns/7/commit`` gives the transaction id and
    the action.
    """

    parts = [unquote(part) for part in path.strip("/").split("/") if part]
    target: dict[str, Any] = {"resource": parts[0] if parts else "root"}
    if parts[:1] == ["databases"]:
        target["resource"] = "database"
        if len(parts) > 1:
            target["database"] = parts[1].lower()
        if len(parts) > 2 and parts[2] == "tables":
            target["resource"] = "table"
            if len(parts) > 3:
                target["table"] = parts[3].lower()
    elif parts[:1] == ["txns"]:
        target["resource"] = "txn"
        if len(parts) > 1 and parts[1].isdigit():
            target["txn_id"] = int(parts[1])
        if len(parts) > 2:
            target["action"] = parts[2]
    return target


class AuditLoggerMiddleware(BaseHTTPMiddleware):
    """One audit record per request, tagged with the catalog object it touched.

    Server errors are logged at WARNING so a failing embedded store shows up
    in test output without enabling INFO.
    """

    def __init__(self, app: ASGIApp, port: int | None = None) -> None:
        super().__init__(app)
        self.port = port

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            fields = catalog_target(request.url.path)
            fields.update(
                method=request.method,
                status=status_code,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 3),
                port=self.port,
            )
            level = logging.WARNING if status_code >= 500 else logging.INFO
            logger.log(level, "metastore.request", extra=fields)


__all__ = ["AuditLoggerMiddleware", "catalog_target"]
