"""HTTP client powered by urllib for the embedded metastore."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from http.client import HTTPResponse
from typing import Any, cast
from urllib import error, parse, request

from metastore_harness.errors import MetastoreHarnessError
from metastore_harness.version import __version__

__all__ = ["MetastoreClient", "MetastoreClientError", "http_base_url"]


class MetastoreClientError(MetastoreHarnessError):
    """Raised when the metastore answers with an error status."""

    def __init__(self, status: int, detail: str) -> None:
        self.status = status
        self.detail = detail
        super().__init__(f"Metastore error {status}: {detail}")


def http_base_url(uri: str) -> str:
    """Map a ``thrift://host:port`` metastore URI onto the HTTP endpoint."""

    first = uri.split(",")[0].strip()
    parts = parse.urlsplit(first)
    if parts.scheme not in {"thrift", "http"} or not parts.hostname or parts.port is None:
        raise ValueError(f"Unsupported metastore URI: {uri}")
    return f"http://{parts.hostname}:{parts.port}"


class MetastoreClient:
    """Minimal client for the catalog and transaction endpoints."""

    def __init__(self, uri: str, *, token: str | None = None, timeout: float = 10.0) -> None:
        self._base_url = http_base_url(uri)
        self._token = token
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    def health(self) -> str:
        return str(self._json_request("GET", "/healthz").get("message", ""))

    def create_database(
        self,
        name: str,
        *,
        location_uri: str | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        body = {"name": name, "location_uri": location_uri, "description": description}
        return self._json_request("POST", "/databases", json_body=body)

    def get_database(self, name: str) -> dict[str, Any]:
        return self._json_request("GET", f"/databases/{parse.quote(name)}")

    def list_databases(self) -> list[str]:
        payload = self._json_list("GET", "/databases")
        return [str(entry["name"]) for entry in payload]

    def drop_database(self, name: str, *, cascade: bool = False) -> None:
        params = {"cascade": "true" if cascade else "false"}
        self._json_request("DELETE", f"/databases/{parse.quote(name)}", params=params)

    def create_table(
        self,
        database: str,
        name: str,
        columns: Iterable[Mapping[str, str]] = (),
        **options: Any,
    ) -> dict[str, Any]:
        body = {"name": name, "columns": [dict(column) for column in columns], **options}
        return self._json_request(
            "POST", f"/databases/{parse.quote(database)}/tables", json_body=body
        )

    def get_table(self, database: str, name: str) -> dict[str, Any]:
        return self._json_request(
            "GET", f"/databases/{parse.quote(database)}/tables/{parse.quote(name)}"
        )

    def list_tables(self, database: str) -> list[str]:
        payload = self._json_list("GET", f"/databases/{parse.quote(database)}/tables")
        return [str(entry["name"]) for entry in payload]

    def open_txns(self, count: int = 1, *, user: str = "harness", host: str = "localhost") -> list[int]:
        payload = self._json_request(
            "POST", "/txns", json_body={"count": count, "user": user, "host": host}
        )
        return [int(txn_id) for txn_id in payload.get("txn_ids", [])]

    def commit_txn(self, txn_id: int) -> dict[str, Any]:
        return self._json_request("POST", f"/txns/{txn_id}/commit")

    def abort_txn(self, txn_id: int) -> dict[str, Any]:
        return self._json_request("POST", f"/txns/{txn_id}/abort")

    def _json_list(self, method: str, path: str) -> list[dict[str, Any]]:
        with self._open(method, path) as resp:
            return cast(list[dict[str, Any]], json.loads(resp.read().decode() or "[]"))

    def _json_request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        with self._open(method, path, params=params, json_body=json_body) as resp:
            data = resp.read()
            if not data:
                return {}
            return cast(dict[str, Any], json.loads(data.decode()))

    def _open(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> HTTPResponse:
        url = f"{self._base_url}{path}"
        if params:
            url = f"{url}?{parse.urlencode(params)}"
        headers = {
            "User-Agent": f"metastore-harness-client/{__version__}",
            "Accept": "application/json",
        }
        data = None
        if json_body is not None:
            data = json.dumps(json_body).encode()
            headers["Content-Type"] = "application/json"
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        req = request.Request(url, data=data, headers=headers, method=method)
        try:
            return cast(HTTPResponse, request.urlopen(req, timeout=self._timeout))
        except error.HTTPError as exc:
            body = exc.read().decode()
            try:
                detail = str(json.loads(body).get("detail", body))
            except ValueError:
                detail = body or str(exc.reason)
            raise MetastoreClientError(exc.code, detail) from exc
