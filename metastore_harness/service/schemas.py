"""Pydantic schemas for the metastore API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from metastore_harness.db.models import CatalogDatabase, CatalogTable, TableType, Txn, TxnState


class APIMessage(BaseModel):
    """Simple message envelope."""

    message: str


class DatabaseCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    location_uri: str | None = None
    description: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)


class DatabaseResponse(BaseModel):
    id: int
    name: str
    location_uri: str
    description: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class ColumnSchema(BaseModel):
    name: str
    type: str
    comment: str | None = None


class TableCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=256)
    columns: list[ColumnSchema] = Field(default_factory=list)
    table_type: TableType = TableType.MANAGED
    location: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)
    owner: str | None = None


class TableResponse(BaseModel):
    id: int
    database: str
    name: str
    table_type: TableType
    location: str | None
    columns: list[ColumnSchema]
    parameters: dict[str, Any] = Field(default_factory=dict)
    owner: str | None
    created_at: datetime


class TxnOpenRequest(BaseModel):
    count: int = Field(default=1, ge=1, le=1000)
    user: str = "harness"
    host: str = "localhost"


class TxnOpenResponse(BaseModel):
    txn_ids: list[int]


class TxnResponse(BaseModel):
    txn_id: int
    state: TxnState
    user: str
    host: str
    started_at: datetime


def database_to_response(database: CatalogDatabase) -> DatabaseResponse:
    return DatabaseResponse(
        id=database.id or 0,
        name=database.name,
        location_uri=database.location_uri,
        description=database.description,
        parameters=database.parameters,
        created_at=database.created_at,
    )


def table_to_response(table: CatalogTable, database: str) -> TableResponse:
    return TableResponse(
        id=table.id or 0,
        database=database,
        name=table.name,
        table_type=table.table_type,
        location=table.location,
        columns=[ColumnSchema(**column) for column in table.columns],
        parameters=table.parameters,
        owner=table.owner,
        created_at=table.created_at,
    )


def txn_to_response(txn: Txn) -> TxnResponse:
    return TxnResponse(
        txn_id=txn.txn_id,
        state=txn.state,
        user=txn.user,
        host=txn.host,
        started_at=txn.started_at,
    )


__all__ = [
    "APIMessage",
    "ColumnSchema",
    "DatabaseCreateRequest",
    "DatabaseResponse",
    "TableCreateRequest",
    "TableResponse",
    "TxnOpenRequest",
    "TxnOpenResponse",
    "TxnResponse",
    "database_to_response",
    "table_to_response",
    "txn_to_response",
]
