# ruff: noqa: B008
"""Database and table catalog endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from metastore_harness.service.auth import BearerTokenAuth
from metastore_harness.service.context import AppContext, get_app_context
from metastore_harness.service.schemas import (
    APIMessage,
    DatabaseCreateRequest,
    DatabaseResponse,
    TableCreateRequest,
    TableResponse,
    database_to_response,
    table_to_response,
)

router = APIRouter(
    prefix="/databases",
    tags=["catalog"],
    dependencies=[Depends(BearerTokenAuth())],
)


@router.post("", response_model=DatabaseResponse, status_code=status.HTTP_201_CREATED)
def create_database(
    payload: DatabaseCreateRequest,
    context: AppContext = Depends(get_app_context),
) -> DatabaseResponse:
    database = context.store.create_database(
        payload.name,
        location_uri=payload.location_uri,
        description=payload.description,
        parameters=payload.parameters,
    )
    return database_to_response(database)


@router.get("", response_model=list[DatabaseResponse])
def list_databases(context: AppContext = Depends(get_app_context)) -> list[DatabaseResponse]:
    return [database_to_response(db) for db in context.store.list_databases()]


@router.get("/{name}", response_model=DatabaseResponse)
def get_database(name: str, context: AppContext = Depends(get_app_context)) -> DatabaseResponse:
    return database_to_response(context.store.get_database(name))


@router.delete("/{name}", response_model=APIMessage)
def drop_database(
    name: str,
    cascade: bool = Query(False),
    context: AppContext = Depends(get_app_context),
) -> APIMessage:
    context.store.drop_database(name, cascade=cascade)
    return APIMessage(message=f"dropped {name.lower()}")


@router.post(
    "/{database}/tables",
    response_model=TableResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_table(
    database: str,
    payload: TableCreateRequest,
    context: AppContext = Depends(get_app_context),
) -> TableResponse:
    table = context.store.create_table(
        database,
        payload.name,
        columns=[column.model_dump() for column in payload.columns],
        table_type=payload.table_type,
        location=payload.location,
        parameters=payload.parameters,
        owner=payload.owner,
    )
    return table_to_response(table, database.lower())


@router.get("/{database}/tables", response_model=list[TableResponse])
def list_tables(
    database: str, context: AppContext = Depends(get_app_context)
) -> list[TableResponse]:
    return [
        table_to_response(table, database.lower())
        for table in context.store.list_tables(database)
    ]


@router.get("/{database}/tables/{name}", response_model=TableResponse)
def get_table(
    database: str, name: str, context: AppContext = Depends(get_app_context)
) -> TableResponse:
    return table_to_response(context.store.get_table(database, name), database.lower())


@router.delete("/{database}/tables/{name}", response_model=APIMessage)
def drop_table(
    database: str, name: str, context: AppContext = Depends(get_app_context)
) -> APIMessage:
    context.store.drop_table(database, name)
    return APIMessage(message=f"dropped {database.lower()}.{name.lower()}")
