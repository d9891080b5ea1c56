# ruff: noqa: B008
"""Transaction endpoints backed by the prepared transaction schema."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from metastore_harness.db import TxnState
from metastore_harness.service.auth import BearerTokenAuth
from metastore_harness.service.context import AppContext, get_app_context
from metastore_harness.service.schemas import (
    TxnOpenRequest,
    TxnOpenResponse,
    TxnResponse,
    txn_to_response,
)

router = APIRouter(prefix="/txns", tags=["txns"], dependencies=[Depends(BearerTokenAuth())])


@router.post("", response_model=TxnOpenResponse, status_code=status.HTTP_201_CREATED)
def open_txns(
    payload: TxnOpenRequest,
    context: AppContext = Depends(get_app_context),
) -> TxnOpenResponse:
    txn_ids = context.store.open_txns(payload.count, user=payload.user, host=payload.host)
    return TxnOpenResponse(txn_ids=txn_ids)


@router.get("", response_model=list[TxnResponse])
def list_txns(
    state: TxnState | None = None,
    context: AppContext = Depends(get_app_context),
) -> list[TxnResponse]:
    return [txn_to_response(txn) for txn in context.store.list_txns(state)]


@router.post("/{txn_id}/commit", response_model=TxnResponse)
def commit_txn(txn_id: int, context: AppContext = Depends(get_app_context)) -> TxnResponse:
    return txn_to_response(context.store.commit_txn(txn_id))


@router.post("/{txn_id}/abort", response_model=TxnResponse)
def abort_txn(txn_id: int, context: AppContext = Depends(get_app_context)) -> TxnResponse:
    return txn_to_response(context.store.abort_txn(txn_id))
