"""Prepare and clean the transaction tables of the embedded store."""

from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlmodel import Session, SQLModel, select

from metastore_harness.settings import ConfVar, MetastoreSettings

from .models import SEQUENCE_MODELS, TXN_MODELS
from .session import append_engine_log, create_engine_from_settings

__all__ = ["DB_TXN_MANAGER", "TxnSchema", "create_txn_tables", "drop_txn_tables"]

logger = logging.getLogger("metastore_harness.db")

DB_TXN_MANAGER = "db"


def _tables():
    return [model.__table__ for model in TXN_MODELS]  # type: ignore[attr-defined]


def create_txn_tables(engine) -> None:
    """Create missing transaction tables and seed empty id sequences."""

    SQLModel.metadata.create_all(engine, tables=_tables(), checkfirst=True)
    with Session(engine) as session:
        for model in SEQUENCE_MODELS:
            if session.exec(select(model)).first() is None:
                session.add(model(next_id=1))
        session.commit()


def drop_txn_tables(engine) -> None:
    SQLModel.metadata.drop_all(engine, tables=_tables(), checkfirst=True)


class TxnSchema:
    """Create-if-absent and drop-if-present for the transaction tables.

    Each call opens its own engine from the settings, so it can run from any
    thread, before or after the service itself is up.
    """

    def __init__(self, settings: MetastoreSettings) -> None:
        self.settings = settings

    @classmethod
    def from_settings(cls, settings: MetastoreSettings) -> TxnSchema:
        schema = cls(settings)
        schema.set_conf_values(settings)
        return schema

    @staticmethod
    def set_conf_values(settings: MetastoreSettings) -> None:
        settings.set_var(ConfVar.TXN_MANAGER, DB_TXN_MANAGER)
        settings.set_bool(ConfVar.SUPPORT_CONCURRENCY, True)

    def prepare(self) -> None:
        engine = create_engine_from_settings(self.settings)
        try:
            create_txn_tables(engine)
        finally:
            engine.dispose()
        logger.info("Transaction schema prepared")

    def clean(self) -> None:
        engine = create_engine_from_settings(self.settings)
        try:
            drop_txn_tables(engine)
        finally:
            engine.dispose()
        append_engine_log(self.settings, "Transaction schema dropped")
        logger.info("Transaction schema cleaned")

    def is_prepared(self) -> bool:
        engine = create_engine_from_settings(self.settings)
        try:
            existing = set(inspect(engine).get_table_names())
        finally:
            engine.dispose()
        return all(table.name in existing for table in _tables())
