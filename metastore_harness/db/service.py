"""Persistence service behind the embedded metastore API."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session, SQLModel, select

from metastore_harness.errors import MetastoreHarnessError
from metastore_harness.settings import ConfVar, MetastoreSettings

from .models import (
    CATALOG_MODELS,
    CatalogDatabase,
    CatalogTable,
    CompletedTxnComponent,
    NextTxnId,
    TableType,
    Txn,
    TxnComponent,
    TxnState,
)
from .session import create_engine_from_settings

DEFAULT_DATABASE = "default"


class CatalogError(MetastoreHarnessError):
    """Raised for missing or conflicting catalog objects."""


class NoSuchObjectError(CatalogError):
    """Raised when a database, table, or transaction does not exist."""


class AlreadyExistsError(CatalogError):
    """Raised when creating an object whose name is taken."""


class SchemaNotPreparedError(MetastoreHarnessError):
    """Raised when transaction calls run before the schema was prepared."""


def init_db(engine) -> None:
    """Create the catalog tables (not the transaction tables)."""

    tables = [model.__table__ for model in CATALOG_MODELS]  # type: ignore[attr-defined]
    SQLModel.metadata.create_all(engine, tables=tables, checkfirst=True)


class CatalogStore:
    """High-level helper for the catalog and transaction tables."""

    def __init__(self, engine, *, warehouse_dir: str | None = None) -> None:
        self.engine = engine
        self.warehouse_dir = warehouse_dir

    @classmethod
    def from_settings(cls, settings: MetastoreSettings) -> CatalogStore:
        engine = create_engine_from_settings(settings)
        init_db(engine)
        store = cls(engine, warehouse_dir=settings.get_var(ConfVar.WAREHOUSE_DIR))
        store.ensure_default_database()
        return store

    def _session(self) -> Session:
        return Session(self.engine)

    def close(self) -> None:
        self.engine.dispose()

    # Database helpers ---------------------------------------------------
    def ensure_default_database(self) -> CatalogDatabase:
        try:
            return self.get_database(DEFAULT_DATABASE)
        except NoSuchObjectError:
            return self.create_database(
                DEFAULT_DATABASE,
                location_uri=self.warehouse_dir or "",
                description="Default database",
            )

    def create_database(
        self,
        name: str,
        *,
        location_uri: str | None = None,
        description: str | None = None,
        parameters: Mapping[str, Any] | None = None,
    ) -> CatalogDatabase:
        name = name.lower()
        if location_uri is None:
            location_uri = str(Path(self.warehouse_dir or ".") / f"{name}.db")
        database = CatalogDatabase(
            name=name,
            location_uri=location_uri,
            description=description,
            parameters=dict(parameters or {}),
        )
        with self._session() as session:
            session.add(database)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise AlreadyExistsError(f"Database {name} already exists") from exc
            session.refresh(database)
            return database

    def get_database(self, name: str) -> CatalogDatabase:
        with self._session() as session:
            database = self._database(session, name)
            return database

    def list_databases(self) -> list[CatalogDatabase]:
        with self._session() as session:
            statement = select(CatalogDatabase).order_by(CatalogDatabase.name)
            return list(session.exec(statement).all())

    def drop_database(self, name: str, *, cascade: bool = False) -> None:
        with self._session() as session:
            database = self._database(session, name)
            tables = session.exec(
                select(CatalogTable).where(CatalogTable.database_id == database.id)
            ).all()
            if tables and not cascade:
                raise CatalogError(f"Database {database.name} is not empty")
            for table in tables:
                session.delete(table)
            session.delete(database)
            session.commit()

    # Table helpers ------------------------------------------------------
    def create_table(
        self,
        database_name: str,
        name: str,
        *,
        columns: Iterable[Mapping[str, Any]] = (),
        table_type: TableType = TableType.MANAGED,
        location: str | None = None,
        parameters: Mapping[str, Any] | None = None,
        owner: str | None = None,
    ) -> CatalogTable:
        name = name.lower()
        with self._session() as session:
            database = self._database(session, database_name)
            if location is None and table_type is TableType.MANAGED:
                location = f"{database.location_uri.rstrip('/')}/{name}"
            table = CatalogTable(
                database_id=database.id,
                name=name,
                table_type=table_type,
                location=location,
                columns=[dict(column) for column in columns],
                parameters=dict(parameters or {}),
                owner=owner,
            )
            session.add(table)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise AlreadyExistsError(f"Table {database.name}.{name} already exists") from exc
            session.refresh(table)
            return table

    def get_table(self, database_name: str, name: str) -> CatalogTable:
        with self._session() as session:
            return self._table(session, database_name, name)

    def list_tables(self, database_name: str) -> list[CatalogTable]:
        with self._session() as session:
            database = self._database(session, database_name)
            statement = (
                select(CatalogTable)
                .where(CatalogTable.database_id == database.id)
                .order_by(CatalogTable.name)
            )
            return list(session.exec(statement).all())

    def drop_table(self, database_name: str, name: str) -> None:
        with self._session() as session:
            table = self._table(session, database_name, name)
            session.delete(table)
            session.commit()

    # Transaction helpers ------------------------------------------------
    def open_txns(self, count: int, *, user: str, host: str) -> list[int]:
        if count < 1:
            raise CatalogError("Must open at least one transaction")
        with self._txn_session() as session:
            sequence = session.exec(select(NextTxnId)).first()
            if sequence is None:
                raise SchemaNotPreparedError("Transaction id sequence is not seeded")
            first = sequence.next_id
            txn_ids = list(range(first, first + count))
            sequence.next_id = first + count
            session.add(sequence)
            for txn_id in txn_ids:
                session.add(Txn(txn_id=txn_id, user=user, host=host))
            session.commit()
            return txn_ids

    def add_component(
        self,
        txn_id: int,
        database_name: str,
        table_name: str | None = None,
        partition_name: str | None = None,
    ) -> None:
        with self._txn_session() as session:
            self._open_txn(session, txn_id)
            session.add(
                TxnComponent(
                    txn_id=txn_id,
                    database_name=database_name,
                    table_name=table_name,
                    partition_name=partition_name,
                )
            )
            session.commit()

    def commit_txn(self, txn_id: int) -> Txn:
        with self._txn_session() as session:
            txn = self._open_txn(session, txn_id)
            components = session.exec(
                select(TxnComponent).where(TxnComponent.txn_id == txn_id)
            ).all()
            for component in components:
                session.add(
                    CompletedTxnComponent(
                        txn_id=txn_id,
                        database_name=component.database_name,
                        table_name=component.table_name,
                        partition_name=component.partition_name,
                    )
                )
                session.delete(component)
            txn.state = TxnState.COMMITTED
            txn.last_heartbeat_at = datetime.now(UTC)
            session.add(txn)
            session.commit()
            session.refresh(txn)
            return txn

    def abort_txn(self, txn_id: int) -> Txn:
        with self._txn_session() as session:
            txn = self._open_txn(session, txn_id)
            txn.state = TxnState.ABORTED
            session.add(txn)
            session.commit()
            session.refresh(txn)
            return txn

    def list_txns(self, state: TxnState | None = None) -> list[Txn]:
        with self._txn_session() as session:
            statement = select(Txn).order_by(Txn.txn_id)
            if state is not None:
                statement = statement.where(Txn.state == state)
            return list(session.exec(statement).all())

    # Internal helpers ---------------------------------------------------
    @contextmanager
    def _txn_session(self) -> Iterator[Session]:
        with self._session() as session:
            try:
                yield session
            except OperationalError as exc:
                if "no such table" in str(exc):
                    raise SchemaNotPreparedError(
                        "Transaction schema has not been prepared"
                    ) from exc
                raise

    @staticmethod
    def _database(session: Session, name: str) -> CatalogDatabase:
        statement = select(CatalogDatabase).where(CatalogDatabase.name == name.lower())
        database = session.exec(statement).one_or_none()
        if database is None:
            raise NoSuchObjectError(f"Database {name} does not exist")
        return database

    def _table(self, session: Session, database_name: str, name: str) -> CatalogTable:
        database = self._database(session, database_name)
        statement = select(CatalogTable).where(
            CatalogTable.database_id == database.id,
            CatalogTable.name == name.lower(),
        )
        table = session.exec(statement).one_or_none()
        if table is None:
            raise NoSuchObjectError(f"Table {database.name}.{name} does not exist")
        return table

    @staticmethod
    def _open_txn(session: Session, txn_id: int) -> Txn:
        txn = session.get(Txn, txn_id)
        if txn is None:
            raise NoSuchObjectError(f"Transaction {txn_id} does not exist")
        if txn.state is not TxnState.OPEN:
            raise CatalogError(f"Transaction {txn_id} is not open ({txn.state.name.lower()})")
        return txn


__all__ = [
    "AlreadyExistsError",
    "CatalogError",
    "CatalogStore",
    "DEFAULT_DATABASE",
    "NoSuchObjectError",
    "SchemaNotPreparedError",
    "init_db",
]
