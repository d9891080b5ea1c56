"""SQLModel schema definitions for the embedded metastore."""

from __future__ import annotations

import enum
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, Column, String, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CatalogDatabase(SQLModel, table=True):
    """A database namespace in the catalog."""

    __tablename__ = "catalog_databases"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String(128), unique=True, nullable=False, index=True))
    location_uri: str = Field(sa_column=Column(String(4000), nullable=False))
    description: str | None = Field(default=None, sa_column=Column(String(4000)))
    parameters: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)


class TableType(str, enum.Enum):
    MANAGED = "MANAGED_TABLE"
    EXTERNAL = "EXTERNAL_TABLE"
    VIEW = "VIRTUAL_VIEW"


class CatalogTable(SQLModel, table=True):
    """A table registered under a catalog database."""

    __tablename__ = "catalog_tables"
    __table_args__ = (UniqueConstraint("database_id", "name", name="uq_table_name"),)

    id: int | None = Field(default=None, primary_key=True)
    database_id: int = Field(foreign_key="catalog_databases.id", nullable=False, index=True)
    name: str = Field(sa_column=Column(String(256), nullable=False))
    table_type: TableType = Field(
        sa_column=Column(SAEnum(TableType, name="table_type"), nullable=False),
        default=TableType.MANAGED,
    )
    location: str | None = Field(default=None, sa_column=Column(String(4000)))
    columns: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="Ordered column descriptors ({'name': ..., 'type': ...}).",
    )
    parameters: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    owner: str | None = Field(default=None, sa_column=Column(String(767)))
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)


CATALOG_MODELS: tuple[type[SQLModel], ...] = (CatalogDatabase, CatalogTable)


# Transaction schema -------------------------------------------------------
class TxnState(str, enum.Enum):
    OPEN = "o"
    COMMITTED = "c"
    ABORTED = "a"


class LockState(str, enum.Enum):
    WAITING = "w"
    ACQUIRED = "a"


class Txn(SQLModel, table=True):
    __tablename__ = "txns"

    txn_id: int = Field(sa_column=Column(BigInteger, primary_key=True, autoincrement=False))
    state: TxnState = Field(
        sa_column=Column(SAEnum(TxnState, name="txn_state"), nullable=False, index=True),
        default=TxnState.OPEN,
    )
    started_at: datetime = Field(default_factory=_utcnow, nullable=False)
    last_heartbeat_at: datetime = Field(default_factory=_utcnow, nullable=False)
    user: str = Field(sa_column=Column(String(128), nullable=False))
    host: str = Field(sa_column=Column(String(128), nullable=False))


class TxnComponent(SQLModel, table=True):
    __tablename__ = "txn_components"

    id: int | None = Field(default=None, primary_key=True)
    txn_id: int = Field(foreign_key="txns.txn_id", nullable=False, index=True)
    database_name: str = Field(sa_column=Column(String(128), nullable=False))
    table_name: str | None = Field(default=None, sa_column=Column(String(128)))
    partition_name: str | None = Field(default=None, sa_column=Column(String(767)))


class CompletedTxnComponent(SQLModel, table=True):
    __tablename__ = "completed_txn_components"

    id: int | None = Field(default=None, primary_key=True)
    txn_id: int = Field(sa_column=Column(BigInteger, nullable=False, index=True))
    database_name: str = Field(sa_column=Column(String(128), nullable=False))
    table_name: str | None = Field(default=None, sa_column=Column(String(128)))
    partition_name: str | None = Field(default=None, sa_column=Column(String(767)))


class NextTxnId(SQLModel, table=True):
    __tablename__ = "next_txn_id"

    id: int | None = Field(default=None, primary_key=True)
    next_id: int = Field(sa_column=Column(BigInteger, nullable=False))


class HiveLock(SQLModel, table=True):
    __tablename__ = "hive_locks"

    lock_ext_id: int = Field(sa_column=Column(BigInteger, primary_key=True, autoincrement=False))
    lock_int_id: int = Field(sa_column=Column(BigInteger, primary_key=True, autoincrement=False))
    txn_id: int | None = Field(default=None, sa_column=Column(BigInteger, index=True))
    database_name: str = Field(sa_column=Column(String(128), nullable=False))
    table_name: str | None = Field(default=None, sa_column=Column(String(128)))
    partition_name: str | None = Field(default=None, sa_column=Column(String(767)))
    state: LockState = Field(
        sa_column=Column(SAEnum(LockState, name="lock_state"), nullable=False),
        default=LockState.WAITING,
    )
    lock_type: str = Field(sa_column=Column(String(16), nullable=False))
    acquired_at: datetime | None = None
    user: str = Field(sa_column=Column(String(128), nullable=False))
    host: str = Field(sa_column=Column(String(128), nullable=False))


class NextLockId(SQLModel, table=True):
    __tablename__ = "next_lock_id"

    id: int | None = Field(default=None, primary_key=True)
    next_id: int = Field(sa_column=Column(BigInteger, nullable=False))


class CompactionQueueEntry(SQLModel, table=True):
    __tablename__ = "compaction_queue"

    cq_id: int = Field(sa_column=Column(BigInteger, primary_key=True, autoincrement=False))
    database_name: str = Field(sa_column=Column(String(128), nullable=False))
    table_name: str = Field(sa_column=Column(String(128), nullable=False))
    partition_name: str | None = Field(default=None, sa_column=Column(String(767)))
    state: str = Field(sa_column=Column(String(1), nullable=False))
    compaction_type: str = Field(sa_column=Column(String(1), nullable=False))
    worker_id: str | None = Field(default=None, sa_column=Column(String(128)))
    started_at: datetime | None = None
    run_as: str | None = Field(default=None, sa_column=Column(String(128)))


class NextCompactionQueueId(SQLModel, table=True):
    __tablename__ = "next_compaction_queue_id"

    id: int | None = Field(default=None, primary_key=True)
    next_id: int = Field(sa_column=Column(BigInteger, nullable=False))


TXN_MODELS: tuple[type[SQLModel], ...] = (
    Txn,
    TxnComponent,
    CompletedTxnComponent,
    NextTxnId,
    HiveLock,
    NextLockId,
    CompactionQueueEntry,
    NextCompactionQueueId,
)

# Sequence tables seeded with a single row on prepare.
SEQUENCE_MODELS: tuple[type[SQLModel], ...] = (NextTxnId, NextLockId, NextCompactionQueueId)


__all__ = [
    "CATALOG_MODELS",
    "CatalogDatabase",
    "CatalogTable",
    "CompactionQueueEntry",
    "CompletedTxnComponent",
    "HiveLock",
    "LockState",
    "NextCompactionQueueId",
    "NextLockId",
    "NextTxnId",
    "SEQUENCE_MODELS",
    "TXN_MODELS",
    "TableType",
    "Txn",
    "TxnComponent",
    "TxnState",
]
