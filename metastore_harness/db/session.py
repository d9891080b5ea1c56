"""Engine helpers and session utilities for the embedded store."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from metastore_harness.errors import ConfigurationError
from metastore_harness.settings import ConfVar, MetastoreSettings

logger = logging.getLogger("metastore_harness.db")

_JDBC_PREFIX = "jdbc:derby:"
DATABASE_FILENAME = "metastore.db"


@dataclass(slots=True)
class StoreLocation:
    """Parsed form of a ``jdbc:derby:`` connection URL."""

    database_dir: Path
    create: bool = False

    @property
    def database_file(self) -> Path:
        return self.database_dir / DATABASE_FILENAME

    @property
    def sqlalchemy_url(self) -> str:
        return f"sqlite:///{self.database_file}"


def parse_connection_url(url: str) -> StoreLocation:
    """Parse ``jdbc:derby:;databaseName=<dir>;create=true`` style URLs.

    The database name may also follow the prefix directly, as in
    ``jdbc:derby:/tmp/db;create=true``.
    """

    if not url.startswith(_JDBC_PREFIX):
        raise ConfigurationError(f"Unsupported connection URL: {url}")
    head, *attributes = url[len(_JDBC_PREFIX) :].split(";")
    options: dict[str, str] = {}
    for attribute in attributes:
        if not attribute:
            continue
        key, _, value = attribute.partition("=")
        options[key.strip()] = value.strip()
    name = options.get("databaseName") or head
    if not name:
        raise ConfigurationError(f"Connection URL has no database name: {url}")
    create = options.get("create", "false").lower() == "true"
    return StoreLocation(database_dir=Path(name), create=create)


def engine_log_path(settings: MetastoreSettings) -> Path:
    """Return the absolute path of the engine log artifact."""

    name = settings.get_var(ConfVar.ENGINE_LOG_FILE) or "derby.log"
    return Path(name).absolute()


def append_engine_log(settings: MetastoreSettings, message: str, *, create: bool = True) -> bool:
    """Append a timestamped line; with ``create=False`` a missing log stays missing."""

    path = engine_log_path(settings)
    if not create and not path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(f"{datetime.now(UTC).isoformat()} {message}\n")
    return True


def create_engine_from_settings(settings: MetastoreSettings):
    """Create a SQLModel engine for the store named by the connection URL."""

    url = settings.get_var(ConfVar.CONNECTION_URL)
    if not url:
        raise ConfigurationError(f"{ConfVar.CONNECTION_URL.value} is not set")
    location = parse_connection_url(url)
    if not location.database_dir.exists():
        if not location.create:
            raise ConfigurationError(f"Database {location.database_dir} does not exist")
        location.database_dir.mkdir(parents=True, exist_ok=True)
    append_engine_log(settings, f"Booting store at {location.database_dir}")
    logger.debug("Opening store", extra={"database": str(location.database_file)})
    return create_engine(location.sqlalchemy_url, connect_args={"check_same_thread": False})


def create_in_memory_engine():
    """Create an in-memory SQLite engine for tests."""

    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@contextmanager
def session_scope(engine) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""

    session = Session(engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "DATABASE_FILENAME",
    "StoreLocation",
    "append_engine_log",
    "create_engine_from_settings",
    "create_in_memory_engine",
    "engine_log_path",
    "parse_connection_url",
    "session_scope",
]
