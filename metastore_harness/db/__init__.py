"""Storage for the embedded metastore: catalog tables and transaction schema."""

from .models import (
    CatalogDatabase,
    CatalogTable,
    TableType,
    Txn,
    TxnState,
)
from .service import (
    AlreadyExistsError,
    CatalogError,
    CatalogStore,
    NoSuchObjectError,
    SchemaNotPreparedError,
    init_db,
)
from .session import (
    create_engine_from_settings,
    engine_log_path,
    parse_connection_url,
)
from .txn import TxnSchema

__all__ = [
    "AlreadyExistsError",
    "CatalogDatabase",
    "CatalogError",
    "CatalogStore",
    "CatalogTable",
    "NoSuchObjectError",
    "SchemaNotPreparedError",
    "TableType",
    "Txn",
    "TxnSchema",
    "TxnState",
    "create_engine_from_settings",
    "engine_log_path",
    "init_db",
    "parse_connection_url",
]
