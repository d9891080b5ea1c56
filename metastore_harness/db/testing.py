"""Testing helpers for the catalog store."""

from __future__ import annotations

from .service import CatalogStore, init_db
from .session import create_in_memory_engine
from .txn import create_txn_tables


def create_test_store(*, prepared: bool = True, warehouse_dir: str = "/warehouse") -> CatalogStore:
    """Create an in-memory catalog store for unit tests.

    ``prepared=False`` leaves the transaction tables out, mimicking a store
    whose schema was never prepared.
    """

    engine = create_in_memory_engine()
    init_db(engine)
    if prepared:
        create_txn_tables(engine)
    store = CatalogStore(engine, warehouse_dir=warehouse_dir)
    store.ensure_default_database()
    return store


__all__ = ["create_test_store"]
