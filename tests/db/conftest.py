"""Fixtures for DB tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from metastore_harness.settings import ConfVar, MetastoreSettings


@pytest.fixture()
def store_settings(tmp_path: Path) -> MetastoreSettings:
    settings = MetastoreSettings()
    settings.set_var(
        ConfVar.CONNECTION_URL, f"jdbc:derby:;databaseName={tmp_path / 'ms-db'};create=true"
    )
    settings.set_var(ConfVar.ENGINE_LOG_FILE, str(tmp_path / "derby.log"))
    settings.set_var(ConfVar.WAREHOUSE_DIR, str(tmp_path / "warehouse"))
    return settings
