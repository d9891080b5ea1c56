from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from metastore_harness.service import create_app


@pytest.fixture()
def app(catalog_store):
    return create_app(catalog_store)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client
