"""Embedded metastore service: FastAPI app, auth bridge, and backend entry points."""

from .app import create_app
from .backend import EmbeddedMetastoreBackend, MetastoreBackend
from .bridge import AuthBridge

__all__ = [
    "AuthBridge",
    "EmbeddedMetastoreBackend",
    "MetastoreBackend",
    "create_app",
]
