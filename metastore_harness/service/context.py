"""Application context shared across the metastore routers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import cast

from fastapi import Request

from metastore_harness.db import CatalogStore

from .bridge import AuthBridge


@dataclass(slots=True)
class AppContext:
    """Container for the store and credentials behind one service instance."""

    store: CatalogStore
    auth_bridge: AuthBridge = field(default_factory=AuthBridge)


def get_app_context(request: Request) -> AppContext:
    """Return the configured :class:`AppContext`."""

    context = getattr(request.app.state, "context", None)
    if context is None:  # pragma: no cover - guard for misconfigured apps
        raise RuntimeError("Application context missing")
    return cast(AppContext, context)


__all__ = ["AppContext", "get_app_context"]
