"""Helpers for running a metastore inside a test."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from metastore_harness.runner import LocalMetastore, ServiceConfiguration


@contextmanager
def running_metastore(
    configuration: ServiceConfiguration,
    *,
    cleanup: bool = True,
    **options: Any,
) -> Iterator[LocalMetastore]:
    """Configure and start a metastore, always stopping it on exit.

    ``options`` are passed to :class:`LocalMetastore` (backend, readiness,
    auth bridge, cancel timeout).
    """

    metastore = LocalMetastore(configuration, **options)
    metastore.configure()
    try:
        metastore.start()
        yield metastore
    finally:
        metastore.stop(cleanup)


__all__ = ["running_metastore"]
