"""Validated configuration for one embedded metastore instance."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from metastore_harness.errors import InvalidConfigurationError, MissingConfigurationError
from metastore_harness.settings import MetastoreSettings

__all__ = ["ServiceConfiguration", "ServiceConfigurationBuilder"]

_ENV_PREFIX = "METASTORE_HARNESS_"

# Checked in this order by build(); the label is what the error message shows.
_REQUIRED_FIELDS: tuple[tuple[str, str], ...] = (
    ("hostname", "Metastore Hostname"),
    ("port", "Metastore Port"),
    ("store_dir", "Metastore Store Dir"),
    ("scratch_dir", "Scratch Dir"),
    ("warehouse_dir", "Warehouse Dir"),
    ("settings", "Metastore Settings"),
)


@dataclass(frozen=True, slots=True)
class ServiceConfiguration:
    """Fully specified parameters for a single metastore launch.

    ``settings`` is a frozen copy taken at build time.
    """

    hostname: str
    port: int
    store_dir: str
    scratch_dir: str
    warehouse_dir: str
    settings: MetastoreSettings

    @classmethod
    def builder(cls) -> ServiceConfigurationBuilder:
        return ServiceConfigurationBuilder()

    @property
    def metastore_uri(self) -> str:
        return f"thrift://{self.hostname}:{self.port}"

    @property
    def connection_url(self) -> str:
        return f"jdbc:derby:;databaseName={self.store_dir};create=true"


class ServiceConfigurationBuilder:
    """Collect configuration fields and validate them in :meth:`build`."""

    def __init__(self) -> None:
        self._hostname: str | None = None
        self._port: int | None = None
        self._store_dir: str | None = None
        self._scratch_dir: str | None = None
        self._warehouse_dir: str | None = None
        self._settings: MetastoreSettings | None = None

    @classmethod
    def from_toml(
        cls, path: Path, *, environ: Mapping[str, str] | None = None
    ) -> ServiceConfigurationBuilder:
        """Seed a builder from a ``[metastore]`` TOML table plus env overrides.

        Environment variables named ``METASTORE_HARNESS_<FIELD>`` win over the
        file. Nothing is validated here; missing fields fail in :meth:`build`.
        """

        data = tomllib.loads(Path(path).read_text("utf-8"))
        table: dict[str, Any] = dict(data.get("metastore", {}))
        builder = cls()
        builder.settings(MetastoreSettings(table.pop("settings", {})))
        return builder.apply(table).apply_environment(environ)

    def apply(self, values: Mapping[str, Any]) -> ServiceConfigurationBuilder:
        """Set every known field present in ``values``."""

        for field in ("hostname", "store_dir", "scratch_dir", "warehouse_dir"):
            if values.get(field) is not None:
                getattr(self, field)(str(values[field]))
        if values.get("port") is not None:
            self.port(_parse_port(values["port"]))
        return self

    def apply_environment(
        self, environ: Mapping[str, str] | None = None
    ) -> ServiceConfigurationBuilder:
        env = os.environ if environ is None else environ
        overrides = {
            field: env[f"{_ENV_PREFIX}{field.upper()}"]
            for field in ("hostname", "port", "store_dir", "scratch_dir", "warehouse_dir")
            if f"{_ENV_PREFIX}{field.upper()}" in env
        }
        return self.apply(overrides)

    def hostname(self, value: str) -> ServiceConfigurationBuilder:
        self._hostname = value
        return self

    def port(self, value: int) -> ServiceConfigurationBuilder:
        self._port = value
        return self

    def store_dir(self, value: str | os.PathLike[str]) -> ServiceConfigurationBuilder:
        self._store_dir = os.fspath(value)
        return self

    def scratch_dir(self, value: str | os.PathLike[str]) -> ServiceConfigurationBuilder:
        self._scratch_dir = os.fspath(value)
        return self

    def warehouse_dir(self, value: str | os.PathLike[str]) -> ServiceConfigurationBuilder:
        self._warehouse_dir = os.fspath(value)
        return self

    def settings(self, value: MetastoreSettings | Mapping[str, Any]) -> ServiceConfigurationBuilder:
        if value is not None and not isinstance(value, MetastoreSettings):
            value = MetastoreSettings(value)
        self._settings = value
        return self

    def build(self) -> ServiceConfiguration:
        for field, label in _REQUIRED_FIELDS:
            value = getattr(self, f"_{field}")
            if value is None or (isinstance(value, str) and not value.strip()):
                raise MissingConfigurationError(field, label)
        port = self._port
        if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
            raise InvalidConfigurationError(f"Metastore Port must be in 1-65535, got {port!r}")
        settings = self._settings
        if settings is None:
            raise MissingConfigurationError("settings", "Metastore Settings")
        return ServiceConfiguration(
            hostname=str(self._hostname),
            port=port,
            store_dir=str(self._store_dir),
            scratch_dir=str(self._scratch_dir),
            warehouse_dir=str(self._warehouse_dir),
            settings=settings.copy(frozen=True),
        )


def _parse_port(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigurationError(f"Metastore Port must be an integer, got {value!r}") from exc
