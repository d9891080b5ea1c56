"""Key/value settings handed to the metastore service."""

from __future__ import annotations

import enum
import tomllib
from collections.abc import Iterator, Mapping, MutableMapping
from pathlib import Path
from typing import Any

__all__ = ["ConfVar", "MetastoreSettings"]

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfVar(str, enum.Enum):
    """Well-known setting names and their defaults."""

    METASTORE_URIS = "hive.metastore.uris"
    SCRATCH_DIR = "hive.exec.scratchdir"
    CONNECTION_URL = "javax.jdo.option.ConnectionURL"
    WAREHOUSE_DIR = "hive.metastore.warehouse.dir"
    IN_TEST = "hive.in.test"
    TXN_MANAGER = "hive.txn.manager"
    SUPPORT_CONCURRENCY = "hive.support.concurrency"
    ENGINE_LOG_FILE = "derby.stream.error.file"

    @property
    def default(self) -> str | None:
        return _DEFAULTS.get(self)


_DEFAULTS: dict[ConfVar, str] = {
    ConfVar.IN_TEST: "false",
    ConfVar.SUPPORT_CONCURRENCY: "false",
    ConfVar.ENGINE_LOG_FILE: "derby.log",
}


def _key(name: ConfVar | str) -> str:
    return name.value if isinstance(name, ConfVar) else str(name)


class MetastoreSettings(MutableMapping[str, str]):
    """String mapping with typed accessors for :class:`ConfVar` names.

    A frozen instance rejects writes; :meth:`copy` returns a mutable copy by
    default.
    """

    def __init__(self, values: Mapping[str, Any] | None = None, *, frozen: bool = False) -> None:
        self._frozen = False
        self._values: dict[str, str] = {}
        for key, value in (values or {}).items():
            self[key] = value
        self._frozen = frozen

    @property
    def frozen(self) -> bool:
        return self._frozen

    @classmethod
    def from_toml(cls, path: Path, table: str = "settings") -> MetastoreSettings:
        """Load settings from a flat TOML table (dotted keys must be quoted)."""

        data = tomllib.loads(Path(path).read_text("utf-8"))
        return cls(data.get(table, {}))

    def __getitem__(self, key: str) -> str:
        return self._values[_key(key)]

    def __setitem__(self, key: str, value: Any) -> None:
        self._check_writable()
        if isinstance(value, bool):
            value = "true" if value else "false"
        self._values[_key(key)] = str(value)

    def __delitem__(self, key: str) -> None:
        self._check_writable()
        del self._values[_key(key)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"MetastoreSettings({self._values!r})"

    def get_var(self, name: ConfVar | str) -> str | None:
        value = self._values.get(_key(name))
        if value is None and isinstance(name, ConfVar):
            return name.default
        return value

    def set_var(self, name: ConfVar | str, value: Any) -> None:
        self[_key(name)] = value

    def get_bool(self, name: ConfVar | str) -> bool:
        value = self.get_var(name)
        return value is not None and value.strip().lower() in _TRUE_VALUES

    def set_bool(self, name: ConfVar | str, value: bool) -> None:
        self[_key(name)] = bool(value)

    def get_int(self, name: ConfVar | str, default: int | None = None) -> int | None:
        value = self.get_var(name)
        if value is None or not value.strip():
            return default
        return int(value)

    def copy(self, *, frozen: bool = False) -> MetastoreSettings:
        return MetastoreSettings(self._values, frozen=frozen)

    def _check_writable(self) -> None:
        if self._frozen:
            raise TypeError("Settings are frozen; work on a copy()")
