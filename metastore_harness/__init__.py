"""Embedded metastore lifecycle harness for integration tests."""

from .version import __version__  # noqa: F401
from .errors import (  # noqa: F401
    ConfigurationError,
    InvalidConfigurationError,
    MissingConfigurationError,
)
from .settings import ConfVar, MetastoreSettings  # noqa: F401
