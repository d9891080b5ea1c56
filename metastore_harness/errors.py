"""Error taxonomy shared across the harness."""

from __future__ import annotations


class MetastoreHarnessError(RuntimeError):
    """Base class for harness errors."""


class ConfigurationError(MetastoreHarnessError):
    """Raised when a service configuration cannot be built."""


class MissingConfigurationError(ConfigurationError):
    """Raised when a required configuration field was never supplied."""

    def __init__(self, field: str, label: str | None = None) -> None:
        self.field = field
        super().__init__(f"Missing required config: {label or field}")


class InvalidConfigurationError(ConfigurationError):
    """Raised when a configuration field holds an unusable value."""


class LifecycleError(MetastoreHarnessError):
    """Raised when the manager is driven out of order."""


class LaunchFailure(MetastoreHarnessError):
    """Wraps an error raised inside the background launch thread."""


class SchemaOperationFailure(MetastoreHarnessError):
    """Wraps a failed schema prepare or clean."""


class TeardownStepFailure(MetastoreHarnessError):
    """Wraps a failed teardown step."""

    def __init__(self, step: str, cause: BaseException) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"Teardown step '{step}' failed: {cause}")


__all__ = [
    "ConfigurationError",
    "InvalidConfigurationError",
    "LaunchFailure",
    "LifecycleError",
    "MetastoreHarnessError",
    "MissingConfigurationError",
    "SchemaOperationFailure",
    "TeardownStepFailure",
]
