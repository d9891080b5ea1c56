"""Configuration, process guard, launch supervision, and lifecycle manager."""

from .config import ServiceConfiguration, ServiceConfigurationBuilder
from .guard import ProcessExitIntercepted, ProcessGuard, ProcessGuardError
from .metastore import LocalMetastore, ServiceHandle, ServicePhase
from .readiness import EndpointProbeReadiness, FixedDelayReadiness, ReadinessGate
from .supervisor import LaunchOutcome, LaunchSupervisor

__all__ = [
    "EndpointProbeReadiness",
    "FixedDelayReadiness",
    "LaunchOutcome",
    "LaunchSupervisor",
    "LocalMetastore",
    "ProcessExitIntercepted",
    "ProcessGuard",
    "ProcessGuardError",
    "ReadinessGate",
    "ServiceConfiguration",
    "ServiceConfigurationBuilder",
    "ServiceHandle",
    "ServicePhase",
]
