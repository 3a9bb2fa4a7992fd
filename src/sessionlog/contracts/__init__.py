"""Shared contracts: data records, enums, lifecycle notifications, errors.

This package has no dependencies on the rest of sessionlog so every
layer (engine, delivery, lifecycle, environment) can import from it.
"""

from sessionlog.contracts.enums import DeliveryRoute, Orientation, Severity
from sessionlog.contracts.errors import (
    SessionLogConfigurationError,
    SpillStoreError,
    TransportConfigurationError,
    TransportError,
)
from sessionlog.contracts.lifecycle import (
    LifecycleEvent,
    RelaunchedWithSession,
    Resuming,
    Suspending,
)
from sessionlog.contracts.records import (
    SESSION_KEYS,
    TRACE_SEPARATOR,
    Batch,
    Context,
    LogEntry,
    PageEvent,
    SessionSnapshot,
)

__all__ = [
    "SESSION_KEYS",
    "TRACE_SEPARATOR",
    "Batch",
    "Context",
    "DeliveryRoute",
    "LifecycleEvent",
    "LogEntry",
    "Orientation",
    "PageEvent",
    "RelaunchedWithSession",
    "Resuming",
    "SessionLogConfigurationError",
    "SessionSnapshot",
    "Severity",
    "SpillStoreError",
    "Suspending",
    "TransportConfigurationError",
    "TransportError",
]
