"""
sessionlog: client-side session telemetry with offline spillover.

Records page navigation, method traces, and graded log entries for the
current session, escalates a session severity level, and delivers the
aggregated record to a remote collector. Batches that cannot be sent are
spilled to local storage and forwarded once connectivity returns.
"""

__version__ = "0.1.0"

from sessionlog.contracts import (  # noqa: E402
    Batch,
    Context,
    LogEntry,
    PageEvent,
    RelaunchedWithSession,
    Resuming,
    Severity,
    SessionLogConfigurationError,
    Suspending,
)
from sessionlog.service import SessionLogger, register_logging  # noqa: E402

__all__ = [
    "Batch",
    "Context",
    "LogEntry",
    "PageEvent",
    "RelaunchedWithSession",
    "Resuming",
    "SessionLogConfigurationError",
    "SessionLogger",
    "Severity",
    "Suspending",
    "__version__",
    "register_logging",
]
