"""Recording API over the session buffer.

SessionRecorder turns application calls (page, method, fatal, error,
warning, info, debug) into buffer entries. Every call is synchronous and
swallows its own failures: recording must never raise into the host.

Gating:
- Nothing is recorded while the session is disabled
- debug/info/warning are recorded only when debug_enabled is set
- error and fatal are always recorded while enabled
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any

import structlog

from sessionlog.contracts.enums import Severity
from sessionlog.contracts.records import LogEntry, PageEvent
from sessionlog.engine.normalize import normalize_error
from sessionlog.engine.state import SessionState

logger = structlog.get_logger(__name__)

# Levels that are only honored when debug logging was requested at registration
_DEBUG_GATED_LEVELS = frozenset({Severity.DEBUG, Severity.INFO, Severity.WARNING})


def build_log_entry(
    level: Severity,
    time: datetime,
    description: str | None = None,
    err: Any = None,
) -> LogEntry:
    """Build a LogEntry from a description and an optional raw error.

    When the error carries its own description, the caller's description
    is appended to it.
    """
    fields = normalize_error(err)
    if fields.description:
        full_description = fields.description + (description or "")
    else:
        full_description = description or ""
    return LogEntry(
        level=level,
        time=time,
        message=fields.message,
        description=full_description,
        source=fields.source,
        codeline=fields.codeline,
        source_url=fields.source_url,
        stacktrace=fields.stacktrace,
    )


def build_crash_entry(time: datetime, err: Any) -> LogEntry:
    """Build a crash LogEntry; crashes carry only what the error provides."""
    fields = normalize_error(err)
    return LogEntry(
        level=Severity.CRASH,
        time=time,
        message=fields.message,
        description=fields.description,
        source=fields.source,
        codeline=fields.codeline,
        source_url=fields.source_url,
        stacktrace=fields.stacktrace,
    )


class SessionRecorder:
    """Records page, method, and log activity into a SessionState.

    Args:
        state: The owned session state to record into
        drain: Opportunistic drain callback, invoked before each page record
            and after each crash. Failures are logged and swallowed.
    """

    def __init__(self, state: SessionState, drain: Callable[[], object] | None = None) -> None:
        self._state = state
        self._drain = drain

    def page(self, page_id: str) -> None:
        """Record a navigation, draining pending logs first."""
        if not self._state.enabled:
            return
        self._try_drain("page")
        try:
            self._state.buffer.append_page(PageEvent(time=self._state.now(), page=str(page_id)))
        except Exception as e:
            logger.warning("Failed to record page", page=page_id, error=str(e))

    def method(self, method_name: str) -> None:
        if not self._state.enabled:
            return
        try:
            self._state.buffer.append_method(str(method_name))
        except Exception as e:
            logger.warning("Failed to record method", method=method_name, error=str(e))

    def fatal(self, err: Any) -> None:
        """Record a crash and drain immediately; the process may be going down."""
        if not self._state.enabled:
            return
        try:
            self._state.buffer.append_log(build_crash_entry(self._state.now(), err))
        except Exception as e:
            logger.warning("Failed to record crash", error=str(e))
            return
        self._try_drain("fatal")

    def log(self, level: Severity, description: str | None = None, err: Any = None) -> None:
        """Record a graded log entry, escalating the session level."""
        if not self._state.enabled:
            return
        if level in _DEBUG_GATED_LEVELS and not self._state.debug_enabled:
            return
        try:
            self._state.buffer.append_log(build_log_entry(level, self._state.now(), description, err))
        except Exception as e:
            logger.warning("Failed to record log entry", level=str(level), error=str(e))

    def error(self, description: str | None = None, err: Any = None) -> None:
        self.log(Severity.ERROR, description, err)

    def warning(self, description: str | None = None, err: Any = None) -> None:
        self.log(Severity.WARNING, description, err)

    def info(self, description: str | None = None) -> None:
        self.log(Severity.INFO, description)

    def debug(self, description: str | None = None) -> None:
        self.log(Severity.DEBUG, description)

    def _try_drain(self, trigger: str) -> None:
        if self._drain is None:
            return
        try:
            self._drain()
        except Exception as e:
            logger.warning("Opportunistic drain failed", trigger=trigger, error=str(e))
