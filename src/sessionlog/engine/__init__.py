"""Buffer & escalation engine: session state, buffer, recorder, error normalization."""

from sessionlog.engine.buffer import SessionBuffer
from sessionlog.engine.normalize import ErrorFields, classify_error, normalize_error
from sessionlog.engine.recorder import SessionRecorder, build_crash_entry, build_log_entry
from sessionlog.engine.state import SessionState, utc_now

__all__ = [
    "ErrorFields",
    "SessionBuffer",
    "SessionRecorder",
    "SessionState",
    "build_crash_entry",
    "build_log_entry",
    "classify_error",
    "normalize_error",
    "utc_now",
]
