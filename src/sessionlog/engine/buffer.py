# src/sessionlog/engine/buffer.py
"""In-memory session buffer with severity escalation.

Accumulates page events, method names, and log entries for the current
drain window, along with the session level: the highest Severity seen
since the last drain.

Key design decisions:
- One lock guards every mutation, so drain() can snapshot and reset
  atomically relative to interleaved record calls from other threads
- drain() only resets logs, methods, and level; page history is kept
  across drains
- Optional page history bound via deque(maxlen=N): oldest pages evicted
"""

import threading
from collections import deque

from sessionlog.contracts.enums import Severity
from sessionlog.contracts.records import LogEntry, PageEvent, SessionSnapshot


class SessionBuffer:
    """Mutable accumulator for one session window.

    Only the LifecycleBridge may read or replace the buffer wholesale
    (snapshot()/replace()); everything else goes through the append
    methods and drain().

    Thread Safety:
        All public methods are thread-safe. The flush scheduler thread and
        the application's own threads may drain and append concurrently.

    Example:
        buffer = SessionBuffer()
        buffer.append_log(entry)
        snapshot = buffer.drain()  # None if no logs were recorded
    """

    def __init__(self, page_history_limit: int | None = None) -> None:
        """Initialize an empty buffer at Severity.DEBUG.

        Args:
            page_history_limit: Keep only the most recent N page events.
                None (default) keeps the full history.

        Raises:
            ValueError: If page_history_limit < 1.
        """
        if page_history_limit is not None and page_history_limit < 1:
            raise ValueError(f"page_history_limit must be >= 1, got {page_history_limit}")
        self._lock = threading.Lock()
        self._pages: deque[PageEvent] = deque(maxlen=page_history_limit)
        self._methods: list[str] = []
        self._logs: list[LogEntry] = []
        self._level = Severity.DEBUG

    def append_page(self, event: PageEvent) -> None:
        with self._lock:
            self._pages.append(event)

    def append_method(self, name: str) -> None:
        with self._lock:
            self._methods.append(name)

    def append_log(self, entry: LogEntry) -> None:
        """Append a log entry and escalate the session level to its severity."""
        with self._lock:
            self._logs.append(entry)
            self._escalate_locked(entry.level)

    def escalate(self, level: Severity) -> None:
        """Raise the session level if ``level`` outranks it; never lowers it."""
        with self._lock:
            self._escalate_locked(level)

    def _escalate_locked(self, level: Severity) -> None:
        """Must be called while holding _lock."""
        if level.outranks(self._level):
            self._level = level

    @property
    def level(self) -> Severity:
        return self._level

    @property
    def has_logs(self) -> bool:
        return bool(self._logs)

    def snapshot(self) -> SessionSnapshot:
        """Return an immutable copy of the whole buffer without resetting it."""
        with self._lock:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> SessionSnapshot:
        return SessionSnapshot(
            pages=tuple(self._pages),
            methods=tuple(self._methods),
            logs=tuple(self._logs),
            level=self._level,
        )

    def drain(self) -> SessionSnapshot | None:
        """Atomically snapshot the buffer and reset the drain window.

        Returns None, and changes nothing, when no log entries were
        recorded: delivery is log-triggered, so page and method activity
        alone never produces a batch.

        On a non-empty drain, logs and methods are emptied and the level
        returns to DEBUG. Pages are kept.
        """
        with self._lock:
            if not self._logs:
                return None
            snapshot = self._snapshot_locked()
            self._logs = []
            self._methods = []
            self._level = Severity.DEBUG
            return snapshot

    def replace(self, snapshot: SessionSnapshot) -> None:
        """Replace the entire buffer with a persisted snapshot (no merge)."""
        with self._lock:
            self._pages = deque(snapshot.pages, maxlen=self._pages.maxlen)
            self._methods = list(snapshot.methods)
            self._logs = list(snapshot.logs)
            self._level = snapshot.level

    def __len__(self) -> int:
        """Return the number of buffered log entries."""
        return len(self._logs)
