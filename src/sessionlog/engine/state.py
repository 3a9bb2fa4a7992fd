"""Explicitly owned session state.

A SessionState is created when a logger registers and disabled when it
unregisters. It is passed by reference to the recorder, lifecycle bridge,
delivery orchestrator, and flush scheduler. There is no module-level
session state anywhere in sessionlog.
"""

import threading
from collections.abc import Callable
from datetime import UTC, datetime

from sessionlog.engine.buffer import SessionBuffer

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class SessionState:
    """The live buffer plus the flags every pipeline component consults.

    Thread Safety:
        ``enabled`` is backed by a threading.Event so the scheduler thread
        observes unregistration without extra locking. The buffer carries
        its own lock.
    """

    def __init__(
        self,
        *,
        debug_enabled: bool = False,
        page_history_limit: int | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.buffer = SessionBuffer(page_history_limit=page_history_limit)
        self.debug_enabled = debug_enabled
        self._clock: Clock = clock or utc_now
        self._enabled = threading.Event()
        self._enabled.set()

    @property
    def enabled(self) -> bool:
        return self._enabled.is_set()

    def disable(self) -> None:
        """Stop accepting records. Idempotent."""
        self._enabled.clear()

    def now(self) -> datetime:
        return self._clock()
