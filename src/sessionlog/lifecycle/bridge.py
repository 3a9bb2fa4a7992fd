"""LifecycleBridge: keeps the session buffer alive across suspend/relaunch.

States:
    inactive -> active      activate(): subscribe to the lifecycle source
    active   -> inactive    deactivate(): unsubscribe

Notifications:
- Suspending: record a "suspending" page, then write the full buffer
  snapshot into the session store (the process may be terminated next)
- Resuming: record a "resuming" page only
- RelaunchedWithSession: replace the live buffer with the persisted
  snapshot, if there is one, then clear the persisted slot so the same
  logs are never restored (and delivered) twice

All handlers are no-ops while logging is disabled, and none of them
raise into the lifecycle source.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import TYPE_CHECKING, Any

import structlog

from sessionlog.contracts.lifecycle import LifecycleEvent, RelaunchedWithSession, Resuming, Suspending
from sessionlog.contracts.records import SESSION_KEYS, PageEvent, SessionSnapshot

if TYPE_CHECKING:
    from sessionlog.engine.state import SessionState
    from sessionlog.lifecycle.sources import LifecycleSourceProtocol

logger = structlog.get_logger(__name__)

SUSPENDING_PAGE = "suspending"
RESUMING_PAGE = "resuming"


class LifecycleBridge:
    """Persists and restores the SessionBuffer around host lifecycle events.

    The bridge is the only component allowed to read or replace the
    buffer wholesale.
    """

    def __init__(
        self,
        state: SessionState,
        source: LifecycleSourceProtocol,
        session_store: MutableMapping[str, Any] | None = None,
    ) -> None:
        self._state = state
        self._source = source
        self._session_store = session_store
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def activate(self) -> None:
        if self._active:
            return
        self._source.subscribe(self.handle)
        self._active = True

    def deactivate(self) -> None:
        """Unsubscribe from the source. Idempotent."""
        if not self._active:
            return
        self._source.unsubscribe(self.handle)
        self._active = False

    def handle(self, event: LifecycleEvent) -> None:
        """Dispatch one lifecycle notification."""
        try:
            match event:
                case Suspending():
                    self.on_suspending()
                case Resuming():
                    self.on_resuming()
                case RelaunchedWithSession():
                    self.on_relaunched(event.session)
                case _:
                    logger.debug("Ignoring unknown lifecycle event", event_type=type(event).__name__)
        except Exception as e:
            logger.error(
                "Lifecycle handling failed",
                event_type=type(event).__name__,
                error=str(e),
            )

    def on_suspending(self) -> None:
        if not self._state.enabled:
            return
        self._state.buffer.append_page(PageEvent(time=self._state.now(), page=SUSPENDING_PAGE))
        if self._session_store is None:
            logger.warning("No session store configured, buffer not persisted on suspend")
            return
        snapshot = self._state.buffer.snapshot()
        self._session_store.update(snapshot.to_session_state())
        logger.debug(
            "Session persisted on suspend",
            pages=len(snapshot.pages),
            methods=len(snapshot.methods),
            logs=len(snapshot.logs),
            level=str(snapshot.level),
        )

    def on_resuming(self) -> None:
        if not self._state.enabled:
            return
        self._state.buffer.append_page(PageEvent(time=self._state.now(), page=RESUMING_PAGE))

    def on_relaunched(self, session: Mapping[str, Any] | None = None) -> bool:
        """Replace the live buffer with the persisted snapshot.

        Args:
            session: Session slot handed over with the notification; when
                None the configured session store is read instead.

        Returns:
            True if a snapshot was restored, False if there was nothing to
            restore (the fresh buffer is left untouched).
        """
        if not self._state.enabled:
            return False
        slot = session if session is not None else self._session_store
        snapshot = SessionSnapshot.from_session_state(slot)
        if snapshot is None:
            logger.debug("Relaunch without persisted session, keeping fresh buffer")
            return False
        self._state.buffer.replace(snapshot)
        if self._session_store is not None:
            for key in SESSION_KEYS:
                self._session_store.pop(key, None)
        logger.info(
            "Session restored after relaunch",
            pages=len(snapshot.pages),
            methods=len(snapshot.methods),
            logs=len(snapshot.logs),
            level=str(snapshot.level),
        )
        return True
