"""FlushScheduler: the recurring drain-and-recover loop.

Runs on a background thread. After an initial defer (to stay out of
application startup) it ticks every ``interval_seconds``. Each tick:
1. Stops the loop if the session has been disabled (unregistered)
2. Drains memory through the orchestrator
3. Runs backlog recovery through the orchestrator
4. Waits for the next tick, without waiting on the tick's in-flight I/O

Thread Safety:
    The loop runs on its own daemon thread so it never keeps the host
    process alive. stop() may be called from any thread.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from sessionlog.delivery.orchestrator import DeliveryOrchestrator
    from sessionlog.engine.state import SessionState

logger = structlog.get_logger(__name__)


class FlushScheduler:
    """Self-rescheduling flush timer.

    Unregistration does not stop the thread directly: the loop notices the
    disabled session at its next tick and exits. stop() is for teardown and
    ends the loop immediately.

    Example:
        scheduler = FlushScheduler(state, orchestrator, defer_seconds=30, interval_seconds=60)
        scheduler.start()
        ...
        scheduler.stop()
    """

    def __init__(
        self,
        state: SessionState,
        orchestrator: DeliveryOrchestrator,
        *,
        defer_seconds: float = 30,
        interval_seconds: float = 60,
    ) -> None:
        """Initialize an unstarted scheduler.

        Raises:
            ValueError: If defer_seconds < 0 or interval_seconds <= 0.
        """
        if defer_seconds < 0:
            raise ValueError(f"defer_seconds must be >= 0, got {defer_seconds}")
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be > 0, got {interval_seconds}")
        self._state = state
        self._orchestrator = orchestrator
        self._defer_seconds = defer_seconds
        self._interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._tick_count = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def tick_count(self) -> int:
        """Number of ticks that ran (drain + recovery attempted)."""
        return self._tick_count

    def start(self) -> None:
        """Start the loop thread. Calling start() on a running scheduler is a no-op."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="sessionlog-flush", daemon=True)
        self._thread.start()
        logger.debug(
            "Flush scheduler started",
            defer_seconds=self._defer_seconds,
            interval_seconds=self._interval_seconds,
        )

    def _run(self) -> None:
        if self._stop_event.wait(self._defer_seconds):
            return
        while self.run_tick():
            if self._stop_event.wait(self._interval_seconds):
                break
        logger.debug("Flush scheduler stopped", ticks=self._tick_count)

    def run_tick(self) -> bool:
        """Run one tick synchronously.

        Each phase is isolated: a failing drain does not prevent backlog
        recovery, and neither failure escapes.

        Returns:
            False if the session is disabled (the loop should end), True
            otherwise.
        """
        if not self._state.enabled:
            return False

        try:
            self._orchestrator.drain_memory()
        except Exception as e:
            logger.error("Memory drain failed", error=str(e), error_type=type(e).__name__)

        try:
            self._orchestrator.recover_backlog()
        except Exception as e:
            logger.error("Backlog recovery failed", error=str(e), error_type=type(e).__name__)

        self._tick_count += 1
        return True

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the loop to exit and wait for the thread."""
        self._stop_event.set()
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.error("Flush scheduler thread did not exit within timeout", timeout=timeout)
