"""DeliveryOrchestrator: memory drain and backlog recovery.

Per flush tick the orchestrator:
1. Drains the session buffer into a Batch (only if log entries exist)
2. Sends the batch through the transport when connected, otherwise
   spills it to the durable store
3. When connected, re-sends every spilled batch and deletes its file

Design principles:
- Snapshot + reset of the buffer is atomic; I/O happens afterwards
- The connectivity check, transport and store I/O all run on a worker
  pool; callers get a Future back and are never blocked by the network
  or the disk
- A failed send from memory is logged and dropped, not spilled
- A spilled batch is deleted after its re-send attempt whether or not
  the send succeeded; if deletion fails the file is re-sent next tick

Thread Safety:
    drain_memory() and recover_backlog() may be called from the scheduler
    thread and application threads concurrently. The buffer's own lock
    guarantees each drained entry lands in exactly one batch.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from sessionlog.contracts.enums import DeliveryRoute
from sessionlog.contracts.records import Batch

if TYPE_CHECKING:
    from sessionlog.delivery.protocols import (
        ConnectivityProbeProtocol,
        ContextProviderProtocol,
        SpillStoreProtocol,
        TransportProtocol,
    )
    from sessionlog.engine.state import SessionState

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class DeliveryOutcome:
    """Where a drained batch ended up.

    Attributes:
        route: TRANSPORT if it was sent, SPILL if written to the store
        spill_file: Name of the spill file (SPILL route only)
    """

    route: DeliveryRoute
    spill_file: str | None = None


@dataclass(frozen=True, slots=True)
class DrainResult:
    """One memory drain handed to the I/O pool.

    Attributes:
        batch: The batch that was built
        future: Completes with the DeliveryOutcome; carries the exception
            if the send or the spill write failed
    """

    batch: Batch
    future: Future[DeliveryOutcome]


@dataclass(frozen=True, slots=True)
class RecoveryResult:
    """Outcome of re-sending one spill file."""

    name: str
    delivered: bool
    deleted: bool


class DeliveryOrchestrator:
    """Routes drained batches to the transport or the spill store.

    Example:
        orchestrator = DeliveryOrchestrator(
            state,
            context_provider=provider,
            connectivity_probe=probe,
            spill_store=store,
            transport=transport,
        )
        orchestrator.drain_memory()
        orchestrator.recover_backlog()
        orchestrator.close()
    """

    def __init__(
        self,
        state: SessionState,
        *,
        context_provider: ContextProviderProtocol,
        connectivity_probe: ConnectivityProbeProtocol,
        spill_store: SpillStoreProtocol,
        transport: TransportProtocol,
        max_workers: int = 4,
    ) -> None:
        self._state = state
        self._context_provider = context_provider
        self._probe = connectivity_probe
        self._store = spill_store
        self._transport = transport
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="sessionlog-io")

    def is_connected(self) -> bool:
        """Query the connectivity probe; a failing probe counts as offline."""
        try:
            return bool(self._probe.is_connected())
        except Exception as e:
            logger.warning("Connectivity probe failed, treating as offline", error=str(e))
            return False

    def drain_memory(self) -> DrainResult | None:
        """Drain the session buffer into one delivery attempt.

        Returns:
            DrainResult, or None if there were no log entries to deliver.

        Raises:
            Exception: Whatever the context provider raises. The buffer is
                left untouched in that case so the next tick can retry.
        """
        if not self._state.buffer.has_logs:
            return None

        # Resolve context before draining so a provider failure loses nothing
        context = self._context_provider.get_context()
        snapshot = self._state.buffer.drain()
        if snapshot is None:
            # Another trigger drained between the check and the drain
            return None

        batch = Batch.from_snapshot(snapshot, context, self._state.now())
        future = self._executor.submit(self._deliver, batch.to_json(), len(batch.log))
        return DrainResult(batch=batch, future=future)

    def recover_backlog(self) -> list[Future[RecoveryResult]]:
        """Re-send every spill file, concurrently and in no particular order.

        Returns:
            One future per spill file found; empty when offline or when the
            store cannot be listed.
        """
        if not self.is_connected():
            return []
        try:
            names = self._store.list_spills()
        except Exception as e:
            logger.warning("Failed to list spill files", error=str(e))
            return []

        if names:
            logger.debug("Recovering spilled batches", count=len(names))
        return [self._executor.submit(self._recover_one, name) for name in names]

    def _deliver(self, payload: str, entries: int) -> DeliveryOutcome:
        # Probing can block for the full connect timeout, so it runs here
        if self.is_connected():
            try:
                self._transport.send(payload)
            except Exception as e:
                logger.warning(
                    "Batch delivery failed, dropped", error=str(e), error_type=type(e).__name__, entries=entries
                )
                raise
            logger.debug("Batch delivered", entries=entries)
            return DeliveryOutcome(route=DeliveryRoute.TRANSPORT)

        try:
            name = self._store.write_spill(payload)
        except Exception as e:
            logger.warning(
                "Failed to spill batch, batch lost", error=str(e), error_type=type(e).__name__, entries=entries
            )
            raise
        logger.debug("Batch spilled", spill_file=name, entries=entries)
        return DeliveryOutcome(route=DeliveryRoute.SPILL, spill_file=name)

    def _recover_one(self, name: str) -> RecoveryResult:
        try:
            payload = self._store.read_spill(name)
        except Exception as e:
            logger.warning("Failed to read spill file", name=name, error=str(e))
            return RecoveryResult(name=name, delivered=False, deleted=False)

        delivered = True
        try:
            self._transport.send(payload)
        except Exception as e:
            delivered = False
            logger.warning("Spilled batch delivery failed", name=name, error=str(e))

        deleted = True
        try:
            self._store.delete_spill(name)
        except Exception as e:
            deleted = False
            logger.warning("Failed to delete spill file, will retry next tick", name=name, error=str(e))

        logger.debug("Spill file processed", name=name, delivered=delivered, deleted=deleted)
        return RecoveryResult(name=name, delivered=delivered, deleted=deleted)

    def close(self, *, wait: bool = True) -> None:
        """Shut down the I/O worker pool.

        In-flight sends and writes are allowed to finish when wait=True;
        nothing is cancelled.
        """
        self._executor.shutdown(wait=wait)
