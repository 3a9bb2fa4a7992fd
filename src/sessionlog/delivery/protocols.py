"""Protocol definitions for the collaborators the delivery pipeline consumes.

The orchestrator depends only on these structural interfaces; concrete
adapters live in sessionlog.delivery.store, sessionlog.delivery.transports,
and sessionlog.environment.
"""

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sessionlog.contracts.records import Context


@runtime_checkable
class TransportProtocol(Protocol):
    """Protocol for outbound transports.

    Transports deliver one serialized batch per send() call. They are
    discovered via pluggy hooks and selected by name in settings.

    Lifecycle:
        1. Discovery: sessionlog_get_transports hook returns transport classes
        2. Instantiation: the factory creates an instance (no arguments)
        3. Configuration: configure() called with transport options
        4. Operation: send() called from worker threads
        5. Shutdown: close() called at logger teardown

    Error handling:
        - configure() MUST raise TransportConfigurationError on invalid config
        - send() MUST raise TransportError on failure; the orchestrator logs it
        - close() MUST be idempotent
    """

    @property
    def name(self) -> str:
        """Transport name used in settings (``transport: http``)."""
        ...

    def configure(self, config: dict[str, Any]) -> None:
        """Configure from transport options.

        Raises:
            TransportConfigurationError: If configuration is invalid
        """
        ...

    def send(self, payload: str) -> None:
        """Deliver one JSON batch.

        Thread Safety:
            May be called concurrently from several worker threads.

        Raises:
            TransportError: If the batch was not accepted
        """
        ...

    def close(self) -> None:
        """Release resources. Must be idempotent."""
        ...


@runtime_checkable
class SpillStoreProtocol(Protocol):
    """Durable storage for batches that could not be sent."""

    def write_spill(self, content: str) -> str:
        """Write content to a new, uniquely named spill file and return its name.

        Raises:
            SpillStoreError: If the file cannot be created or written
        """
        ...

    def list_spills(self) -> list[str]:
        """Return the names of all spill files currently stored."""
        ...

    def read_spill(self, name: str) -> str:
        ...

    def delete_spill(self, name: str) -> None:
        ...


@runtime_checkable
class ConnectivityProbeProtocol(Protocol):
    """Answers whether an outbound path to the collector currently exists."""

    def is_connected(self) -> bool:
        ...


@runtime_checkable
class ContextProviderProtocol(Protocol):
    """Supplies environment metadata for each batch."""

    def get_context(self) -> "Context":
        ...
