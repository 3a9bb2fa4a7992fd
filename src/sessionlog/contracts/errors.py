"""Exceptions raised inside the sessionlog pipeline.

Only configuration errors are allowed to reach the host application, and
only at registration time. Transport and storage errors are raised by the
adapters and caught by the delivery orchestrator, which logs them.
"""


class SessionLogConfigurationError(ValueError):
    """Raised at registration when required settings are missing or invalid."""


class TransportConfigurationError(Exception):
    """Raised when a transport cannot be resolved or configured.

    Attributes:
        transport_name: Name of the transport that failed
        message: Human-readable error description
    """

    def __init__(self, transport_name: str, message: str) -> None:
        self.transport_name = transport_name
        self.message = message
        super().__init__(f"Transport '{transport_name}' failed: {message}")


class TransportError(Exception):
    """Raised when a single send to the collector fails.

    Attributes:
        endpoint: Collector URL the send targeted
        status_code: HTTP status, when the collector answered at all
    """

    def __init__(self, endpoint: str, message: str, *, status_code: int | None = None) -> None:
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(f"Send to {endpoint} failed: {message}")


class SpillStoreError(Exception):
    """Raised when a spill file cannot be written, listed, read, or deleted.

    Attributes:
        name: Spill file name involved, if any
    """

    def __init__(self, message: str, *, name: str | None = None) -> None:
        self.name = name
        super().__init__(message)
