"""HTTP transport: POSTs each batch to the collector as JSON."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from sessionlog.contracts.errors import TransportConfigurationError, TransportError

logger = structlog.get_logger(__name__)


class HttpTransport:
    """POST serialized batches to the collector endpoint.

    One attempt per send(); there is no retry here. A non-2xx response or
    any network error raises TransportError.

    Configuration options:
        endpoint: Collector URL (required; defaults to the logger's server_url)
        headers: Optional dict of extra request headers
        timeout: Optional request timeout in seconds (default: httpx default)

    Example configuration:
        transport: http
        transport_options:
          headers:
            Authorization: Bearer ${COLLECTOR_TOKEN}

    Thread safety:
        httpx.Client is safe to share between the I/O worker threads.
    """

    _name = "http"

    def __init__(self, *, client: httpx.Client | None = None) -> None:
        """Initialize unconfigured transport.

        Args:
            client: Pre-built client (e.g. with a mock transport). When given,
                the transport does not own it and will not close it.
        """
        self._endpoint: str | None = None
        self._headers: dict[str, str] = {}
        self._client = client
        self._owns_client = client is None
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def endpoint(self) -> str | None:
        return self._endpoint

    def configure(self, config: dict[str, Any]) -> None:
        """Configure endpoint, headers, and timeout.

        Raises:
            TransportConfigurationError: If endpoint is missing or options have
                the wrong type
        """
        endpoint = config.get("endpoint")
        if not isinstance(endpoint, str) or not endpoint.strip():
            raise TransportConfigurationError(self._name, "HTTP transport requires a non-empty 'endpoint'")
        try:
            url = httpx.URL(endpoint.strip())
        except httpx.InvalidURL as e:
            raise TransportConfigurationError(self._name, f"Invalid endpoint {endpoint!r}: {e}") from e
        if url.scheme not in ("http", "https"):
            raise TransportConfigurationError(self._name, f"Endpoint must be an http(s) URL, got {endpoint!r}")

        headers = config.get("headers", {})
        if not isinstance(headers, dict):
            raise TransportConfigurationError(
                self._name,
                f"'headers' must be a mapping, got {type(headers).__name__}",
            )

        timeout = config.get("timeout")
        if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, int | float) or timeout <= 0):
            raise TransportConfigurationError(self._name, f"'timeout' must be a positive number, got {timeout!r}")

        self._endpoint = endpoint.strip()
        self._headers = {str(k): str(v) for k, v in headers.items()}
        if self._client is None:
            self._client = httpx.Client(timeout=timeout) if timeout is not None else httpx.Client()

        logger.debug("HTTP transport configured", endpoint=self._endpoint, header_keys=sorted(self._headers))

    def send(self, payload: str) -> None:
        """POST one JSON batch.

        Raises:
            TransportError: On network failure, non-2xx status, or use before
                configure()/after close()
        """
        if self._endpoint is None or self._client is None:
            raise TransportError("<unconfigured>", "HTTP transport used before configure()")
        if self._closed:
            raise TransportError(self._endpoint, "HTTP transport is closed")

        headers = {**self._headers, "Content-Type": "application/json"}
        try:
            response = self._client.post(self._endpoint, content=payload.encode("utf-8"), headers=headers)
        except httpx.HTTPError as e:
            raise TransportError(self._endpoint, str(e) or type(e).__name__) from e

        if response.is_error:
            raise TransportError(
                self._endpoint,
                f"collector answered HTTP {response.status_code}",
                status_code=response.status_code,
            )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._owns_client and self._client is not None:
            self._client.close()
