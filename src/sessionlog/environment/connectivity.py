"""Connectivity probes.

The orchestrator only asks one question: is there a path to the
collector right now? SocketConnectivityProbe answers it by opening (and
immediately closing) a TCP connection to the collector's host and port.
"""

import socket

import httpx
import structlog

logger = structlog.get_logger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}


class SocketConnectivityProbe:
    """TCP reachability check against one host and port."""

    def __init__(self, host: str, port: int, *, timeout: float = 3.0) -> None:
        if not host:
            raise ValueError("host must not be empty")
        if timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {timeout}")
        self._host = host
        self._port = port
        self._timeout = timeout

    @classmethod
    def for_url(cls, url: str, *, timeout: float = 3.0) -> "SocketConnectivityProbe":
        """Build a probe for the host/port a collector URL points at.

        Raises:
            ValueError: If the URL has no host or an unknown scheme without
                an explicit port.
        """
        parsed = httpx.URL(url)
        if not parsed.host:
            raise ValueError(f"URL has no host: {url!r}")
        port = parsed.port or _DEFAULT_PORTS.get(parsed.scheme)
        if port is None:
            raise ValueError(f"Cannot infer port for scheme {parsed.scheme!r} in {url!r}")
        return cls(parsed.host, port, timeout=timeout)

    @property
    def address(self) -> tuple[str, int]:
        return self._host, self._port

    def is_connected(self) -> bool:
        try:
            with socket.create_connection((self._host, self._port), timeout=self._timeout):
                return True
        except OSError as e:
            logger.debug("Collector unreachable", host=self._host, port=self._port, error=str(e))
            return False


class StaticConnectivityProbe:
    """Probe with a fixed answer, for hosts that track connectivity themselves.

    Example:
        probe = StaticConnectivityProbe(connected=False)
        network_monitor.on_change(lambda online: probe.set_connected(online))
    """

    def __init__(self, connected: bool = True) -> None:
        self._connected = connected

    def set_connected(self, connected: bool) -> None:
        self._connected = connected

    def is_connected(self) -> bool:
        return self._connected
