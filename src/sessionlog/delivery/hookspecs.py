"""pluggy hook specifications for outbound transports.

Transports implement these hooks to register themselves. The transport
factory calls them at registration time to build the name -> class
registry.

Usage (implementing a transport plugin):
    from sessionlog.delivery.hookspecs import hookimpl

    class MyTransportPlugin:
        @hookimpl
        def sessionlog_get_transports(self):
            return [MyTransport]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from sessionlog.delivery.protocols import TransportProtocol

PROJECT_NAME = "sessionlog"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class SessionLogTransportSpec:
    """Hook specifications for transport plugins."""

    @hookspec
    def sessionlog_get_transports(self) -> list[type["TransportProtocol"]]:  # type: ignore[empty-body]
        """Return transport classes.

        Returns:
            List of transport classes (not instances) that implement
            TransportProtocol
        """
