"""Built-in transports.

Available transports:
- HttpTransport ("http"): POST batches to the collector
- ConsoleTransport ("console"): print batches for local debugging

Plugin registration:
    Transports are registered via the sessionlog_get_transports hook.
    BuiltinTransportsPlugin in this module registers the built-ins.
"""

from sessionlog.delivery.hookspecs import hookimpl
from sessionlog.delivery.transports.console import ConsoleTransport
from sessionlog.delivery.transports.http import HttpTransport


class BuiltinTransportsPlugin:
    """Plugin that registers built-in transports."""

    @hookimpl
    def sessionlog_get_transports(self) -> list[type]:
        return [HttpTransport, ConsoleTransport]


__all__ = [
    "BuiltinTransportsPlugin",
    "ConsoleTransport",
    "HttpTransport",
]
