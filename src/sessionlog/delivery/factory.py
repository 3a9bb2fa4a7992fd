"""Transport lookup by name.

Settings select a transport by name (``transport``) and hand it
``transport_options`` plus the collector endpoint. The name -> class
registry is built from the ``sessionlog_get_transports`` hook: the
built-ins (http, console) always register, and callers may pass extra
plugin objects.

Each transport class declares its registry name as a class attribute::

    class QueueTransport:
        _name = "queue"

Usage:
    from sessionlog.delivery.factory import create_transport

    transport = create_transport("http", {"endpoint": settings.server_url})
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pluggy
import structlog

from sessionlog.contracts.errors import TransportConfigurationError
from sessionlog.delivery.hookspecs import PROJECT_NAME, SessionLogTransportSpec
from sessionlog.delivery.protocols import TransportProtocol
from sessionlog.delivery.transports import BuiltinTransportsPlugin

logger = structlog.get_logger(__name__)


def _transport_name(transport_class: type[TransportProtocol]) -> str:
    name = vars(transport_class).get("_name")
    if not isinstance(name, str) or not name:
        raise TransportConfigurationError(
            transport_class.__name__,
            "Transport classes must declare a non-empty string _name",
        )
    return name


def discover_transports(
    transport_plugins: Iterable[Any] = (),
) -> dict[str, type[TransportProtocol]]:
    """Build the name -> class registry from the built-ins and extra plugins.

    Raises:
        TransportConfigurationError: If a plugin implements an unknown hook,
            its hook fails, a class has no _name, or two transports share a
            name.
    """
    plugin_manager = pluggy.PluginManager(PROJECT_NAME)
    plugin_manager.add_hookspecs(SessionLogTransportSpec)

    for plugin in [BuiltinTransportsPlugin(), *transport_plugins]:
        plugin_manager.register(plugin)
        try:
            plugin_manager.check_pending()
        except pluggy.PluginValidationError as e:
            raise TransportConfigurationError(
                "transport_plugins",
                f"Invalid transport plugin {type(plugin).__name__}: {e}",
            ) from e

    registry: dict[str, type[TransportProtocol]] = {}
    for hook_impl in plugin_manager.hook.sessionlog_get_transports.get_hookimpls():
        try:
            transport_classes = hook_impl.function()
        except Exception as e:
            raise TransportConfigurationError(
                "transport_plugins",
                f"Transport plugin {type(hook_impl.plugin).__name__} failed: {e}",
            ) from e

        for transport_class in transport_classes:
            name = _transport_name(transport_class)
            if name in registry:
                raise TransportConfigurationError(
                    name,
                    f"Duplicate transport name '{name}': "
                    f"{registry[name].__name__} and {transport_class.__name__}",
                )
            registry[name] = transport_class

    return registry


def create_transport(
    name: str,
    options: dict[str, Any],
    *,
    transport_plugins: Iterable[Any] = (),
) -> TransportProtocol:
    """Instantiate and configure the transport registered under ``name``.

    Raises:
        TransportConfigurationError: If the name is unknown or the transport
            rejects its options.
    """
    registry = discover_transports(transport_plugins)
    try:
        transport_class = registry[name]
    except KeyError:
        raise TransportConfigurationError(
            name,
            f"Unknown transport. Available transports: {sorted(registry)}",
        ) from None

    transport = transport_class()
    transport.configure(options)
    logger.debug("Transport configured", transport=name, option_keys=sorted(options))
    return transport
