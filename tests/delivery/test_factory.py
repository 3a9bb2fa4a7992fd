# tests/delivery/test_factory.py
"""Tests for transport discovery and creation via pluggy."""

import pytest

from sessionlog.contracts.errors import TransportConfigurationError
from sessionlog.delivery.factory import create_transport, discover_transports
from sessionlog.delivery.hookspecs import hookimpl
from sessionlog.delivery.transports.console import ConsoleTransport
from sessionlog.delivery.transports.http import HttpTransport
from tests.fixtures import RecordingTransport


class _MemoryTransport(RecordingTransport):
    _name = "memory"

    def __init__(self) -> None:
        super().__init__(name="memory")


class _NamelessTransport(RecordingTransport):
    def __init__(self) -> None:
        super().__init__(name="nameless")


class _MemoryPlugin:
    @hookimpl
    def sessionlog_get_transports(self) -> list[type]:
        return [_MemoryTransport]


class _DuplicatePlugin:
    @hookimpl
    def sessionlog_get_transports(self) -> list[type]:
        return [HttpTransport]


class _NamelessPlugin:
    @hookimpl
    def sessionlog_get_transports(self) -> list[type]:
        return [_NamelessTransport]


class _RaisingPlugin:
    @hookimpl
    def sessionlog_get_transports(self) -> list[type]:
        raise RuntimeError("plugin broke")


class _UnknownHookPlugin:
    @hookimpl
    def sessionlog_get_exporters(self) -> list[type]:
        return []


class TestDiscoverTransports:
    def test_builtins_are_registered(self) -> None:
        registry = discover_transports()
        assert registry["http"] is HttpTransport
        assert registry["console"] is ConsoleTransport

    def test_plugin_transports_are_added(self) -> None:
        registry = discover_transports([_MemoryPlugin()])
        assert registry["memory"] is _MemoryTransport

    def test_duplicate_name_rejected(self) -> None:
        with pytest.raises(TransportConfigurationError, match="Duplicate transport name 'http'"):
            discover_transports([_DuplicatePlugin()])

    def test_transport_without_name_rejected(self) -> None:
        with pytest.raises(TransportConfigurationError, match="non-empty string _name"):
            discover_transports([_NamelessPlugin()])

    def test_raising_plugin_is_wrapped(self) -> None:
        with pytest.raises(TransportConfigurationError, match="plugin broke"):
            discover_transports([_RaisingPlugin()])

    def test_hook_without_spec_rejected(self) -> None:
        with pytest.raises(TransportConfigurationError, match="Invalid transport plugin"):
            discover_transports([_UnknownHookPlugin()])


class TestCreateTransport:
    def test_creates_and_configures(self) -> None:
        transport = create_transport("memory", {"endpoint": "x"}, transport_plugins=[_MemoryPlugin()])
        assert isinstance(transport, _MemoryTransport)
        assert transport.config == {"endpoint": "x"}

    def test_creates_builtin_http(self) -> None:
        transport = create_transport("http", {"endpoint": "https://collector.example.com/logs"})
        try:
            assert isinstance(transport, HttpTransport)
            assert transport.endpoint == "https://collector.example.com/logs"
        finally:
            transport.close()

    def test_unknown_name_lists_available(self) -> None:
        with pytest.raises(TransportConfigurationError) as exc_info:
            create_transport("carrier-pigeon", {})
        assert exc_info.value.transport_name == "carrier-pigeon"
        assert "console" in exc_info.value.message
        assert "http" in exc_info.value.message

    def test_configuration_errors_propagate(self) -> None:
        with pytest.raises(TransportConfigurationError, match="endpoint"):
            create_transport("http", {})
