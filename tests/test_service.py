# tests/test_service.py
"""Tests for registration and the end-to-end recording pipeline.

All collaborators are in-memory doubles and the scheduler is deferred
far into the future, so each test drives ticks explicitly via flush().
"""

from collections.abc import Iterator
from typing import Any

import pytest

from sessionlog import (
    Batch,
    RelaunchedWithSession,
    SessionLogConfigurationError,
    SessionLogger,
    Severity,
    Suspending,
    register_logging,
)
from sessionlog.contracts.errors import TransportConfigurationError
from sessionlog.core.config import SessionLogSettings
from sessionlog.environment.connectivity import StaticConnectivityProbe
from sessionlog.lifecycle.sources import LifecycleEventSource
from tests.fixtures import FixedContextProvider, FrozenClock, MemorySpillStore, RecordingTransport

SERVER_URL = "https://collector.example.com/logs"


class _Pipeline:
    def __init__(self) -> None:
        self.transport = RecordingTransport()
        self.store = MemorySpillStore()
        self.probe = StaticConnectivityProbe(connected=True)
        self.source = LifecycleEventSource()
        self.session: dict[str, Any] = {}

    def register(self, **kwargs: Any) -> SessionLogger:
        return register_logging(
            SERVER_URL,
            kwargs.pop("debug_enabled", True),
            3600,
            3600,
            lifecycle_source=self.source,
            session_store=self.session,
            context_provider=FixedContextProvider(),
            connectivity_probe=self.probe,
            spill_store=self.store,
            transport=self.transport,
            clock=FrozenClock(),
            **kwargs,
        )


@pytest.fixture
def pipeline() -> _Pipeline:
    return _Pipeline()


@pytest.fixture
def session_logger(pipeline: _Pipeline) -> Iterator[SessionLogger]:
    logger = pipeline.register()
    yield logger
    logger.close()


def _sent_batches(transport: RecordingTransport) -> list[Batch]:
    return [Batch.from_json(payload) for payload in transport.sent]


def _wait_for_io(logger: SessionLogger) -> None:
    assert logger._orchestrator is not None
    logger._orchestrator.close(wait=True)


class TestRegisterLogging:
    @pytest.mark.parametrize("url", [None, "", "   "])
    def test_missing_server_url(self, url: str | None) -> None:
        with pytest.raises(SessionLogConfigurationError, match="logging server not defined"):
            register_logging(url)

    def test_invalid_settings_are_configuration_errors(self) -> None:
        with pytest.raises(SessionLogConfigurationError, match="invalid settings"):
            register_logging(SERVER_URL, transport=RecordingTransport(), recheck_interval_seconds=-5)

    @pytest.mark.parametrize("unset", [None, 0])
    def test_unset_intervals_use_defaults(self, pipeline: _Pipeline, unset: float | None) -> None:
        logger = register_logging(
            SERVER_URL,
            defer_run_seconds=unset,
            recheck_interval_seconds=unset,
            transport=pipeline.transport,
            connectivity_probe=pipeline.probe,
            spill_store=pipeline.store,
            context_provider=FixedContextProvider(),
        )
        try:
            assert logger.settings.defer_run_seconds == 30
            assert logger.settings.recheck_interval_seconds == 60
            assert logger.registered
        finally:
            logger.close()

    def test_unknown_transport_fails_synchronously(self) -> None:
        settings = SessionLogSettings(server_url=SERVER_URL, transport="carrier-pigeon")
        logger = SessionLogger(settings, spill_store=MemorySpillStore())
        with pytest.raises(TransportConfigurationError, match="Unknown transport"):
            logger.register()
        assert not logger.registered

    def test_extra_settings_are_applied(self, pipeline: _Pipeline) -> None:
        logger = pipeline.register(page_history_limit=1)
        try:
            logger.page("a")
            logger.page("b")
            assert logger.state is not None
            assert [p.page for p in logger.state.buffer.snapshot().pages] == ["b"]
        finally:
            logger.close()


class TestPipeline:
    def test_error_is_delivered_on_flush(self, session_logger: SessionLogger, pipeline: _Pipeline) -> None:
        session_logger.page("home")
        session_logger.method("load_items")
        session_logger.error("Failed to load items", {"detail": {"message": "HTTP 500"}})

        assert session_logger.flush() is True
        _wait_for_io(session_logger)

        [batch] = _sent_batches(pipeline.transport)
        assert batch.level is Severity.ERROR
        assert batch.methodtrace == "load_items"
        assert batch.log[0].message == "HTTP 500"
        assert batch.log[0].description == "Failed to load items"

    def test_escalation_and_reset(self, session_logger: SessionLogger) -> None:
        for call in (session_logger.info, session_logger.debug, session_logger.error, session_logger.warning):
            call("x")
        state = session_logger.state
        assert state is not None
        assert state.buffer.level is Severity.ERROR

        session_logger.flush()
        assert state.buffer.level is Severity.DEBUG

    def test_page_drains_pending_logs(self, session_logger: SessionLogger, pipeline: _Pipeline) -> None:
        session_logger.error("before navigation")
        session_logger.page("next")
        _wait_for_io(session_logger)
        assert len(pipeline.transport.sent) == 1

    def test_fatal_drains_immediately(self, session_logger: SessionLogger, pipeline: _Pipeline) -> None:
        session_logger.fatal(RuntimeError("out of memory"))
        _wait_for_io(session_logger)
        [batch] = _sent_batches(pipeline.transport)
        assert batch.level is Severity.CRASH

    def test_offline_spill_then_recovery(self, session_logger: SessionLogger, pipeline: _Pipeline) -> None:
        pipeline.probe.set_connected(False)
        session_logger.error("offline")
        assert session_logger._orchestrator is not None
        spilled = session_logger._orchestrator.drain_memory()
        assert spilled is not None
        assert spilled.future.result(timeout=5).spill_file == "logs.txt"

        pipeline.probe.set_connected(True)
        session_logger.flush()
        _wait_for_io(session_logger)

        [batch] = _sent_batches(pipeline.transport)
        assert batch.log[0].description == "offline"
        assert pipeline.store.files == {}

    def test_suspend_and_relaunch(self, pipeline: _Pipeline) -> None:
        first = pipeline.register()
        first.page("home")
        pipeline.source.emit(Suspending())
        first.close()

        second = pipeline.register()
        try:
            pipeline.source.emit(RelaunchedWithSession())
            assert second.state is not None
            pages = [p.page for p in second.state.buffer.snapshot().pages]
            assert pages == ["home", "suspending"]
        finally:
            second.close()


class TestRegistrationLifecycle:
    def test_unregister_stops_recording(self, session_logger: SessionLogger) -> None:
        session_logger.unregister()
        session_logger.unregister()
        session_logger.error("ignored")
        session_logger.page("ignored")

        assert not session_logger.registered
        assert session_logger.state is not None
        assert session_logger.state.buffer.snapshot().is_empty
        assert session_logger.flush() is False

    def test_unregister_unsubscribes_lifecycle(self, session_logger: SessionLogger, pipeline: _Pipeline) -> None:
        session_logger.unregister()
        assert pipeline.source.listener_count == 0

    def test_reregister_starts_fresh_state(self, session_logger: SessionLogger) -> None:
        session_logger.error("first")
        first_state = session_logger.state
        session_logger.unregister()

        session_logger.register()

        assert session_logger.state is not first_state
        assert session_logger.state is not None
        assert len(session_logger.state.buffer) == 0

    def test_register_twice_is_noop(self, session_logger: SessionLogger) -> None:
        state = session_logger.state
        assert session_logger.register() is session_logger
        assert session_logger.state is state

    def test_calls_before_register_are_noops(self) -> None:
        logger = SessionLogger(SessionLogSettings(server_url=SERVER_URL), transport=RecordingTransport())
        logger.page("home")
        logger.error("x")
        assert logger.state is None
        assert logger.flush() is False

    def test_context_manager_closes(self, pipeline: _Pipeline) -> None:
        settings = SessionLogSettings(server_url=SERVER_URL, defer_run_seconds=3600)
        with SessionLogger(
            settings,
            transport=pipeline.transport,
            spill_store=pipeline.store,
            connectivity_probe=pipeline.probe,
            context_provider=FixedContextProvider(),
        ) as logger:
            assert logger.registered
            logger.error("inside")
        assert not logger.registered
        assert pipeline.transport.close_count == 0

    def test_injected_transport_is_not_closed(self, pipeline: _Pipeline) -> None:
        logger = pipeline.register()
        logger.close()
        assert pipeline.transport.close_count == 0
