"""Registration and recording API.

SessionLogger wires the pipeline together for one registration:

    SessionState ─┬─ SessionRecorder      (page/method/log calls)
                  ├─ LifecycleBridge      (suspend/resume/relaunch)
                  ├─ DeliveryOrchestrator (drain + backlog recovery)
                  └─ FlushScheduler       (recurring tick)

The session state is created by register() and disabled by unregister();
nothing is shared between registrations.

Usage:
    from sessionlog import register_logging

    log = register_logging("https://collector.example.com/logs", debug_enabled=True)
    log.page("home")
    log.method("load_items")
    log.error("Failed to load items", err)
    ...
    log.close()
"""

from __future__ import annotations

from collections.abc import Iterable, MutableMapping
from typing import Any

import structlog
from pydantic import ValidationError

from sessionlog.contracts.enums import Severity
from sessionlog.contracts.errors import SessionLogConfigurationError
from sessionlog.core.config import SessionLogSettings
from sessionlog.delivery.factory import create_transport
from sessionlog.delivery.orchestrator import DeliveryOrchestrator
from sessionlog.delivery.protocols import (
    ConnectivityProbeProtocol,
    ContextProviderProtocol,
    SpillStoreProtocol,
    TransportProtocol,
)
from sessionlog.delivery.scheduler import FlushScheduler
from sessionlog.delivery.store import FileSpillStore
from sessionlog.engine.recorder import SessionRecorder
from sessionlog.engine.state import Clock, SessionState
from sessionlog.environment.connectivity import SocketConnectivityProbe
from sessionlog.environment.context import EnvironmentContextProvider
from sessionlog.lifecycle.bridge import LifecycleBridge
from sessionlog.lifecycle.sources import JsonFileSessionStore, LifecycleEventSource, LifecycleSourceProtocol

logger = structlog.get_logger(__name__)


class SessionLogger:
    """One registered session logger.

    Collaborators not supplied are built from settings: an HTTP (or other
    configured) transport, a FileSpillStore in ``storage_dir``, a socket
    probe against the collector, an EnvironmentContextProvider, an
    in-process LifecycleEventSource, and a session store (JSON file when
    ``session_file`` is set, in-memory otherwise).

    Recording methods never raise. Before register() and after
    unregister() they are no-ops.
    """

    def __init__(
        self,
        settings: SessionLogSettings,
        *,
        lifecycle_source: LifecycleSourceProtocol | None = None,
        session_store: MutableMapping[str, Any] | None = None,
        context_provider: ContextProviderProtocol | None = None,
        connectivity_probe: ConnectivityProbeProtocol | None = None,
        spill_store: SpillStoreProtocol | None = None,
        transport: TransportProtocol | None = None,
        transport_plugins: Iterable[Any] = (),
        clock: Clock | None = None,
    ) -> None:
        self._settings = settings
        self._lifecycle_source = lifecycle_source or LifecycleEventSource()
        self._session_store = session_store
        self._context_provider = context_provider
        self._connectivity_probe = connectivity_probe
        self._spill_store = spill_store
        self._transport = transport
        self._owns_transport = transport is None
        self._transport_plugins = tuple(transport_plugins)
        self._clock = clock

        self._state: SessionState | None = None
        self._recorder: SessionRecorder | None = None
        self._orchestrator: DeliveryOrchestrator | None = None
        self._bridge: LifecycleBridge | None = None
        self._scheduler: FlushScheduler | None = None

    @property
    def settings(self) -> SessionLogSettings:
        return self._settings

    @property
    def state(self) -> SessionState | None:
        return self._state

    @property
    def lifecycle_source(self) -> LifecycleSourceProtocol:
        return self._lifecycle_source

    @property
    def registered(self) -> bool:
        return self._state is not None and self._state.enabled

    def register(self) -> SessionLogger:
        """Create the session state and start the pipeline.

        Raises:
            TransportConfigurationError: If the configured transport cannot be
                resolved or rejects its options.
        """
        if self.registered:
            logger.debug("Session logging already registered")
            return self

        # Components left over from a previous registration
        if self._scheduler is not None:
            self._scheduler.stop()
        if self._orchestrator is not None:
            self._orchestrator.close(wait=False)

        settings = self._settings
        if self._transport is None:
            self._transport = create_transport(
                settings.transport,
                {"endpoint": settings.server_url, **settings.transport_options},
                transport_plugins=self._transport_plugins,
            )
        if self._session_store is None:
            self._session_store = JsonFileSessionStore(settings.session_file) if settings.session_file else {}

        state = SessionState(
            debug_enabled=settings.debug_enabled,
            page_history_limit=settings.page_history_limit,
            clock=self._clock,
        )
        orchestrator = DeliveryOrchestrator(
            state,
            context_provider=self._context_provider
            or EnvironmentContextProvider(os_label=settings.os_label, version=settings.app_version),
            connectivity_probe=self._connectivity_probe or SocketConnectivityProbe.for_url(settings.server_url),
            spill_store=self._spill_store or FileSpillStore(settings.storage_dir, prefix=settings.spill_prefix),
            transport=self._transport,
            max_workers=settings.max_workers,
        )
        bridge = LifecycleBridge(state, self._lifecycle_source, self._session_store)
        scheduler = FlushScheduler(
            state,
            orchestrator,
            defer_seconds=settings.defer_run_seconds,
            interval_seconds=settings.recheck_interval_seconds,
        )

        self._state = state
        self._orchestrator = orchestrator
        self._recorder = SessionRecorder(state, drain=orchestrator.drain_memory)
        self._bridge = bridge
        self._scheduler = scheduler

        bridge.activate()
        scheduler.start()
        logger.info(
            "Session logging registered",
            server_url=settings.server_url,
            debug_enabled=settings.debug_enabled,
            transport=settings.transport,
        )
        return self

    def unregister(self) -> None:
        """Stop recording and unsubscribe from lifecycle events. Idempotent.

        The scheduler thread exits at its next tick; in-flight sends finish.
        """
        if not self.registered:
            return
        assert self._state is not None
        self._state.disable()
        if self._bridge is not None:
            self._bridge.deactivate()
        logger.info("Session logging unregistered")

    def close(self, timeout: float = 5.0) -> None:
        """Unregister, stop the scheduler, and wait for in-flight I/O."""
        self.unregister()
        if self._scheduler is not None:
            self._scheduler.stop(timeout=timeout)
        if self._orchestrator is not None:
            self._orchestrator.close(wait=True)
        if self._owns_transport and self._transport is not None:
            try:
                self._transport.close()
            except Exception as e:
                logger.warning("Transport close failed", error=str(e))
            self._transport = None

    def flush(self) -> bool:
        """Run one drain + recovery tick now.

        Returns:
            False if the logger is not registered, True otherwise.
        """
        if self._scheduler is None:
            return False
        return self._scheduler.run_tick()

    def __enter__(self) -> SessionLogger:
        return self.register()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # =========================================================================
    # Recording API
    # =========================================================================

    def page(self, page_id: str) -> None:
        if self._recorder is not None:
            self._recorder.page(page_id)

    def method(self, method_name: str) -> None:
        if self._recorder is not None:
            self._recorder.method(method_name)

    def fatal(self, err: Any) -> None:
        if self._recorder is not None:
            self._recorder.fatal(err)

    def error(self, description: str | None = None, err: Any = None) -> None:
        if self._recorder is not None:
            self._recorder.error(description, err)

    def warning(self, description: str | None = None, err: Any = None) -> None:
        if self._recorder is not None:
            self._recorder.warning(description, err)

    def info(self, description: str | None = None) -> None:
        if self._recorder is not None:
            self._recorder.info(description)

    def debug(self, description: str | None = None) -> None:
        if self._recorder is not None:
            self._recorder.debug(description)

    def log(self, level: Severity, description: str | None = None, err: Any = None) -> None:
        if self._recorder is not None:
            self._recorder.log(level, description, err)


def register_logging(
    server_url: str | None,
    debug_enabled: bool = False,
    defer_run_seconds: float | None = 30,
    recheck_interval_seconds: float | None = 60,
    *,
    lifecycle_source: LifecycleSourceProtocol | None = None,
    session_store: MutableMapping[str, Any] | None = None,
    context_provider: ContextProviderProtocol | None = None,
    connectivity_probe: ConnectivityProbeProtocol | None = None,
    spill_store: SpillStoreProtocol | None = None,
    transport: TransportProtocol | None = None,
    transport_plugins: Iterable[Any] = (),
    clock: Clock | None = None,
    **settings_overrides: Any,
) -> SessionLogger:
    """Build, register, and return a SessionLogger.

    Intervals passed as None or 0 fall back to their defaults (30s defer,
    60s recheck). Any other SessionLogSettings field can be given as a keyword,
    except ``transport``: here it is the transport instance. To pick a
    transport plugin by name, build SessionLogSettings and a SessionLogger
    directly.

    Raises:
        SessionLogConfigurationError: If server_url is missing/empty or the
            settings are invalid. Raised synchronously, before anything
            starts.
        TransportConfigurationError: If the transport cannot be configured.
    """
    if server_url is None or not str(server_url).strip():
        raise SessionLogConfigurationError("register_logging error: logging server not defined")

    fields: dict[str, Any] = {"server_url": server_url, "debug_enabled": debug_enabled, **settings_overrides}
    # 0 means "not supplied", like None
    if defer_run_seconds:
        fields["defer_run_seconds"] = defer_run_seconds
    if recheck_interval_seconds:
        fields["recheck_interval_seconds"] = recheck_interval_seconds
    try:
        settings = SessionLogSettings(**fields)
    except ValidationError as e:
        raise SessionLogConfigurationError(f"register_logging error: invalid settings: {e}") from e

    session_logger = SessionLogger(
        settings,
        lifecycle_source=lifecycle_source,
        session_store=session_store,
        context_provider=context_provider,
        connectivity_probe=connectivity_probe,
        spill_store=spill_store,
        transport=transport,
        transport_plugins=transport_plugins,
        clock=clock,
    )
    return session_logger.register()
