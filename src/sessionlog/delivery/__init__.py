"""Delivery pipeline: orchestrator, scheduler, spill store, transports.

Components:
- orchestrator: DeliveryOrchestrator (memory drain + backlog recovery)
- scheduler: FlushScheduler (recurring tick)
- store: FileSpillStore (durable spill files)
- transports: HttpTransport, ConsoleTransport
- protocols: structural interfaces for every collaborator
- hookspecs/factory: pluggy-based transport discovery
"""

from sessionlog.delivery.factory import create_transport, discover_transports
from sessionlog.delivery.orchestrator import DeliveryOrchestrator, DeliveryOutcome, DrainResult, RecoveryResult
from sessionlog.delivery.protocols import (
    ConnectivityProbeProtocol,
    ContextProviderProtocol,
    SpillStoreProtocol,
    TransportProtocol,
)
from sessionlog.delivery.scheduler import FlushScheduler
from sessionlog.delivery.store import FileSpillStore
from sessionlog.delivery.transports import ConsoleTransport, HttpTransport

__all__ = [
    "ConnectivityProbeProtocol",
    "ConsoleTransport",
    "ContextProviderProtocol",
    "DeliveryOrchestrator",
    "DeliveryOutcome",
    "DrainResult",
    "FileSpillStore",
    "FlushScheduler",
    "HttpTransport",
    "RecoveryResult",
    "SpillStoreProtocol",
    "TransportProtocol",
    "create_transport",
    "discover_transports",
]
