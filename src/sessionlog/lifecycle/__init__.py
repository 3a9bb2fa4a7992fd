"""Host lifecycle integration: bridge, event sources, session stores."""

from sessionlog.lifecycle.bridge import RESUMING_PAGE, SUSPENDING_PAGE, LifecycleBridge
from sessionlog.lifecycle.sources import (
    JsonFileSessionStore,
    LifecycleEventSource,
    LifecycleListener,
    LifecycleSourceProtocol,
)

__all__ = [
    "RESUMING_PAGE",
    "SUSPENDING_PAGE",
    "JsonFileSessionStore",
    "LifecycleBridge",
    "LifecycleEventSource",
    "LifecycleListener",
    "LifecycleSourceProtocol",
]
