"""Host lifecycle notifications consumed by the LifecycleBridge."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Suspending:
    """The host is about to suspend; it may be terminated afterwards."""


@dataclass(frozen=True, slots=True)
class Resuming:
    """The host resumed from suspension without being terminated."""


@dataclass(frozen=True, slots=True)
class RelaunchedWithSession:
    """The host was relaunched after being terminated while suspended.

    Attributes:
        session: The restored session-persistence slot, if the host hands it
            over with the notification. None means "read the configured
            session store instead".
    """

    session: Mapping[str, Any] | None = None


LifecycleEvent = Suspending | Resuming | RelaunchedWithSession
