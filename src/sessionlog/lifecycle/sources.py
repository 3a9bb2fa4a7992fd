"""Lifecycle event sources and session stores the bridge can attach to.

LifecycleSourceProtocol is what the LifecycleBridge consumes. Hosts with
their own suspend/resume machinery adapt it to this protocol; hosts
without one drive a LifecycleEventSource directly:

    source = LifecycleEventSource()
    logger = register_logging(url, lifecycle_source=source)
    ...
    source.emit(Suspending())

JsonFileSessionStore is a MutableMapping persisted to disk, for hosts
that have no session-state slot of their own.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
import threading
from collections.abc import Callable, Iterator, Mapping, MutableMapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import structlog

from sessionlog.contracts.lifecycle import LifecycleEvent

logger = structlog.get_logger(__name__)

LifecycleListener = Callable[[LifecycleEvent], None]


@runtime_checkable
class LifecycleSourceProtocol(Protocol):
    """Subscribe/unsubscribe capability over host lifecycle notifications."""

    def subscribe(self, listener: LifecycleListener) -> None:
        ...

    def unsubscribe(self, listener: LifecycleListener) -> None:
        ...


class LifecycleEventSource:
    """Simple synchronous lifecycle publisher.

    Listeners are called in subscription order on the emitting thread. A
    listener that raises is logged and skipped; the remaining listeners
    still receive the event and emit() never raises.

    Example:
        source = LifecycleEventSource()
        source.subscribe(bridge.handle)
        source.emit(Resuming())
    """

    def __init__(self) -> None:
        self._listeners: list[LifecycleListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: LifecycleListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: LifecycleListener) -> None:
        """Remove a listener. Unknown listeners are ignored."""
        with self._lock:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, event: LifecycleEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    "Lifecycle listener failed",
                    event_type=type(event).__name__,
                    error=str(e),
                )


class JsonFileSessionStore(MutableMapping[str, Any]):
    """Session-persistence slot backed by a JSON file.

    The whole mapping is rewritten atomically (temp file + rename) on every
    change. A missing file starts empty; a corrupt file is logged and
    treated as empty so a bad snapshot can never block startup.

    Values must be JSON-serializable.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._data: dict[str, Any] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.warning("Cannot read session store, starting empty", path=str(self._path), error=str(e))
            return {}
        try:
            data = json.loads(text)
        except ValueError as e:
            logger.warning("Corrupt session store, starting empty", path=str(self._path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning("Session store is not a JSON object, starting empty", path=str(self._path))
            return {}
        return data

    def _save_locked(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._data, handle)
            os.replace(tmp_name, self._path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._save_locked()

    def __delitem__(self, key: str) -> None:
        with self._lock:
            del self._data[key]
            self._save_locked()

    def __iter__(self) -> Iterator[str]:
        return iter(dict(self._data))

    def __len__(self) -> int:
        return len(self._data)

    def update(self, other: Mapping[str, Any] = (), /, **kwargs: Any) -> None:  # type: ignore[override]
        """Apply all changes with a single write."""
        with self._lock:
            self._data.update(other, **kwargs)
            self._save_locked()
