# tests/fixtures.py
"""Reusable test doubles for the delivery pipeline.

These provide:
1. RecordingTransport - In-memory transport that captures sent payloads
2. MemorySpillStore - Dict-backed spill store with per-operation failure injection
3. FixedContextProvider - Returns the same Context every time
4. FrozenClock - Controllable clock for SessionState
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta
from typing import Any

from sessionlog.contracts.errors import SpillStoreError, TransportError
from sessionlog.contracts.records import Context

DEFAULT_CONTEXT = Context(
    version="2.1.0",
    manufacturer="Contoso",
    model="Surface 9",
    os="Linux 6.1",
    lang="en-US",
    screen="1920x1080",
    orientation="landscape",
    timezone="2",
)


class RecordingTransport:
    """Transport that captures payloads for verification.

    Example:
        transport = RecordingTransport()
        ...
        assert len(transport.sent) == 1
        transport.fail = True  # every following send raises TransportError
    """

    def __init__(self, name: str = "recording") -> None:
        self._name = name
        self.sent: list[str] = []
        self.attempts = 0
        self.fail = False
        self.close_count = 0
        self.config: dict[str, Any] | None = None
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    def configure(self, config: dict[str, Any]) -> None:
        self.config = config

    def send(self, payload: str) -> None:
        with self._lock:
            self.attempts += 1
            if self.fail:
                raise TransportError("memory://collector", "simulated failure", status_code=503)
            self.sent.append(payload)

    def close(self) -> None:
        self.close_count += 1


class MemorySpillStore:
    """Spill store held in a dict, naming files like the file store does.

    Failures can be injected per file name (read/delete) or globally
    (write) to exercise the orchestrator's error paths.
    """

    def __init__(self, prefix: str = "logs") -> None:
        self.prefix = prefix
        self.files: dict[str, str] = {}
        self.fail_write = False
        self.fail_list = False
        self.fail_read: set[str] = set()
        self.fail_delete: set[str] = set()
        self._lock = threading.Lock()

    def write_spill(self, content: str) -> str:
        with self._lock:
            if self.fail_write:
                raise SpillStoreError("simulated write failure")
            name = f"{self.prefix}.txt"
            counter = 2
            while name in self.files:
                name = f"{self.prefix} ({counter}).txt"
                counter += 1
            self.files[name] = content
            return name

    def list_spills(self) -> list[str]:
        if self.fail_list:
            raise SpillStoreError("simulated list failure")
        with self._lock:
            return sorted(self.files)

    def read_spill(self, name: str) -> str:
        if name in self.fail_read:
            raise SpillStoreError("simulated read failure", name=name)
        with self._lock:
            return self.files[name]

    def delete_spill(self, name: str) -> None:
        if name in self.fail_delete:
            raise SpillStoreError("simulated delete failure", name=name)
        with self._lock:
            del self.files[name]


class FixedContextProvider:
    """Context provider returning a fixed Context, optionally failing."""

    def __init__(self, context: Context = DEFAULT_CONTEXT) -> None:
        self.context = context
        self.fail = False
        self.calls = 0

    def get_context(self) -> Context:
        self.calls += 1
        if self.fail:
            raise RuntimeError("context unavailable")
        return self.context


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 1, 15, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)
