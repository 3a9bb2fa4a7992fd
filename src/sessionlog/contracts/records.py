"""Immutable records flowing through the session pipeline.

LogEntry, PageEvent, and the method trace are accumulated by the
SessionBuffer. At drain time a SessionSnapshot is paired with the current
Context to build a Batch, which is either posted to the collector or
spilled to local storage as JSON.

Wire keys follow the collector's envelope (camelCase where the collector
expects it, e.g. ``sourceUrl``). Optional fields that are unset are
omitted from the wire form rather than serialized as null.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from datetime import UTC, datetime
from typing import Any

from sessionlog.contracts.enums import Severity

TRACE_SEPARATOR = " => "

# Keys of the host session-persistence slot
SESSION_KEY_PAGES = "logPages"
SESSION_KEY_METHODS = "logMethods"
SESSION_KEY_LOGS = "logLogs"
SESSION_KEY_LEVEL = "logLevel"
SESSION_KEYS: tuple[str, ...] = (
    SESSION_KEY_PAGES,
    SESSION_KEY_METHODS,
    SESSION_KEY_LOGS,
    SESSION_KEY_LEVEL,
)


def format_timestamp(value: datetime | str) -> str:
    """Render a timestamp as ISO-8601 UTC with a trailing ``Z``.

    Strings are passed through untouched (they were restored from a store
    that did not preserve the datetime type).
    """
    if isinstance(value, str):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime | str:
    """Parse a wire timestamp, keeping the raw string if it is not ISO-8601."""
    if isinstance(value, datetime):
        return value
    text = str(value)
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return text


@dataclass(frozen=True, slots=True)
class LogEntry:
    """A single graded log, error, or crash record.

    Attributes:
        level: Severity the entry was recorded at
        time: When the entry was recorded
        message: Error message, when an error object accompanied the call
        description: Caller-supplied description (prefixed by the error's own
            description when it had one)
        source: Origin marker, ``"promise"`` for unhandled rejections
        codeline: Line number reported by the error
        source_url: Script/file the error originated from
        stacktrace: Stack trace text
    """

    level: Severity
    time: datetime | str
    message: str | None = None
    description: str | None = None
    source: str | None = None
    codeline: int | None = None
    source_url: str | None = None
    stacktrace: str | None = None

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "level": self.level.value,
            "time": format_timestamp(self.time),
        }
        optional = {
            "message": self.message,
            "description": self.description,
            "codeline": self.codeline,
            "sourceUrl": self.source_url,
            "stacktrace": self.stacktrace,
            "source": self.source,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> LogEntry:
        """Rebuild an entry from its wire form.

        Raises:
            ValueError: If ``level`` is missing or not a known Severity.
        """
        if "level" not in data:
            raise ValueError("log entry is missing 'level'")
        return cls(
            level=Severity(data["level"]),
            time=parse_timestamp(data.get("time", "")),
            message=data.get("message"),
            description=data.get("description"),
            source=data.get("source"),
            codeline=data.get("codeline"),
            source_url=data.get("sourceUrl"),
            stacktrace=data.get("stacktrace"),
        )


@dataclass(frozen=True, slots=True)
class PageEvent:
    """One navigation, or a synthetic ``suspending``/``resuming`` marker."""

    time: datetime | str
    page: str

    def trace_label(self) -> str:
        """Render as ``page[time]`` for the batch pagetrace.

        Uses the local time of day when the timestamp is a datetime,
        otherwise the raw value.
        """
        if isinstance(self.time, datetime):
            local = self.time.astimezone()
            return f"{self.page}[{local.strftime('%X').replace(' ', '')}]"
        return f"{self.page}[{self.time}]"

    def to_wire(self) -> dict[str, Any]:
        return {"time": format_timestamp(self.time), "page": self.page}

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> PageEvent:
        return cls(time=parse_timestamp(data.get("time", "")), page=str(data["page"]))


@dataclass(frozen=True, slots=True)
class Context:
    """Environment metadata attached to every batch."""

    version: str
    manufacturer: str
    model: str
    os: str
    lang: str
    screen: str
    orientation: str
    timezone: str

    def to_wire(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Point-in-time copy of the whole SessionBuffer.

    Used both as the source of a Batch at drain time and as the unit of
    lifecycle persistence (suspend writes it, relaunch replaces the live
    buffer with it).
    """

    pages: tuple[PageEvent, ...] = ()
    methods: tuple[str, ...] = ()
    logs: tuple[LogEntry, ...] = ()
    level: Severity = Severity.DEBUG

    @property
    def is_empty(self) -> bool:
        return not (self.pages or self.methods or self.logs)

    def to_session_state(self) -> dict[str, Any]:
        """Serialize into the four session-persistence keys (JSON-safe values)."""
        return {
            SESSION_KEY_PAGES: [page.to_wire() for page in self.pages],
            SESSION_KEY_METHODS: list(self.methods),
            SESSION_KEY_LOGS: [entry.to_wire() for entry in self.logs],
            SESSION_KEY_LEVEL: self.level.value,
        }

    @classmethod
    def from_session_state(cls, state: Mapping[str, Any] | None) -> SessionSnapshot | None:
        """Rebuild a snapshot from a session-persistence slot.

        Each key is restored independently when present. Returns None when
        the slot holds none of the keys (nothing was ever persisted).

        Raises:
            ValueError: If a persisted value cannot be parsed.
        """
        if not state or not any(state.get(key) for key in SESSION_KEYS):
            return None

        pages = tuple(
            item if isinstance(item, PageEvent) else PageEvent.from_wire(item)
            for item in state.get(SESSION_KEY_PAGES) or ()
        )
        methods = tuple(str(name) for name in state.get(SESSION_KEY_METHODS) or ())
        logs = tuple(
            item if isinstance(item, LogEntry) else LogEntry.from_wire(item)
            for item in state.get(SESSION_KEY_LOGS) or ()
        )
        raw_level = state.get(SESSION_KEY_LEVEL)
        level = Severity(raw_level) if raw_level else Severity.DEBUG
        return cls(pages=pages, methods=methods, logs=logs, level=level)


@dataclass(frozen=True, slots=True)
class Batch:
    """Delivery payload: one drained snapshot paired with its Context.

    Never retained by the buffer. Either posted to the collector or
    written to a spill file as JSON.
    """

    context: Context
    logtime: str
    level: Severity
    log: tuple[LogEntry, ...]
    pagetrace: str | None = None
    methodtrace: str | None = None

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot, context: Context, now: datetime) -> Batch:
        """Build a batch, folding page and method sequences into trace strings.

        Trace fields are omitted (None) when their sequence is empty.
        """
        pagetrace = TRACE_SEPARATOR.join(page.trace_label() for page in snapshot.pages) or None
        methodtrace = TRACE_SEPARATOR.join(snapshot.methods) or None
        local = now.astimezone()
        logtime = f"{local.strftime('%c')} [{format_timestamp(now)}]"
        return cls(
            context=context,
            logtime=logtime,
            level=snapshot.level,
            log=snapshot.logs,
            pagetrace=pagetrace,
            methodtrace=methodtrace,
        )

    def to_wire(self) -> dict[str, Any]:
        data = self.context.to_wire()
        data["logtime"] = self.logtime
        if self.pagetrace is not None:
            data["pagetrace"] = self.pagetrace
        if self.methodtrace is not None:
            data["methodtrace"] = self.methodtrace
        data["level"] = self.level.value
        data["log"] = [entry.to_wire() for entry in self.log]
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_wire())

    @classmethod
    def from_json(cls, text: str) -> Batch:
        """Parse a serialized batch (e.g. the content of a spill file).

        Raises:
            ValueError: If the text is not a valid batch envelope.
        """
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"batch payload must be a JSON object, got {type(data).__name__}")
        context_keys = [f.name for f in fields(Context)]
        try:
            context = Context(**{key: data[key] for key in context_keys})
            return cls(
                context=context,
                logtime=data["logtime"],
                level=Severity(data["level"]),
                log=tuple(LogEntry.from_wire(item) for item in data["log"]),
                pagetrace=data.get("pagetrace"),
                methodtrace=data.get("methodtrace"),
            )
        except KeyError as e:
            raise ValueError(f"batch payload is missing {e}") from e
