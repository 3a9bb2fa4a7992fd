"""Raw error normalization.

Errors reach the recording API in several shapes: host error events that
wrap a ``detail`` payload, plain detail mappings, Python exceptions, or
arbitrary values. They are classified into one of three tagged shapes
and then flattened into the optional LogEntry fields by a single
function, normalize_error().

Shapes (most specific first):
- PromiseRejectionDetail: detail carrying ``errorMessage`` (+ ``errorLine``,
  ``errorUrl``), as produced for unhandled promise rejections
- WrappedErrorDetail: detail carrying a structured nested ``error`` with
  its own message/description/stack
- RawErrorOrDetail: an exception, or a detail with
  message/description/number/stack

Values matching none of these degrade to a best-effort message. Nothing
here raises on malformed input.
"""

from __future__ import annotations

import traceback
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

_SCALARS = (str, bytes, int, float, bool)

PROMISE_SOURCE = "promise"


def _get(obj: Any, name: str) -> Any:
    """Read a key from a mapping or an attribute from any other object."""
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _is_structured(value: Any) -> bool:
    return value is not None and not isinstance(value, _SCALARS)


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _exception_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _message_of(obj: Any) -> str | None:
    if isinstance(obj, BaseException):
        return _exception_message(obj)
    return _as_text(_get(obj, "message"))


def _stack_of(obj: Any) -> str | None:
    if isinstance(obj, BaseException) and obj.__traceback__ is not None:
        return "".join(traceback.format_exception(obj))
    return _as_text(_get(obj, "stack"))


@dataclass(frozen=True, slots=True)
class PromiseRejectionDetail:
    message: str
    line: int | None = None
    url: str | None = None
    promise: bool = False


@dataclass(frozen=True, slots=True)
class WrappedErrorDetail:
    message: str
    description: str | None = None
    stack: str | None = None
    promise: bool = False


@dataclass(frozen=True, slots=True)
class RawErrorOrDetail:
    message: str
    description: str | None = None
    number: int | None = None
    stack: str | None = None
    url: str | None = None
    promise: bool = False

    @classmethod
    def from_exception(cls, exc: BaseException) -> RawErrorOrDetail:
        """Use the innermost traceback frame for line number and file."""
        number = None
        url = None
        if exc.__traceback__ is not None:
            frames = traceback.extract_tb(exc.__traceback__)
            if frames:
                number = frames[-1].lineno
                url = frames[-1].filename
        return cls(
            message=_exception_message(exc),
            number=number,
            stack=_stack_of(exc),
            url=url,
        )


@dataclass(frozen=True, slots=True)
class UnmatchedError:
    message: str


ErrorShape = PromiseRejectionDetail | WrappedErrorDetail | RawErrorOrDetail | UnmatchedError


@dataclass(frozen=True, slots=True)
class ErrorFields:
    """The optional LogEntry fields contributed by an error."""

    message: str | None = None
    description: str | None = None
    source: str | None = None
    codeline: int | None = None
    source_url: str | None = None
    stacktrace: str | None = None


def _classify_detail(detail: Any) -> ErrorShape:
    promise = bool(_get(detail, "promise"))

    error_message = _as_text(_get(detail, "errorMessage"))
    if error_message is not None:
        return PromiseRejectionDetail(
            message=error_message,
            line=_as_int(_get(detail, "errorLine")),
            url=_as_text(_get(detail, "errorUrl")),
            promise=promise,
        )

    nested = _get(detail, "error")
    if _is_structured(nested):
        return WrappedErrorDetail(
            message=_message_of(nested) or "unknown",
            description=_as_text(_get(nested, "description")),
            stack=_stack_of(nested),
            promise=promise,
        )

    if isinstance(detail, BaseException):
        return RawErrorOrDetail.from_exception(detail)

    return RawErrorOrDetail(
        message=_message_of(detail) or _as_text(_get(detail, "exception")) or "unknown",
        description=_as_text(_get(detail, "description")),
        number=_as_int(_get(detail, "number")),
        stack=_stack_of(detail),
        promise=promise,
    )


def classify_error(err: Any) -> ErrorShape | None:
    """Resolve a raw error value to its tagged shape.

    Returns None when there is no error at all (None or an empty string).
    """
    if err is None or (isinstance(err, str | bytes) and not err):
        return None

    if isinstance(err, BaseException):
        return RawErrorOrDetail.from_exception(err)

    if not isinstance(err, _SCALARS):
        detail = _get(err, "detail")
        if _is_structured(detail):
            return _classify_detail(detail)
        if isinstance(err, Mapping):
            return _classify_detail(err)

    fallback = _as_text(_get(err, "message")) or _as_text(_get(err, "exception"))
    if fallback is None:
        fallback = err.decode("utf-8", "replace") if isinstance(err, bytes) else str(err)
    return UnmatchedError(message=fallback)


def normalize_error(err: Any) -> ErrorFields:
    """Flatten any raw error value into LogEntry fields.

    Example:
        >>> normalize_error({"detail": {"promise": True, "errorMessage": "x", "errorLine": 12}})
        ErrorFields(message='x', description=None, source='promise', codeline=12, source_url=None, stacktrace=None)
    """
    shape = classify_error(err)
    match shape:
        case None:
            return ErrorFields()
        case PromiseRejectionDetail():
            return ErrorFields(
                message=shape.message,
                source=PROMISE_SOURCE if shape.promise else None,
                codeline=shape.line,
                source_url=shape.url,
            )
        case WrappedErrorDetail():
            return ErrorFields(
                message=shape.message,
                description=shape.description,
                source=PROMISE_SOURCE if shape.promise else None,
                stacktrace=shape.stack,
            )
        case RawErrorOrDetail():
            return ErrorFields(
                message=shape.message,
                description=shape.description,
                source=PROMISE_SOURCE if shape.promise else None,
                codeline=shape.number,
                source_url=shape.url,
                stacktrace=shape.stack,
            )
        case UnmatchedError():
            return ErrorFields(message=shape.message)
