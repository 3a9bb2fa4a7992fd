"""Diagnostic logging for sessionlog itself.

The pipeline never raises into the host: transport failures, spill
errors, and lifecycle problems surface only as log records. Every module
logs through ``structlog.get_logger(__name__)``; configure_logging() is
optional and only needed when the host wants sessionlog's records rendered
(the CLI calls it).

Records from structlog and from stdlib loggers (httpx, the host's own)
share one processor chain via ProcessorFormatter, so both render the same
way. Each sessionlog record is tagged with the pipeline component that
emitted it (``engine``, ``delivery``, ``lifecycle``, ...).
"""

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.stdlib import ProcessorFormatter

_PACKAGE = "sessionlog"

# HTTP client internals log every connection at DEBUG
_NOISY_LOGGERS: tuple[str, ...] = (
    "httpx",
    "httpcore",
)


def _add_component(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Tag sessionlog records with their subpackage, e.g. ``delivery``."""
    name = event_dict.get("logger")
    if isinstance(name, str) and name.startswith(f"{_PACKAGE}."):
        event_dict["component"] = name.split(".")[1]
    return event_dict


def _drop_formatter_bookkeeping(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """ProcessorFormatter always injects _record and _from_structlog."""
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Route sessionlog (and stdlib) records to one stream handler.

    Args:
        json_output: Render one JSON object per record instead of the
            human-readable console format.
        level: Root log level name (DEBUG, INFO, WARNING, ERROR).
        stream: Destination, stderr by default so diagnostics never mix
            with the console transport on stdout.
    """
    log_level = getattr(logging, level.upper())
    target = stream if stream is not None else sys.stderr

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_component,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]

    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer()
        final_processors: list[Any] = [
            _drop_formatter_bookkeeping,
            structlog.processors.format_exc_info,
            renderer,
        ]
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=target.isatty())
        final_processors = [_drop_formatter_bookkeeping, renderer]

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguration (CLI --verbose, tests) must reach module-level loggers
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(target)
    handler.setFormatter(ProcessorFormatter(processors=final_processors, foreign_pre_chain=shared_processors))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    # Never less restrictive than the root level
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(log_level, logging.WARNING))
