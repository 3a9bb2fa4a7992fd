"""Console transport for local debugging.

Writes each batch envelope to stdout or stderr instead of posting it.
"""

from __future__ import annotations

import json
import sys
from typing import Any, Literal, TextIO, TypeGuard

import structlog

from sessionlog.contracts.errors import TransportConfigurationError, TransportError

logger = structlog.get_logger(__name__)


def _is_valid_format(v: str) -> TypeGuard[Literal["json", "pretty"]]:
    return v in {"json", "pretty"}


def _is_valid_output(v: str) -> TypeGuard[Literal["stdout", "stderr"]]:
    return v in {"stdout", "stderr"}


class ConsoleTransport:
    """Print batches to the console.

    Supports two output formats:
    - json: One compact JSON object per line (default)
    - pretty: Indented JSON

    Configuration options:
        format: "json" (default) or "pretty"
        output: "stdout" (default) or "stderr"

    Other options (such as ``endpoint``) are ignored.
    """

    _name = "console"

    _VALID_FORMATS: frozenset[str] = frozenset({"json", "pretty"})
    _VALID_OUTPUTS: frozenset[str] = frozenset({"stdout", "stderr"})

    def __init__(self) -> None:
        self._format: Literal["json", "pretty"] = "json"
        self._output: Literal["stdout", "stderr"] = "stdout"
        self._stream: TextIO = sys.stdout

    @property
    def name(self) -> str:
        return self._name

    def configure(self, config: dict[str, Any]) -> None:
        """Configure format and output stream.

        Raises:
            TransportConfigurationError: If configuration values are invalid
        """
        format_value = config.get("format", "json")
        if not isinstance(format_value, str):
            raise TransportConfigurationError(
                self._name,
                f"'format' must be a string, got {type(format_value).__name__}",
            )
        if _is_valid_format(format_value):
            self._format = format_value
        else:
            raise TransportConfigurationError(
                self._name,
                f"Invalid format '{format_value}'. Must be one of: {', '.join(sorted(self._VALID_FORMATS))}",
            )

        output_value = config.get("output", "stdout")
        if not isinstance(output_value, str):
            raise TransportConfigurationError(
                self._name,
                f"'output' must be a string, got {type(output_value).__name__}",
            )
        if _is_valid_output(output_value):
            self._output = output_value
        else:
            raise TransportConfigurationError(
                self._name,
                f"Invalid output '{output_value}'. Must be one of: {', '.join(sorted(self._VALID_OUTPUTS))}",
            )
        self._stream = sys.stdout if self._output == "stdout" else sys.stderr

        logger.debug("Console transport configured", format=self._format, output=self._output)

    def send(self, payload: str) -> None:
        """Write one batch to the configured stream.

        Raises:
            TransportError: If the payload is not JSON or the stream fails
        """
        try:
            if self._format == "pretty":
                line = json.dumps(json.loads(payload), indent=2)
            else:
                line = payload
            print(line, file=self._stream, flush=True)
        except (ValueError, OSError) as e:
            raise TransportError(self._output, str(e)) from e

    def close(self) -> None:
        """No-op: the console transport does not own stdout/stderr."""
        pass
