"""Environment metadata attached to each batch.

Version, manufacturer, and model are resolved once and cached. Locale,
screen, orientation, and timezone offset can change while the application
runs (rotation, travel, settings changes) and are re-read for every
batch.

Detection itself is deliberately shallow: every value comes from an
injectable provider, and the defaults only use what the Python runtime
exposes portably.
"""

import locale
import threading
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from typing import TypeVar

import structlog

from sessionlog.contracts.enums import Orientation
from sessionlog.contracts.records import Context

logger = structlog.get_logger(__name__)

UNKNOWN = "unknown"

_DMI_DIR = Path("/sys/class/dmi/id")

T = TypeVar("T")


def read_dmi_device_info() -> tuple[str, str]:
    """Read (manufacturer, model) from Linux DMI data.

    Raises:
        OSError: If DMI data is unavailable (non-Linux, containers, ...)
    """
    manufacturer = (_DMI_DIR / "sys_vendor").read_text(encoding="utf-8").strip()
    model = (_DMI_DIR / "product_name").read_text(encoding="utf-8").strip()
    return manufacturer or UNKNOWN, model or UNKNOWN


def current_language() -> str:
    """Return the process locale as a BCP 47-style tag, e.g. ``en-US``."""
    language, _encoding = locale.getlocale()
    if not language or language in ("C", "POSIX"):
        return UNKNOWN
    return language.replace("_", "-")


def format_utc_offset(offset: timedelta | None) -> str:
    """Render a UTC offset in hours: ``"2"``, ``"-5"``, ``"5.5"``."""
    if offset is None:
        return "0"
    return f"{offset.total_seconds() / 3600:g}"


def current_utc_offset() -> timedelta | None:
    return datetime.now().astimezone().utcoffset()


class EnvironmentContextProvider:
    """Builds a Context for each batch.

    Args:
        os_label: Operating system label (static)
        version: Application version, or a callable returning it
        device_info: Callable returning (manufacturer, model); failures are
            replaced by "unknown"
        language: Callable returning the current locale tag
        screen: Callable returning the screen size as "WIDTHxHEIGHT"
        orientation: Callable returning the current Orientation
        utc_offset: Callable returning the current UTC offset

    Example:
        provider = EnvironmentContextProvider(
            os_label="Linux 6.1",
            version="1.4.0",
            screen=lambda: f"{window.width}x{window.height}",
        )
        context = provider.get_context()
    """

    def __init__(
        self,
        *,
        os_label: str,
        version: str | Callable[[], str] | None = None,
        device_info: Callable[[], tuple[str, str]] = read_dmi_device_info,
        language: Callable[[], str] = current_language,
        screen: Callable[[], str] | None = None,
        orientation: Callable[[], Orientation | str] | None = None,
        utc_offset: Callable[[], timedelta | None] = current_utc_offset,
    ) -> None:
        self._os_label = os_label
        self._version_source = version
        self._device_info = device_info
        self._language = language
        self._screen = screen
        self._orientation = orientation
        self._utc_offset = utc_offset

        self._lock = threading.Lock()
        self._static: tuple[str, str, str] | None = None

    def _resolve_static(self) -> tuple[str, str, str]:
        with self._lock:
            if self._static is None:
                if callable(self._version_source):
                    version = self._read("version", self._version_source, UNKNOWN)
                else:
                    version = self._version_source or UNKNOWN
                try:
                    manufacturer, model = self._device_info()
                except Exception as e:
                    logger.debug("Device info unavailable", error=str(e))
                    manufacturer, model = UNKNOWN, UNKNOWN
                self._static = (version, manufacturer, model)
            return self._static

    @staticmethod
    def _read(field: str, provider: Callable[[], T], default: T) -> T:
        try:
            return provider()
        except Exception as e:
            logger.debug("Context provider failed", field=field, error=str(e))
            return default

    def get_context(self) -> Context:
        version, manufacturer, model = self._resolve_static()

        screen = self._read("screen", self._screen, UNKNOWN) if self._screen is not None else UNKNOWN
        if self._orientation is not None:
            orientation = str(self._read("orientation", self._orientation, Orientation.UNKNOWN))
        else:
            orientation = str(Orientation.UNKNOWN)

        return Context(
            version=version,
            manufacturer=manufacturer,
            model=model,
            os=self._os_label,
            lang=self._read("lang", self._language, UNKNOWN),
            screen=screen,
            orientation=orientation,
            timezone=format_utc_offset(self._read("timezone", self._utc_offset, None)),
        )
