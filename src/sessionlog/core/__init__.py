"""Core infrastructure: configuration and structured logging."""

from sessionlog.core.config import SessionLogSettings, load_settings
from sessionlog.core.logging import configure_logging

__all__ = [
    "SessionLogSettings",
    "configure_logging",
    "load_settings",
]
