"""Enumerations shared across the sessionlog pipeline.

All enums use StrEnum so their wire value is the lower-case name that
the collector expects.
"""

from enum import StrEnum


class Severity(StrEnum):
    """Log entry severity, ordered from least to most severe.

    The session level reported with each batch is the highest Severity
    recorded since the previous drain. Ordering is by rank, not by the
    string value.
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRASH = "crash"

    @property
    def rank(self) -> int:
        """Numeric rank used for escalation (debug=1 .. crash=5)."""
        return _SEVERITY_RANKS[self]

    def outranks(self, other: "Severity") -> bool:
        """Return True if this severity is strictly more severe than other."""
        return self.rank > other.rank


_SEVERITY_RANKS: dict[Severity, int] = {
    Severity.DEBUG: 1,
    Severity.INFO: 2,
    Severity.WARNING: 3,
    Severity.ERROR: 4,
    Severity.CRASH: 5,
}


class Orientation(StrEnum):
    """Display orientation reported in the batch context."""

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    LANDSCAPE_FLIPPED = "landscapeFlipped"
    PORTRAIT_FLIPPED = "portraitFlipped"
    UNKNOWN = "unknown"


class DeliveryRoute(StrEnum):
    """Where a drained batch was sent."""

    TRANSPORT = "transport"
    SPILL = "spill"
