"""Environment adapters: context metadata and connectivity probes."""

from sessionlog.environment.connectivity import SocketConnectivityProbe, StaticConnectivityProbe
from sessionlog.environment.context import (
    UNKNOWN,
    EnvironmentContextProvider,
    current_language,
    format_utc_offset,
    read_dmi_device_info,
)

__all__ = [
    "UNKNOWN",
    "EnvironmentContextProvider",
    "SocketConnectivityProbe",
    "StaticConnectivityProbe",
    "current_language",
    "format_utc_offset",
    "read_dmi_device_info",
]
