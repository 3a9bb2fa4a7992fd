"""
Configuration schema and loading for sessionlog.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import platform
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

# ${VAR} or ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def default_storage_dir() -> Path:
    return Path.home() / ".sessionlog" / "spill"


def default_os_label() -> str:
    label = f"{platform.system()} {platform.release()}".strip()
    return label or "unknown"


class SessionLogSettings(BaseModel):
    """Settings for one registered session logger.

    Only ``server_url`` is required. Interval defaults match the
    registration API: the first flush is deferred 30 seconds to stay out
    of application startup, then repeats every 60 seconds.

    Example YAML:
        server_url: https://collector.example.com/logs
        debug_enabled: true
        recheck_interval_seconds: 120
        storage_dir: /var/lib/myapp/spill
    """

    model_config = {"frozen": True, "extra": "forbid"}

    server_url: str = Field(description="Collector endpoint batches are POSTed to")
    debug_enabled: bool = Field(default=False, description="Honor debug/info/warning calls")
    defer_run_seconds: float = Field(default=30, ge=0, description="Delay before the first flush tick")
    recheck_interval_seconds: float = Field(default=60, gt=0, description="Period between flush ticks")
    transport: str = Field(default="http", description="Name of the transport plugin")
    transport_options: dict[str, Any] = Field(default_factory=dict, description="Transport-specific options")
    storage_dir: Path = Field(default_factory=default_storage_dir, description="Directory for spill files")
    spill_prefix: str = Field(default="logs", min_length=1, description="Name prefix identifying spill files")
    session_file: Path | None = Field(
        default=None,
        description="JSON file persisting the session slot across termination (None keeps it in memory)",
    )
    os_label: str = Field(default_factory=default_os_label, description="Operating system label sent in context")
    app_version: str | None = Field(default=None, description="Application version sent in context")
    page_history_limit: int | None = Field(
        default=None,
        gt=0,
        description="Keep only the most recent N page events (None keeps all)",
    )
    max_workers: int = Field(default=4, gt=0, description="Worker threads for transport and storage I/O")

    @field_validator("server_url")
    @classmethod
    def validate_server_url(cls, v: str) -> str:
        """Reject blank collector URLs."""
        if not v.strip():
            raise ValueError("server_url must not be empty")
        return v.strip()

    @field_validator("spill_prefix")
    @classmethod
    def validate_spill_prefix(cls, v: str) -> str:
        """Spill prefix becomes part of a file name; no path separators or hidden names."""
        if "/" in v or "\\" in v or v.startswith("."):
            raise ValueError(f"spill_prefix must be a plain file name prefix, got {v!r}")
        return v


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values.

    Args:
        config: Configuration dict (may contain nested structures)

    Returns:
        New dict with environment variables expanded
    """
    import os

    def _expand_string(value: str) -> str:
        def replacer(match: re.Match[str]) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            if match.group(2) is not None:
                return match.group(2)
            # No env var and no default - keep the placeholder so validation reports it
            return match.group(0)

        return _ENV_VAR_PATTERN.sub(replacer, value)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _expand_string(value)
        if isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        if isinstance(value, list):
            return [_expand_value(v) for v in value]
        return value

    return {k: _expand_value(v) for k, v in config.items()}


def load_settings(config_path: Path) -> SessionLogSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (SESSIONLOG_*) - highest priority
    2. Config file
    3. Defaults from Pydantic schema - lowest priority

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated SessionLogSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="SESSIONLOG",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; filter out its own bookkeeping keys
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config = _expand_env_vars(raw_config)

    return SessionLogSettings(**raw_config)
