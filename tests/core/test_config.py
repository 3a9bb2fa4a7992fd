# tests/core/test_config.py
"""Tests for settings validation and Dynaconf loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from sessionlog.core.config import SessionLogSettings, _expand_env_vars, load_settings


class TestSessionLogSettings:
    def test_defaults(self) -> None:
        settings = SessionLogSettings(server_url="https://collector.example.com/logs")
        assert settings.debug_enabled is False
        assert settings.defer_run_seconds == 30
        assert settings.recheck_interval_seconds == 60
        assert settings.transport == "http"
        assert settings.spill_prefix == "logs"
        assert settings.session_file is None
        assert settings.page_history_limit is None

    def test_server_url_is_stripped(self) -> None:
        assert SessionLogSettings(server_url="  https://c/logs ").server_url == "https://c/logs"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"server_url": "   "},
            {"server_url": "https://c", "recheck_interval_seconds": 0},
            {"server_url": "https://c", "defer_run_seconds": -1},
            {"server_url": "https://c", "spill_prefix": "../logs"},
            {"server_url": "https://c", "spill_prefix": ".hidden"},
            {"server_url": "https://c", "page_history_limit": 0},
            {"server_url": "https://c", "unknown_field": True},
        ],
    )
    def test_invalid_settings_rejected(self, overrides: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            SessionLogSettings(**overrides)

    def test_settings_are_frozen(self) -> None:
        settings = SessionLogSettings(server_url="https://c")
        with pytest.raises(ValidationError):
            settings.debug_enabled = True  # type: ignore[misc]


class TestExpandEnvVars:
    def test_expands_nested_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COLLECTOR_TOKEN", "s3cret")
        expanded = _expand_env_vars(
            {"transport_options": {"headers": {"Authorization": "Bearer ${COLLECTOR_TOKEN}"}}, "list": ["${COLLECTOR_TOKEN}"]}
        )
        assert expanded["transport_options"]["headers"]["Authorization"] == "Bearer s3cret"
        assert expanded["list"] == ["s3cret"]

    def test_default_and_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SESSIONLOG_TEST_UNSET", raising=False)
        expanded = _expand_env_vars({"a": "${SESSIONLOG_TEST_UNSET:-fallback}", "b": "${SESSIONLOG_TEST_UNSET}"})
        assert expanded == {"a": "fallback", "b": "${SESSIONLOG_TEST_UNSET}"}


class TestLoadSettings:
    def test_loads_yaml(self, tmp_path: Path) -> None:
        config = tmp_path / "sessionlog.yaml"
        config.write_text(
            "server_url: https://collector.example.com/logs\n"
            "debug_enabled: true\n"
            "recheck_interval_seconds: 120\n"
            f"storage_dir: {tmp_path / 'spill'}\n",
            encoding="utf-8",
        )
        settings = load_settings(config)
        assert settings.server_url == "https://collector.example.com/logs"
        assert settings.debug_enabled is True
        assert settings.recheck_interval_seconds == 120
        assert settings.storage_dir == tmp_path / "spill"

    def test_environment_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config = tmp_path / "sessionlog.yaml"
        config.write_text("server_url: https://file.example.com/logs\n", encoding="utf-8")
        monkeypatch.setenv("SESSIONLOG_SERVER_URL", "https://env.example.com/logs")
        assert load_settings(config).server_url == "https://env.example.com/logs"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml")
