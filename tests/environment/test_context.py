# tests/environment/test_context.py
"""Tests for EnvironmentContextProvider caching and fallbacks."""

from datetime import timedelta

import pytest

from sessionlog.contracts.enums import Orientation
from sessionlog.environment.context import (
    UNKNOWN,
    EnvironmentContextProvider,
    current_language,
    format_utc_offset,
)


def _device() -> tuple[str, str]:
    return "Contoso", "Surface 9"


class TestFormatUtcOffset:
    @pytest.mark.parametrize(
        ("offset", "expected"),
        [
            (None, "0"),
            (timedelta(0), "0"),
            (timedelta(hours=2), "2"),
            (timedelta(hours=-5), "-5"),
            (timedelta(hours=5, minutes=30), "5.5"),
        ],
    )
    def test_hours(self, offset: timedelta | None, expected: str) -> None:
        assert format_utc_offset(offset) == expected


class TestCurrentLanguage:
    def test_posix_locale_is_unknown(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("locale.getlocale", lambda: ("C", None))
        assert current_language() == UNKNOWN

    def test_underscore_becomes_dash(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("locale.getlocale", lambda: ("en_US", "UTF-8"))
        assert current_language() == "en-US"


class TestEnvironmentContextProvider:
    def test_full_context(self) -> None:
        provider = EnvironmentContextProvider(
            os_label="Linux 6.1",
            version="2.1.0",
            device_info=_device,
            language=lambda: "de-DE",
            screen=lambda: "1280x800",
            orientation=lambda: Orientation.PORTRAIT,
            utc_offset=lambda: timedelta(hours=1),
        )
        context = provider.get_context()
        assert context.version == "2.1.0"
        assert context.manufacturer == "Contoso"
        assert context.model == "Surface 9"
        assert context.os == "Linux 6.1"
        assert context.lang == "de-DE"
        assert context.screen == "1280x800"
        assert context.orientation == "portrait"
        assert context.timezone == "1"

    def test_static_values_are_cached(self) -> None:
        calls: list[int] = []

        def device() -> tuple[str, str]:
            calls.append(1)
            return _device()

        provider = EnvironmentContextProvider(os_label="x", device_info=device)
        provider.get_context()
        provider.get_context()
        assert len(calls) == 1

    def test_dynamic_values_are_reread(self) -> None:
        orientations = iter([Orientation.LANDSCAPE, Orientation.PORTRAIT_FLIPPED])
        provider = EnvironmentContextProvider(
            os_label="x",
            device_info=_device,
            orientation=lambda: next(orientations),
        )
        assert provider.get_context().orientation == "landscape"
        assert provider.get_context().orientation == "portraitFlipped"

    def test_failures_fall_back_to_unknown(self) -> None:
        def broken() -> str:
            raise RuntimeError("sensor offline")

        def no_device() -> tuple[str, str]:
            raise OSError("no DMI")

        provider = EnvironmentContextProvider(
            os_label="x",
            version=broken,
            device_info=no_device,
            language=broken,
            screen=broken,
            orientation=broken,
            utc_offset=lambda: None,
        )
        context = provider.get_context()
        assert context.version == UNKNOWN
        assert context.manufacturer == UNKNOWN
        assert context.model == UNKNOWN
        assert context.lang == UNKNOWN
        assert context.screen == UNKNOWN
        assert context.orientation == "unknown"
        assert context.timezone == "0"

    def test_missing_optional_sources(self) -> None:
        context = EnvironmentContextProvider(os_label="x", device_info=_device).get_context()
        assert context.version == UNKNOWN
        assert context.screen == UNKNOWN
        assert context.orientation == "unknown"
