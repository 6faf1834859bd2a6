"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest

from osswish.config import Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("CACHE_TTL_SECONDS", "WEBHOOK_SECRET", "PORT"):
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(f"OSSWISH_{name}", raising=False)


class TestEnvNames:
    """Test prefixed and bare environment variable names."""

    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)
        assert settings.cache_ttl_seconds == 45
        assert settings.webhook_secret is None

    def test_prefixed_name(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OSSWISH_CACHE_TTL_SECONDS", "90")
        assert Settings(_env_file=None).cache_ttl_seconds == 90

    def test_bare_name(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CACHE_TTL_SECONDS", "30")
        assert Settings(_env_file=None).cache_ttl_seconds == 30

    def test_prefixed_name_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OSSWISH_WEBHOOK_SECRET", "prefixed")
        monkeypatch.setenv("WEBHOOK_SECRET", "bare")
        assert Settings(_env_file=None).webhook_secret == "prefixed"

    def test_field_without_bare_name(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OSSWISH_PORT", "8080")
        assert Settings(_env_file=None).port == 8080
