"""Tests for settings loading and duration parsing."""
from datetime import timedelta

import pytest
from pydantic import ValidationError

from tasktracker.core.config import Settings, parse_duration


class TestParseDuration:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("7d", timedelta(days=7)),
            ("12h", timedelta(hours=12)),
            ("30m", timedelta(minutes=30)),
            ("45s", timedelta(seconds=45)),
            ("2w", timedelta(weeks=2)),
            ("3600", timedelta(seconds=3600)),
            (" 5 m ", timedelta(minutes=5)),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "soon", "7y", "-1d", "1.5h"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None, JWT_SECRET="secret")
        assert settings.token_ttl == timedelta(days=7)
        assert settings.API_PREFIX == "/api"
        assert settings.LOGIN_RATE_LIMIT == 5
        assert settings.API_RATE_LIMIT == 100
        assert not settings.email_enabled

    def test_bad_expiry_is_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, JWT_SECRET="secret", JWT_EXPIRE="forever")

    def test_secret_is_required(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_node_env_alias(self, monkeypatch):
        monkeypatch.delenv("APP_ENV", raising=False)
        monkeypatch.setenv("NODE_ENV", "development")
        settings = Settings(_env_file=None, JWT_SECRET="secret")
        assert settings.is_development

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("JWT_EXPIRE", "2h")
        monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
        settings = Settings(_env_file=None, JWT_SECRET="secret")
        assert settings.token_ttl == timedelta(hours=2)
        assert settings.RATE_LIMIT_ENABLED is False
