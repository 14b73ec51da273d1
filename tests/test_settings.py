"""Tests for application settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from party_queue.config.settings import (
    DatabaseSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    for name in (
        "ENVIRONMENT",
        "DEBUG",
        "LOG_LEVEL",
        "DATABASE__URL",
        "QUEUE__MAX_QUEUE_SIZE",
        "RECONCILIATION__POLL_INTERVAL_SECONDS",
        "SPOTIFY__ACCESS_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


class TestDefaults:
    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.environment == "development"
        assert settings.log_level == "INFO"
        assert settings.database.url == "sqlite:///data/party_queue.db"
        assert settings.queue.max_queue_size == 50
        assert settings.queue.duplicate_threshold_minutes == 30
        assert settings.reconciliation.min_poll_interval_seconds == 5.0
        assert settings.spotify.access_token.get_secret_value() == ""


class TestEnvironment:
    def test_nested_values_from_env(self, monkeypatch):
        monkeypatch.setenv("DATABASE__URL", "sqlite:///tmp/q.db")
        monkeypatch.setenv("QUEUE__MAX_QUEUE_SIZE", "25")
        monkeypatch.setenv("RECONCILIATION__POLL_INTERVAL_SECONDS", "12.5")
        monkeypatch.setenv("SPOTIFY__ACCESS_TOKEN", "abc")

        settings = Settings(_env_file=None)

        assert settings.database.url == "sqlite:///tmp/q.db"
        assert settings.queue.max_queue_size == 25
        assert settings.reconciliation.poll_interval_seconds == 12.5
        assert settings.spotify.access_token.get_secret_value() == "abc"

    def test_token_not_exposed_in_repr(self, monkeypatch):
        monkeypatch.setenv("SPOTIFY__ACCESS_TOKEN", "super-secret")

        assert "super-secret" not in repr(Settings(_env_file=None))


class TestValidation:
    def test_log_level_normalised(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="LOUD")

    @pytest.mark.parametrize("url", ["sqlite:///data/q.db", ":memory:"])
    def test_valid_database_urls(self, url):
        assert DatabaseSettings(url=url).url == url

    def test_invalid_database_url(self):
        with pytest.raises(ValidationError):
            DatabaseSettings(url="postgres://localhost/queue")

    def test_queue_size_bounds(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, queue={"max_queue_size": 0})

    def test_settings_are_frozen(self):
        settings = DatabaseSettings()
        with pytest.raises(ValidationError):
            settings.url = "sqlite:///other.db"  # type: ignore[misc]


class TestCache:
    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        clear_settings_cache()

        second = get_settings()

        assert second is not first
        assert second.log_level == "WARNING"
