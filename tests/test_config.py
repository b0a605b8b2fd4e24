"""
Configuration tests.
"""

import pytest

from bundlerelay.config import Settings, get_settings


def test_get_settings_returns_settings() -> None:
    """get_settings returns a Settings instance."""
    settings = get_settings()
    assert isinstance(settings, Settings)
    assert settings.app_name == "BundleRelay"


def test_settings_from_test_environment() -> None:
    """conftest points the app at an embedded database."""
    settings = get_settings()
    assert settings.is_sqlite
    assert settings.jwt_secret
    assert settings.resolution_mode == "sql"


def test_generic_postgres_url_uses_psycopg(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/relay")
    settings = Settings()
    assert settings.database_url == "postgresql+psycopg://u:p@db:5432/relay"
    assert settings.is_sqlite is False


def test_resolution_mode_is_validated(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESOLUTION_MODE", " Memory ")
    assert Settings().resolution_mode == "memory"
    monkeypatch.setenv("RESOLUTION_MODE", "cache")
    with pytest.raises(ValueError, match="RESOLUTION_MODE"):
        Settings()


def test_public_base_url_trailing_slash_stripped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://updates.example.com/")
    assert Settings().public_base_url == "https://updates.example.com"


def test_token_ttl_and_channel_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DELIVERY_TOKEN_TTL_SECONDS", "120")
    monkeypatch.setenv("DEFAULT_CHANNEL", "beta")
    settings = Settings()
    assert settings.delivery_token_ttl_seconds == 120
    assert settings.default_channel == "beta"
