"""Tests for environment-driven settings."""

import pytest

from tradedesk.infrastructure.config import (
    AppConfig,
    AuthConfig,
    MarketDataConfig,
    Settings,
)


def test_defaults():
    settings = Settings()

    assert settings.database.is_sqlite is True
    assert settings.auth.access_token_expire_minutes == 15
    assert settings.auth.refresh_token_expire_days == 7
    assert settings.market_data.base_url == "https://stock.indianapi.in"
    assert settings.app.is_production is False


def test_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg://trade:desk@db/tradedesk")
    monkeypatch.setenv("BCRYPT_ROUNDS", "10")
    monkeypatch.setenv("INDIAN_STOCK_API_KEY", "sk-live-123")
    monkeypatch.setenv("MARKET_DATA_TIMEOUT", "2.5")
    monkeypatch.setenv("CORS_ORIGINS", "https://app.example.com, https://admin.example.com")
    monkeypatch.setenv("LOG_JSON", "true")

    settings = Settings.from_env()

    assert settings.database.is_sqlite is False
    assert settings.auth.bcrypt_rounds == 10
    assert settings.market_data.api_key == "sk-live-123"
    assert settings.market_data.timeout_seconds == 2.5
    assert settings.app.cors_origins == ["https://app.example.com", "https://admin.example.com"]
    assert settings.app.log_json is True


@pytest.mark.parametrize(
    "settings,message",
    [
        (Settings(auth=AuthConfig(access_token_expire_minutes=0)), "ACCESS_TOKEN_EXPIRE_MINUTES"),
        (Settings(auth=AuthConfig(bcrypt_rounds=3)), "BCRYPT_ROUNDS"),
        (Settings(market_data=MarketDataConfig(timeout_seconds=0)), "MARKET_DATA_TIMEOUT"),
        (Settings(market_data=MarketDataConfig(provider="yahoo")), "MARKET_DATA_PROVIDER"),
        (Settings(app=AppConfig(environment="production")), "JWT_PRIVATE_KEY_PATH"),
    ],
)
def test_validate_rejects(settings, message):
    with pytest.raises(ValueError, match=message):
        settings.validate()


def test_missing_api_key_only_warns(caplog):
    with caplog.at_level("WARNING"):
        Settings(market_data=MarketDataConfig(api_key=None)).validate()

    assert "INDIAN_STOCK_API_KEY not set" in caplog.text
