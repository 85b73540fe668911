"""Tests for environment-driven settings"""

from slotbook.config import Settings


def test_environment_is_read_when_settings_are_built(monkeypatch):
    monkeypatch.setenv("DEPOSIT_HOLD_TTL_MINUTES", "45")
    monkeypatch.setenv("DODO_PAYMENTS_API_KEY", "sk_test_env")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")

    settings = Settings()

    assert settings.deposit_hold_ttl_minutes == 45
    assert settings.dodo_api_key == "sk_test_env"
    assert settings.rate_limit_enabled is False


def test_field_names_still_accepted(monkeypatch):
    monkeypatch.delenv("DODO_PAYMENTS_ENVIRONMENT", raising=False)

    settings = Settings(dodo_environment="live_mode", app_base_url="https://slotbook.test/")

    assert settings.dodo_environment == "live_mode"
    assert settings.success_url == "https://slotbook.test/?booking=success"
