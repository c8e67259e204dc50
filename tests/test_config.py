"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from pricefeed.config import DEFAULT_CHART_PERIODS, AppSettings, ProviderSettings


def test_defaults() -> None:
    settings = AppSettings(_env_file=None)
    assert settings.provider.token_id == "gooddollar"
    assert settings.provider.strategy_order == ["proxy", "direct"]
    assert settings.cache.ttl_seconds == 300
    assert settings.health.latency_threshold_ms == 3000
    assert settings.refresh.debounce_seconds == 0.3
    assert settings.refresh.alert_threshold_pct is None
    assert settings.proxy.port == 8080


def test_chart_period_table() -> None:
    assert {k: (w.days, w.interval) for k, w in DEFAULT_CHART_PERIODS.items()} == {
        "1h": (1, "hourly"),
        "24h": (1, "hourly"),
        "7d": (7, "daily"),
        "30d": (30, "daily"),
        "90d": (90, "daily"),
        "1y": (365, "daily"),
    }


def test_provider_env_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROVIDER_TOKEN_ID", "celo")
    monkeypatch.setenv("PROVIDER_FALLBACK_PRICE", "0.5")
    monkeypatch.setenv("PROVIDER_STRATEGY_ORDER", '["direct"]')
    settings = ProviderSettings()
    assert settings.token_id == "celo"
    assert settings.fallback_price == 0.5
    assert settings.strategy_order == ["direct"]


def test_api_key_is_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROVIDER_API_KEY", "demo-key")
    settings = ProviderSettings()
    assert settings.api_key.get_secret_value() == "demo-key"
    assert "demo-key" not in repr(settings)


def test_nested_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REFRESH__ALERT_THRESHOLD_PCT", "5")
    settings = AppSettings(_env_file=None)
    assert settings.refresh.alert_threshold_pct == 5.0


def test_negative_fallback_price_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(ValidationError, match="fallback_price"):
        ProviderSettings(fallback_price=-1.0)
    monkeypatch.setenv("PROVIDER_FALLBACK_PRICE", "-0.5")
    with pytest.raises(ValidationError):
        ProviderSettings()
