"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChartWindow(BaseModel):
    """Upstream market-chart query parameters for one chart period."""

    days: int
    interval: Literal["hourly", "daily"]


DEFAULT_CHART_PERIODS: dict[str, ChartWindow] = {
    "1h": ChartWindow(days=1, interval="hourly"),
    "24h": ChartWindow(days=1, interval="hourly"),
    "7d": ChartWindow(days=7, interval="daily"),
    "30d": ChartWindow(days=30, interval="daily"),
    "90d": ChartWindow(days=90, interval="daily"),
    "1y": ChartWindow(days=365, interval="daily"),
}


class ProviderSettings(BaseSettings):
    """Upstream price provider and proxy endpoint settings."""

    model_config = SettingsConfigDict(env_prefix="PROVIDER_")

    base_url: str = "https://api.coingecko.com/api/v3"
    token_id: str = "gooddollar"
    proxy_url: str = "http://localhost:8080/api/price"
    api_key: SecretStr = SecretStr("")  # optional demo key, sent as x_cg_demo_api_key
    fallback_price: float = Field(0.0001, ge=0)
    request_timeout_seconds: float = 10.0
    fetch_budget_seconds: float = 20.0  # shared across all strategies of one fetch
    strategy_order: list[Literal["proxy", "direct"]] = ["proxy", "direct"]


class CacheSettings(BaseSettings):
    """In-memory cache settings."""

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    ttl_seconds: float = 300.0


class HealthSettings(BaseSettings):
    """Provider liveness probe settings."""

    model_config = SettingsConfigDict(env_prefix="HEALTH_")

    probe_timeout_seconds: float = 5.0
    latency_threshold_ms: int = 3000  # slower probes count as unhealthy
    check_interval_seconds: float = 60.0


class RefreshSettings(BaseSettings):
    """Reactive consumption layer timing."""

    model_config = SettingsConfigDict(env_prefix="REFRESH_")

    spot_interval_seconds: float = 300.0  # matches the cache TTL
    debounce_seconds: float = 0.3
    alert_display_seconds: float = 5.0
    alert_threshold_pct: float | None = None  # None disables price alerts in main


class ProxySettings(BaseSettings):
    """CORS proxy server configuration."""

    model_config = SettingsConfigDict(env_prefix="PROXY_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True
    cache_max_age_seconds: int = 300
    stale_while_revalidate_seconds: int = 600


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    provider: ProviderSettings = ProviderSettings()
    cache: CacheSettings = CacheSettings()
    health: HealthSettings = HealthSettings()
    refresh: RefreshSettings = RefreshSettings()
    proxy: ProxySettings = ProxySettings()
    chart_periods: dict[str, ChartWindow] = DEFAULT_CHART_PERIODS
