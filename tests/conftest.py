"""Shared test fixtures for the price feed."""

from unittest.mock import AsyncMock

import pytest

from helpers import BASE_URL, FALLBACK_PRICE, PROXY_URL, TOKEN_ID, FakeClock
from pricefeed.cache import CacheStore, FailureLedger
from pricefeed.config import AppSettings, CacheSettings, HealthSettings, ProviderSettings
from pricefeed.exceptions import TransportError
from pricefeed.oracle.service import PriceOracle


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider_settings() -> ProviderSettings:
    """Provider settings with test endpoints and short timeouts."""
    return ProviderSettings(
        base_url=BASE_URL,
        proxy_url=PROXY_URL,
        token_id=TOKEN_ID,
        fallback_price=FALLBACK_PRICE,
        request_timeout_seconds=0.5,
        fetch_budget_seconds=1.0,
    )


@pytest.fixture
def mock_settings(provider_settings: ProviderSettings) -> AppSettings:
    """AppSettings built around the test provider settings."""
    return AppSettings(
        log_level="DEBUG",
        provider=provider_settings,
        cache=CacheSettings(ttl_seconds=300),
        health=HealthSettings(probe_timeout_seconds=0.5, latency_threshold_ms=3000),
    )


@pytest.fixture
def mock_http() -> AsyncMock:
    """HttpClient mock; every request fails until a test routes it."""
    http = AsyncMock()
    http.get = AsyncMock(side_effect=TransportError("connection refused"))
    http.head = AsyncMock(side_effect=TransportError("connection refused"))
    return http


@pytest.fixture
def cache(fake_clock: FakeClock) -> CacheStore:
    return CacheStore(ttl_ms=300_000, clock=fake_clock)


@pytest.fixture
def ledger() -> FailureLedger:
    return FailureLedger()


@pytest.fixture
def oracle(
    mock_http: AsyncMock,
    provider_settings: ProviderSettings,
    cache: CacheStore,
    ledger: FailureLedger,
    fake_clock: FakeClock,
) -> PriceOracle:
    """PriceOracle over the mocked transport, fake clock and fresh cache."""
    return PriceOracle(
        http=mock_http,
        provider=provider_settings,
        cache=cache,
        ledger=ledger,
        clock=fake_clock,
    )
