"""Fetch strategies and the ordered runner that tries them.

The spot-price fallback order (proxy, then direct upstream) is data: a list
of FetchStrategy objects built from ProviderSettings.strategy_order. The
runner tries each in turn under a shared time budget. Only a request that
raises or times out moves on to the next strategy; an answer that arrived
but is unusable (non-2xx, malformed body) ends the run, and the caller
synthesizes fallback data.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from pricefeed.clock import Clock
from pricefeed.config import ChartWindow, ProviderSettings
from pricefeed.exceptions import FetchError, TransportError, UpstreamStatusError
from pricefeed.logging import get_logger
from pricefeed.models import PriceSource
from pricefeed.oracle.parsing import parse_market_chart, parse_simple_price
from pricefeed.transport.client import HttpClient

logger = get_logger(__name__)

# Below this remaining budget no further attempt is started
MIN_ATTEMPT_SECONDS = 0.01


def simple_price_params(token_id: str, api_key: str = "") -> dict[str, str]:
    """Query string for the provider's ``/simple/price`` endpoint."""
    params = {
        "ids": token_id,
        "vs_currencies": "usd",
        "include_24hr_change": "true",
        "include_market_cap": "true",
        "include_24hr_vol": "true",
    }
    if api_key:
        params["x_cg_demo_api_key"] = api_key
    return params


class FetchStrategy(ABC):
    """One way of obtaining a value over the network."""

    name: str = "strategy"

    @abstractmethod
    async def fetch(self, http: HttpClient, timeout: float) -> Any:
        """Fetch and parse. Raises FetchError or TransportError on failure."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class ProxyPriceStrategy(FetchStrategy):
    """Spot price through the CORS-safe proxy endpoint."""

    name = "proxy"

    def __init__(self, proxy_url: str, token_id: str, clock: Clock) -> None:
        self._url = proxy_url
        self._token_id = token_id
        self._clock = clock

    async def fetch(self, http: HttpClient, timeout: float) -> Any:
        response = await http.get(self._url, timeout=timeout)
        if not response.ok:
            raise UpstreamStatusError(response.status, self.name)
        return parse_simple_price(response.body, self._token_id, PriceSource.PROXY, self._clock())


class DirectPriceStrategy(FetchStrategy):
    """Spot price straight from the upstream provider."""

    name = "direct"

    def __init__(self, base_url: str, token_id: str, clock: Clock, api_key: str = "") -> None:
        self._url = f"{base_url.rstrip('/')}/simple/price"
        self._params = simple_price_params(token_id, api_key)
        self._token_id = token_id
        self._clock = clock

    async def fetch(self, http: HttpClient, timeout: float) -> Any:
        response = await http.get(self._url, params=self._params, timeout=timeout)
        if not response.ok:
            raise UpstreamStatusError(response.status, self.name)
        return parse_simple_price(response.body, self._token_id, PriceSource.DIRECT, self._clock())


class MarketChartStrategy(FetchStrategy):
    """Historical prices and volumes from the provider's market-chart endpoint."""

    name = "market_chart"

    def __init__(self, base_url: str, token_id: str, window: ChartWindow, api_key: str = "") -> None:
        self._url = f"{base_url.rstrip('/')}/coins/{token_id}/market_chart"
        self._params = {
            "vs_currency": "usd",
            "days": str(window.days),
            "interval": window.interval,
        }
        if api_key:
            self._params["x_cg_demo_api_key"] = api_key

    async def fetch(self, http: HttpClient, timeout: float) -> Any:
        response = await http.get(self._url, params=self._params, timeout=timeout)
        if not response.ok:
            raise UpstreamStatusError(response.status, self.name)
        return parse_market_chart(response.body)


def build_price_strategies(settings: ProviderSettings, clock: Clock) -> list[FetchStrategy]:
    """Build the spot-price strategies in the configured order."""
    api_key = settings.api_key.get_secret_value()
    available: dict[str, FetchStrategy] = {
        "proxy": ProxyPriceStrategy(settings.proxy_url, settings.token_id, clock),
        "direct": DirectPriceStrategy(settings.base_url, settings.token_id, clock, api_key),
    }
    return [available[name] for name in settings.strategy_order]


async def run_in_order(
    strategies: Sequence[FetchStrategy],
    http: HttpClient,
    attempt_timeout: float,
    budget: float,
) -> tuple[Any, FetchStrategy]:
    """Try strategies in order until one succeeds.

    Each attempt is bounded by ``min(attempt_timeout, remaining budget)`` and
    cancelled when it runs over. No attempt starts once the budget is spent.
    A TransportError or timeout advances to the next strategy; a FetchError
    (non-2xx status, malformed body) stops the run.

    Returns:
        (parsed result, the strategy that produced it)

    Raises:
        FetchError: no strategy produced a result; the message lists each failure.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + budget
    failures: list[str] = []

    for strategy in strategies:
        remaining = deadline - loop.time()
        if remaining < MIN_ATTEMPT_SECONDS:
            failures.append(f"{strategy.name}: fetch budget exhausted")
            break

        timeout = min(attempt_timeout, remaining)
        try:
            result = await asyncio.wait_for(strategy.fetch(http, timeout), timeout=timeout)
        except asyncio.TimeoutError:
            reason = f"timed out after {timeout:g}s"
        except TransportError as e:
            reason = str(e)
        except FetchError as e:
            failures.append(f"{strategy.name}: {e}")
            logger.warning("fetch_strategy_rejected_response", strategy=strategy.name, error=str(e))
            break
        else:
            return result, strategy

        failures.append(f"{strategy.name}: {reason}")
        logger.warning("fetch_strategy_failed", strategy=strategy.name, error=reason)

    if not strategies:
        failures.append("no fetch strategies configured")
    raise FetchError("; ".join(failures))
