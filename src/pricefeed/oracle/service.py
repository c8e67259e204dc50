"""Price oracle: spot price and historical series with cache and fallback.

Lookup order for every public read:
1. CacheStore (a hit never touches the network)
2. Network strategies, in order (spot: proxy -> direct; history: market chart)
3. Synthesized fallback data, flagged with is_fallback and an error string

Network failures never escape get_current_price/get_historical_prices.
Only caller errors (unknown period, negative amount) raise.
"""

from collections.abc import Sequence

from pricefeed.cache import CURRENT_PRICE_KEY, CacheStore, FailureLedger, historical_key
from pricefeed.clock import Clock, wall_clock_ms
from pricefeed.config import DEFAULT_CHART_PERIODS, AppSettings, ChartWindow, ProviderSettings
from pricefeed.exceptions import FetchError, InvalidPeriodError, NegativeAmountError
from pricefeed.logging import get_logger
from pricefeed.models import ChartPeriod, ConversionResult, PricePoint, PriceSeries
from pricefeed.oracle.fallback import fallback_price, fallback_series
from pricefeed.oracle.strategies import (
    FetchStrategy,
    MarketChartStrategy,
    build_price_strategies,
    run_in_order,
)
from pricefeed.transport.client import HttpClient

logger = get_logger(__name__)


class PriceOracle:
    """Fetches, caches and falls back for the token's USD price.

    Args:
        http: Transport used for every network attempt.
        provider: Endpoint, token, fallback price and timeout settings.
        cache: TTL cache shared by spot and historical reads.
        ledger: Consecutive-failure counters (observability only).
        chart_periods: Period -> (days, interval) lookup table.
        clock: Millisecond wall clock for observation timestamps.
        strategies: Spot-price strategies; built from ``provider`` if omitted.
    """

    def __init__(
        self,
        http: HttpClient,
        provider: ProviderSettings,
        cache: CacheStore,
        ledger: FailureLedger | None = None,
        chart_periods: dict[str, ChartWindow] | None = None,
        clock: Clock = wall_clock_ms,
        strategies: Sequence[FetchStrategy] | None = None,
    ) -> None:
        self._http = http
        self._provider = provider
        self._cache = cache
        self._ledger = ledger if ledger is not None else FailureLedger()
        self._chart_periods = chart_periods if chart_periods is not None else DEFAULT_CHART_PERIODS
        self._clock = clock
        self._strategies = list(strategies) if strategies is not None else build_price_strategies(provider, clock)

    @classmethod
    def from_settings(
        cls, settings: AppSettings, http: HttpClient, clock: Clock = wall_clock_ms
    ) -> "PriceOracle":
        """Build an oracle with a fresh cache and ledger from AppSettings."""
        return cls(
            http=http,
            provider=settings.provider,
            cache=CacheStore(int(settings.cache.ttl_seconds * 1000), clock),
            ledger=FailureLedger(),
            chart_periods=settings.chart_periods,
            clock=clock,
        )

    @property
    def strategies(self) -> list[FetchStrategy]:
        return list(self._strategies)

    @property
    def fallback_price(self) -> float:
        return self._provider.fallback_price

    # ──────────────────────────────────────────────
    # Spot price
    # ──────────────────────────────────────────────

    async def get_current_price(self) -> PricePoint:
        """Return the current spot price. Never raises on network failure.

        A proxy response that is itself a fallback body is returned as-is
        (it already carries is_fallback and the proxy's error) but, like a
        local fallback, it is not cached and counts as a failure.
        """
        cached = self._cache.get(CURRENT_PRICE_KEY)
        if cached is not None:
            return cached

        try:
            point, strategy = await run_in_order(
                self._strategies,
                self._http,
                attempt_timeout=self._provider.request_timeout_seconds,
                budget=self._provider.fetch_budget_seconds,
            )
        except FetchError as e:
            failures = self._ledger.record_failure(CURRENT_PRICE_KEY)
            logger.warning(
                "price_fetch_failed_using_fallback",
                error=str(e),
                fallback_price=self._provider.fallback_price,
                consecutive_failures=failures,
            )
            return fallback_price(self._provider.fallback_price, self._clock(), str(e))

        if point.is_fallback:
            failures = self._ledger.record_failure(CURRENT_PRICE_KEY)
            logger.warning(
                "proxy_returned_fallback_price",
                usd=point.usd,
                error=point.error,
                consecutive_failures=failures,
            )
            return point

        self._ledger.record_success(CURRENT_PRICE_KEY)
        self._cache.put(CURRENT_PRICE_KEY, point)
        logger.info(
            "price_fetched",
            usd=point.usd,
            change_24h_pct=point.change_24h_pct,
            source=strategy.name,
            defaulted_fields=sorted(point.defaulted_fields),
        )
        return point

    # ──────────────────────────────────────────────
    # Historical series
    # ──────────────────────────────────────────────

    def resolve_period(self, period: ChartPeriod | str) -> tuple[ChartPeriod, ChartWindow]:
        """Validate a period against the lookup table.

        Raises:
            InvalidPeriodError: unknown period or no window configured for it.
        """
        try:
            resolved = ChartPeriod(period)
        except ValueError as e:
            raise InvalidPeriodError(f"Unknown chart period: {period!r}") from e
        window = self._chart_periods.get(resolved.value)
        if window is None:
            raise InvalidPeriodError(f"No chart window configured for period {resolved.value!r}")
        return resolved, window

    async def get_historical_prices(self, period: ChartPeriod | str) -> PriceSeries:
        """Return the price series for a chart period.

        Each period has its own cache entry. On failure returns a flat
        series with is_fallback=True.

        Raises:
            InvalidPeriodError: the period is not in the lookup table.
        """
        resolved, window = self.resolve_period(period)
        key = historical_key(resolved.value)

        cached = self._cache.get(key)
        if cached is not None:
            return cached

        strategy = MarketChartStrategy(
            self._provider.base_url,
            self._provider.token_id,
            window,
            self._provider.api_key.get_secret_value(),
        )
        try:
            points, _ = await run_in_order(
                [strategy],
                self._http,
                attempt_timeout=self._provider.request_timeout_seconds,
                budget=self._provider.fetch_budget_seconds,
            )
        except FetchError as e:
            failures = self._ledger.record_failure(key)
            logger.warning(
                "historical_fetch_failed_using_fallback",
                period=resolved.value,
                error=str(e),
                consecutive_failures=failures,
            )
            return fallback_series(
                resolved, window, self._provider.fallback_price, self._clock(), str(e)
            )

        series = PriceSeries(points=tuple(points), period=resolved)
        self._ledger.record_success(key)
        self._cache.put(key, series)
        logger.info("historical_prices_fetched", period=resolved.value, data_points=len(series))
        return series

    # ──────────────────────────────────────────────
    # Conversions
    # ──────────────────────────────────────────────

    async def convert_to_fiat(self, token_amount: float) -> float:
        """Token amount -> USD at the current price."""
        return (await self.quote(token_amount=token_amount)).fiat_amount

    async def convert_to_token(self, fiat_amount: float) -> float:
        """USD amount -> token amount at the current price (0 if the price is 0)."""
        return (await self.quote(fiat_amount=fiat_amount)).token_amount

    async def quote(
        self,
        *,
        token_amount: float | None = None,
        fiat_amount: float | None = None,
    ) -> ConversionResult:
        """Convert exactly one of token_amount / fiat_amount at the current price.

        Raises:
            NegativeAmountError: the amount is negative.
            ValueError: neither or both amounts were given.
        """
        if (token_amount is None) == (fiat_amount is None):
            raise ValueError("Pass exactly one of token_amount or fiat_amount")
        amount = token_amount if token_amount is not None else fiat_amount
        assert amount is not None
        if amount < 0:
            raise NegativeAmountError(f"Cannot convert a negative amount: {amount}")

        price = await self.get_current_price()
        rate = price.usd

        if token_amount is not None:
            return ConversionResult(
                token_amount=token_amount,
                fiat_amount=token_amount * rate,
                rate=rate,
                rate_observed_at_ms=price.observed_at_ms,
            )

        assert fiat_amount is not None
        if rate == 0:
            logger.warning("conversion_zero_rate", fiat_amount=fiat_amount)
            tokens = 0.0
        else:
            tokens = fiat_amount / rate
        return ConversionResult(
            token_amount=tokens,
            fiat_amount=fiat_amount,
            rate=rate,
            rate_observed_at_ms=price.observed_at_ms,
        )

    # ──────────────────────────────────────────────
    # Administration / observability
    # ──────────────────────────────────────────────

    def clear_cache(self) -> None:
        """Drop all cached prices and failure counters."""
        self._cache.clear()
        self._ledger.clear()
        logger.debug("price_cache_cleared")

    def invalidate_current_price(self) -> None:
        """Drop the cached spot price only; failure counters are kept."""
        self._cache.invalidate(CURRENT_PRICE_KEY)

    def failure_count(self, key: str = CURRENT_PRICE_KEY) -> int:
        return self._ledger.get(key)

    def failure_snapshot(self) -> dict[str, int]:
        return self._ledger.snapshot()
