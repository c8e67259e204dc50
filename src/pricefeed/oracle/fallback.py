"""Synthesized fallback data used when every fetch strategy has failed."""

from pricefeed.config import ChartWindow
from pricefeed.models import ChartPeriod, HistoryPoint, PricePoint, PriceSeries, PriceSource

DAY_MS = 24 * 60 * 60 * 1000

DEFAULT_FALLBACK_ERROR = "Unable to fetch live price data"


def fallback_price(price: float, now_ms: int, error: str | None = None) -> PricePoint:
    """Fallback spot price: configured price, zeroed auxiliary fields."""
    return PricePoint(
        usd=price,
        observed_at_ms=now_ms,
        change_24h_pct=0.0,
        market_cap_usd=0.0,
        volume_24h_usd=0.0,
        is_fallback=True,
        source=PriceSource.FALLBACK,
        error=error or DEFAULT_FALLBACK_ERROR,
    )


def fallback_series(
    period: ChartPeriod,
    window: ChartWindow,
    price: float,
    now_ms: int,
    error: str | None = None,
) -> PriceSeries:
    """Flat fallback series: one point per day of the window, the last at now."""
    days = max(window.days, 1)
    points = tuple(
        HistoryPoint(timestamp_ms=now_ms - (days - i - 1) * DAY_MS, price=price, volume_usd=0.0)
        for i in range(days)
    )
    return PriceSeries(
        points=points,
        period=period,
        currency="usd",
        is_fallback=True,
        error=error or DEFAULT_FALLBACK_ERROR,
    )
