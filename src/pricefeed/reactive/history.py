"""Historical price series subscription, re-fetched whenever the period changes."""

import asyncio

from pricefeed.logging import get_logger
from pricefeed.models import ChartPeriod, PriceSeries
from pricefeed.oracle.service import PriceOracle

logger = get_logger(__name__)


class HistoricalSeriesSubscription:
    """Holds the series for the currently selected chart period.

    A new fetch (period switch or refetch) cancels the one still in flight,
    so a slow response can never overwrite the series of a newer selection.
    The superseded caller gets None back.
    """

    def __init__(self, oracle: PriceOracle, period: ChartPeriod | str = ChartPeriod.ONE_WEEK) -> None:
        self._oracle = oracle
        self._period, _ = oracle.resolve_period(period)
        self._series: PriceSeries | None = None
        self._is_loading = False
        self._error: str | None = None
        self._generation = 0
        self._inflight: asyncio.Task | None = None  # type: ignore[type-arg]

    @property
    def period(self) -> ChartPeriod:
        return self._period

    @property
    def series(self) -> PriceSeries | None:
        return self._series

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> str | None:
        return self._error

    async def start(self) -> PriceSeries | None:
        """Load the series for the initial period."""
        return await self.refetch()

    async def set_period(self, period: ChartPeriod | str) -> PriceSeries | None:
        """Select a period; fetches its series if it differs from the current one.

        Raises:
            InvalidPeriodError: the period is not in the oracle's lookup table.
        """
        resolved, _ = self._oracle.resolve_period(period)
        if resolved == self._period and self._series is not None:
            return self._series
        self._period = resolved
        return await self.refetch()

    async def refetch(self) -> PriceSeries | None:
        """Fetch the series for the current period.

        Returns None if a newer fetch superseded this one before it finished.
        """
        self._generation += 1
        generation = self._generation
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()

        period = self._period
        task = asyncio.create_task(self._oracle.get_historical_prices(period))
        self._inflight = task
        self._is_loading = True
        try:
            series = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.debug("historical_fetch_superseded", period=period.value)
                return None
            raise
        finally:
            if generation == self._generation:
                self._inflight = None
                self._is_loading = False

        if generation != self._generation:
            return None
        self._series = series
        self._error = series.error if series.is_fallback else None
        logger.debug(
            "historical_series_updated",
            period=period.value,
            points=len(series),
            is_fallback=series.is_fallback,
        )
        return series

    async def stop(self) -> None:
        """Cancel a fetch that is still in flight."""
        task = self._inflight
        self._generation += 1
        self._inflight = None
        self._is_loading = False
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
