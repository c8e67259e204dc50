"""Continuously refreshed spot-price subscription.

Turns the oracle's pull API into a value that refreshes itself: one fetch
on start, then one every ``interval`` seconds until stop(). The polling
task belongs to the subscription and is cancelled on stop() (or on leaving
``async with``), never left to garbage collection.
"""

import asyncio
from collections.abc import Callable

from pricefeed.logging import get_logger
from pricefeed.models import PricePoint
from pricefeed.oracle.service import PriceOracle

logger = get_logger(__name__)

PriceListener = Callable[[PricePoint], None]


class SpotPriceSubscription:
    """Auto-refreshing view of the oracle's current price.

    ``error`` is not an exception: the oracle never raises for network
    failures, so it is the fallback's description, set alongside a usable
    fallback ``price`` and cleared by the next live price.

    Args:
        oracle: Source of spot prices.
        interval: Seconds between refreshes (defaults to the cache TTL).
    """

    def __init__(self, oracle: PriceOracle, interval: float = 300.0) -> None:
        self._oracle = oracle
        self._interval = interval
        self._price: PricePoint | None = None
        self._is_loading = False
        self._error: str | None = None
        self._listeners: list[PriceListener] = []
        self._running = False
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    async def __aenter__(self) -> "SpotPriceSubscription":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    @property
    def price(self) -> PricePoint | None:
        return self._price

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def last_updated_ms(self) -> int | None:
        return self._price.observed_at_ms if self._price is not None else None

    @property
    def is_running(self) -> bool:
        return self._running

    def add_listener(self, listener: PriceListener) -> None:
        """Call ``listener`` with every newly observed price."""
        self._listeners.append(listener)

    def remove_listener(self, listener: PriceListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def start(self) -> None:
        """Start refreshing: fetch immediately, then every interval."""
        if self._running:
            logger.warning("spot_subscription_already_running")
            return
        self._running = True
        self._is_loading = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info("spot_subscription_started", interval=self._interval)

    async def stop(self) -> None:
        """Cancel the refresh task."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._is_loading = False
        logger.info("spot_subscription_stopped")

    async def refetch(self, force: bool = False) -> PricePoint:
        """Fetch now, outside the interval.

        Args:
            force: Drop the cached spot price first so the fetch goes to the network.
        """
        if force:
            self._oracle.invalidate_current_price()
        return await self._fetch_once()

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self._fetch_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning("spot_subscription_poll_error", exc_info=True)
            if self._running:
                await asyncio.sleep(self._interval)

    async def _fetch_once(self) -> PricePoint:
        self._is_loading = True
        try:
            point = await self._oracle.get_current_price()
        finally:
            self._is_loading = False

        self._price = point
        self._error = point.error if point.is_fallback else None
        for listener in list(self._listeners):
            try:
                listener(point)
            except Exception:
                logger.warning("price_listener_error", listener=repr(listener), exc_info=True)
        return point
