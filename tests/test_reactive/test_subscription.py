"""Tests for SpotPriceSubscription."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from helpers import FALLBACK_PRICE, FakeClock, price_body, route_http
from pricefeed.models import PricePoint
from pricefeed.oracle.service import PriceOracle
from pricefeed.reactive.subscription import SpotPriceSubscription
from pricefeed.transport.types import HttpResponse


class TestSpotPriceSubscription:

    @pytest.mark.asyncio
    async def test_start_fetches_immediately(self, oracle: PriceOracle, mock_http: AsyncMock) -> None:
        mock_http.get.side_effect = route_http({"/api/price": HttpResponse(200, price_body(0.5))})
        sub = SpotPriceSubscription(oracle, interval=60)
        await sub.start()
        assert sub.is_running is True
        await asyncio.sleep(0.01)
        await sub.stop()

        assert sub.price is not None
        assert sub.price.usd == 0.5
        assert sub.error is None
        assert sub.is_loading is False
        assert sub.last_updated_ms == sub.price.observed_at_ms

    @pytest.mark.asyncio
    async def test_polls_every_interval(
        self, oracle: PriceOracle, mock_http: AsyncMock, fake_clock: FakeClock
    ) -> None:
        mock_http.get.side_effect = route_http({"/api/price": HttpResponse(200, price_body(0.5))})
        sub = SpotPriceSubscription(oracle, interval=0.01)
        # runs after the oracle cached the price, so the next poll misses the cache
        sub.add_listener(lambda point: fake_clock.advance(300_000))
        async with sub:
            await asyncio.sleep(0.05)
        assert mock_http.get.await_count >= 3

    @pytest.mark.asyncio
    async def test_stop_cancels_polling(self, oracle: PriceOracle, mock_http: AsyncMock) -> None:
        sub = SpotPriceSubscription(oracle, interval=0.01)
        await sub.start()
        await asyncio.sleep(0.03)
        await sub.stop()
        calls = mock_http.get.await_count
        await asyncio.sleep(0.03)
        assert mock_http.get.await_count == calls
        assert sub.is_running is False

    @pytest.mark.asyncio
    async def test_fallback_sets_error_alongside_price(self, oracle: PriceOracle) -> None:
        sub = SpotPriceSubscription(oracle)
        point = await sub.refetch()
        assert point.is_fallback is True
        assert sub.price is point
        assert sub.price.usd == FALLBACK_PRICE
        assert sub.error == point.error

    @pytest.mark.asyncio
    async def test_live_price_clears_error(self, oracle: PriceOracle, mock_http: AsyncMock) -> None:
        sub = SpotPriceSubscription(oracle)
        await sub.refetch()
        mock_http.get.side_effect = route_http({"/api/price": HttpResponse(200, price_body(0.5))})
        await sub.refetch()
        assert sub.error is None

    @pytest.mark.asyncio
    async def test_forced_refetch_bypasses_cache(self, oracle: PriceOracle, mock_http: AsyncMock) -> None:
        mock_http.get.side_effect = route_http({"/api/price": HttpResponse(200, price_body(0.5))})
        sub = SpotPriceSubscription(oracle)
        await sub.refetch()
        await sub.refetch()
        assert mock_http.get.await_count == 1
        await sub.refetch(force=True)
        assert mock_http.get.await_count == 2

    @pytest.mark.asyncio
    async def test_forced_refetch_keeps_failure_counters(
        self, oracle: PriceOracle, mock_http: AsyncMock
    ) -> None:
        sub = SpotPriceSubscription(oracle)
        await oracle.get_historical_prices("7d")
        await sub.refetch()
        await sub.refetch(force=True)
        assert oracle.failure_count() == 2
        assert oracle.failure_snapshot()["historical-7d"] == 1

    @pytest.mark.asyncio
    async def test_listeners_notified_and_isolated(self, oracle: PriceOracle) -> None:
        broken = MagicMock(side_effect=RuntimeError("listener bug"))
        seen: list[PricePoint] = []
        sub = SpotPriceSubscription(oracle)
        sub.add_listener(broken)
        sub.add_listener(seen.append)

        point = await sub.refetch()
        assert seen == [point]
        broken.assert_called_once_with(point)

        sub.remove_listener(seen.append)
        await sub.refetch()
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_is_loading_during_fetch(self, oracle: PriceOracle, mock_http: AsyncMock) -> None:
        gate = asyncio.Event()

        async def _slow(url: str) -> HttpResponse:
            await gate.wait()
            return HttpResponse(200, price_body(0.5))

        mock_http.get.side_effect = route_http({"/api/price": _slow})
        sub = SpotPriceSubscription(oracle)
        task = asyncio.create_task(sub.refetch())
        await asyncio.sleep(0.01)
        assert sub.is_loading is True
        gate.set()
        await task
        assert sub.is_loading is False
