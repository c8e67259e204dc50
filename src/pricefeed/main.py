"""Entry point for the price feed service.

Wires all components together and either serves the CORS proxy under
uvicorn (background price tasks run in the FastAPI lifespan) or, with the
proxy disabled, runs the background tasks until SIGINT/SIGTERM.

Component wiring order (in _build_components):
1. AppSettings (configuration)
2. Logging setup
3. HttpClient (aiohttp)
4. PriceOracle (cache + failure ledger + fetch strategies)
5. HealthMonitor (periodic provider probes)
6. SpotPriceSubscription (auto-refreshing spot price)
7. PriceChangeMonitor (threshold alerts, if configured)
"""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from pricefeed.config import AppSettings
from pricefeed.formatting import format_change, format_price
from pricefeed.health import HealthMonitor
from pricefeed.logging import get_logger, setup_logging
from pricefeed.models import PricePoint
from pricefeed.oracle.service import PriceOracle
from pricefeed.reactive.alerts import PriceChangeMonitor
from pricefeed.reactive.subscription import SpotPriceSubscription
from pricefeed.transport.aiohttp_client import AiohttpClient


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all price feed components from settings.

    Does NOT open the HTTP session or start background tasks; that happens
    in _start_components.

    Returns:
        Dict mapping component names to instances.
    """
    logger = get_logger("pricefeed.main")

    http = AiohttpClient(default_timeout=settings.provider.request_timeout_seconds)
    oracle = PriceOracle.from_settings(settings, http)
    health_monitor = HealthMonitor(http, settings.provider, settings.health)
    spot = SpotPriceSubscription(oracle, interval=settings.refresh.spot_interval_seconds)

    def _log_price(point: PricePoint) -> None:
        logger.info(
            "spot_price_observed",
            usd=point.usd,
            display=format_price(point.usd),
            change=format_change(point.change_24h_pct),
            source=point.source.value,
            is_fallback=point.is_fallback,
        )

    spot.add_listener(_log_price)

    alert_monitor = None
    if settings.refresh.alert_threshold_pct:
        alert_monitor = PriceChangeMonitor(
            settings.refresh.alert_threshold_pct,
            display_seconds=settings.refresh.alert_display_seconds,
        )
        alert_monitor.attach(spot)

    logger.info(
        "components_built",
        token_id=settings.provider.token_id,
        strategies=[s.name for s in oracle.strategies],
        alerts_enabled=alert_monitor is not None,
    )

    return {
        "http": http,
        "oracle": oracle,
        "health_monitor": health_monitor,
        "spot_subscription": spot,
        "alert_monitor": alert_monitor,
    }


async def _start_components(components: dict[str, Any]) -> None:
    await components["http"].connect()
    await components["health_monitor"].start()
    await components["spot_subscription"].start()


async def _stop_components(components: dict[str, Any]) -> None:
    """Stop background tasks, then release the HTTP session."""
    try:
        await components["spot_subscription"].stop()
        await components["health_monitor"].stop()
        if components["alert_monitor"] is not None:
            components["alert_monitor"].close()
    finally:
        await components["http"].close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the background price tasks for the lifetime of the proxy server."""
    logger = get_logger("pricefeed.main")
    components = app.state.components

    await _start_components(components)
    logger.info("lifespan_started")

    yield

    await _stop_components(components)
    logger.info("price_feed_stopped")


async def run() -> None:
    """Run the price feed.

    When the proxy is enabled (PROXY_ENABLED=true, the default) the proxy
    app is served by uvicorn and the lifespan manages all components.
    Otherwise the background tasks run until SIGINT/SIGTERM.
    """
    # 1. Load settings
    settings = AppSettings()

    # 2. Setup logging
    setup_logging(settings.log_level)
    logger = get_logger("pricefeed.main")

    # 3-7. Build all components
    components = _build_components(settings)

    if settings.proxy.enabled:
        from pricefeed.proxy.app import create_proxy_app

        app = create_proxy_app(components["http"], settings, lifespan=lifespan)
        app.state.components = components

        logger.info("starting_with_proxy", host=settings.proxy.host, port=settings.proxy.port)

        config = uvicorn.Config(
            app,
            host=settings.proxy.host,
            port=settings.proxy.port,
            log_level="warning",  # Suppress uvicorn access logs
        )
        server = uvicorn.Server(config)
        await server.serve()
        return

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    logger.info("starting_without_proxy")
    try:
        await _start_components(components)
        await stop_event.wait()
        logger.info("graceful_shutdown_signal")
    finally:
        await _stop_components(components)
        logger.info("price_feed_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
