"""FastAPI application factory for the CORS price proxy."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from pricefeed.cache import CacheStore
from pricefeed.clock import Clock, wall_clock_ms
from pricefeed.config import AppSettings
from pricefeed.proxy.routes import price
from pricefeed.transport.client import HttpClient


def create_proxy_app(
    http: HttpClient,
    settings: AppSettings,
    lifespan: Any = None,
    clock: Clock = wall_clock_ms,
) -> FastAPI:
    """Create the proxy application.

    Args:
        http: Transport for upstream requests.
        settings: Provider and proxy settings.
        lifespan: Optional async context manager for startup/shutdown logic,
                  injected by main.py to run the background price tasks.
        clock: Millisecond clock for the proxy's upstream response cache.

    Returns:
        FastAPI application serving GET/HEAD /api/price.
    """
    app = FastAPI(title="Price Feed Proxy", lifespan=lifespan)

    app.state.http = http
    app.state.provider = settings.provider
    app.state.proxy_settings = settings.proxy
    # Upstream responses are reused for the advertised max-age
    app.state.upstream_cache = CacheStore(settings.proxy.cache_max_age_seconds * 1000, clock)

    app.include_router(price.router, prefix="/api")

    return app
