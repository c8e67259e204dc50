"""Price proxy endpoints.

GET forwards the simple-price query upstream and mirrors the JSON body. If
the upstream call fails in any way it still answers 200, with a fallback
body flagged ``_fallback: true`` and the failure in ``_error``. HEAD is a
cheap existence check that never touches the upstream provider.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from pricefeed.config import ProviderSettings, ProxySettings
from pricefeed.exceptions import FetchError, MalformedResponseError, TransportError, UpstreamStatusError
from pricefeed.oracle.strategies import simple_price_params

log = structlog.get_logger(__name__)

router = APIRouter()

UPSTREAM_CACHE_KEY = "upstream-simple-price"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, HEAD",
    "Access-Control-Allow-Headers": "Content-Type",
}


def fallback_body(provider: ProviderSettings, error: str) -> dict[str, Any]:
    """Simple-price shaped body carrying the configured fallback price."""
    return {
        provider.token_id: {
            "usd": provider.fallback_price,
            "usd_24h_change": 0,
            "usd_market_cap": 0,
            "usd_24h_vol": 0,
            "_fallback": True,
            "_error": error,
        }
    }


def _cache_control(settings: ProxySettings) -> str:
    return (
        f"public, s-maxage={settings.cache_max_age_seconds}, "
        f"stale-while-revalidate={settings.stale_while_revalidate_seconds}"
    )


async def _fetch_upstream(request: Request) -> dict[str, Any]:
    provider: ProviderSettings = request.app.state.provider
    cache = request.app.state.upstream_cache

    cached = cache.get(UPSTREAM_CACHE_KEY)
    if cached is not None:
        return cached

    response = await asyncio.wait_for(
        request.app.state.http.get(
            f"{provider.base_url.rstrip('/')}/simple/price",
            params=simple_price_params(provider.token_id, provider.api_key.get_secret_value()),
            timeout=provider.request_timeout_seconds,
        ),
        provider.request_timeout_seconds,
    )
    if not response.ok:
        raise UpstreamStatusError(response.status, "upstream")
    if not isinstance(response.body, dict):
        raise MalformedResponseError("Upstream returned a non-object body", "upstream")

    cache.put(UPSTREAM_CACHE_KEY, response.body)
    return response.body


@router.get("/price")
async def get_price(request: Request) -> JSONResponse:
    """Mirror the upstream simple-price response, or a flagged fallback body."""
    try:
        body = await _fetch_upstream(request)
    except asyncio.TimeoutError:
        error = "Upstream request timed out"
    except (FetchError, TransportError) as e:
        error = str(e)
    else:
        headers = {**CORS_HEADERS, "Cache-Control": _cache_control(request.app.state.proxy_settings)}
        return JSONResponse(body, headers=headers)

    log.warning("proxy_upstream_failed", error=error)
    return JSONResponse(
        fallback_body(request.app.state.provider, error),
        status_code=200,
        headers=CORS_HEADERS,
    )


@router.head("/price")
async def head_price() -> Response:
    """Existence check used by the health monitor."""
    return Response(status_code=200, headers=CORS_HEADERS)
