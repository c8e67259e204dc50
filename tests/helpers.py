"""Test doubles and payload builders shared across test modules."""

import inspect
from collections.abc import Callable
from typing import Any

from pricefeed.exceptions import TransportError
from pricefeed.transport.types import HttpResponse

BASE_URL = "https://api.example.test/api/v3"
PROXY_URL = "http://proxy.example.test/api/price"
TOKEN_ID = "gooddollar"
FALLBACK_PRICE = 0.0001

START_MS = 1_700_000_000_000


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now_ms: int = START_MS) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


def route_http(
    routes: dict[str, Any],
) -> Callable[..., Any]:
    """Build an AsyncMock side effect dispatching on URL suffix.

    Values are HttpResponse instances, exceptions (raised), or callables
    (sync or async) taking the URL and returning either.
    """

    async def _dispatch(url: str, *args: Any, **kwargs: Any) -> HttpResponse:
        for suffix, outcome in routes.items():
            if url.endswith(suffix):
                if callable(outcome) and not isinstance(outcome, HttpResponse):
                    outcome = outcome(url)
                    if inspect.isawaitable(outcome):
                        outcome = await outcome
                if isinstance(outcome, BaseException):
                    raise outcome
                return outcome
        raise TransportError(f"no route for {url}")

    return _dispatch


def price_body(usd: float = 0.0000712, **extra: Any) -> dict[str, Any]:
    """Simple-price response body for the test token."""
    return {TOKEN_ID: {"usd": usd, **extra}}


def chart_body(
    prices: list[list[float]],
    volumes: list[list[float]] | None = None,
) -> dict[str, Any]:
    """Market-chart response body."""
    body: dict[str, Any] = {"prices": prices}
    if volumes is not None:
        body["total_volumes"] = volumes
    return body
