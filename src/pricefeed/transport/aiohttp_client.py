"""HTTP client implementation via aiohttp.

Wraps a single aiohttp.ClientSession with JSON defaults, per-request
timeouts, and translation of aiohttp/timeout errors into TransportError.
"""

import asyncio
from typing import Any

import aiohttp

from pricefeed.exceptions import TransportError
from pricefeed.logging import get_logger
from pricefeed.transport.client import HttpClient
from pricefeed.transport.types import HttpResponse

logger = get_logger(__name__)

DEFAULT_HEADERS = {"Accept": "application/json", "User-Agent": "PriceFeed/1.0"}


class AiohttpClient(HttpClient):
    """Concrete HttpClient backed by aiohttp.

    The session is created lazily on first use (or by connect()) and must be
    released with close(). Also usable as ``async with AiohttpClient() as http``.

    Args:
        default_timeout: Total timeout in seconds when a call passes none.
        headers: Extra headers merged over DEFAULT_HEADERS.
    """

    def __init__(
        self,
        default_timeout: float = 10.0,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._default_timeout = default_timeout
        self._headers = {**DEFAULT_HEADERS, **(headers or {})}
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "AiohttpClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def connect(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self._headers)
            logger.debug("http_session_opened")

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
            logger.debug("http_session_closed")
        self._session = None

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        return await self._request("GET", url, params=params, timeout=timeout)

    async def head(self, url: str, timeout: float | None = None) -> HttpResponse:
        return await self._request("HEAD", url, timeout=timeout)

    async def _request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        await self.connect()
        assert self._session is not None

        client_timeout = aiohttp.ClientTimeout(
            total=timeout if timeout is not None else self._default_timeout
        )
        # aiohttp only accepts str/int/float query values
        query = {k: _query_value(v) for k, v in (params or {}).items()}

        try:
            async with self._session.request(
                method, url, params=query or None, timeout=client_timeout
            ) as resp:
                if method == "HEAD":
                    return HttpResponse(status=resp.status)
                try:
                    body = await resp.json(content_type=None)
                except ValueError:
                    body = None
                return HttpResponse(status=resp.status, body=body)
        except asyncio.TimeoutError as e:
            raise TransportError(f"{method} {url} timed out") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e


def _query_value(value: Any) -> str | int | float:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return value
    return str(value)
