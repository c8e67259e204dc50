"""Abstract HTTP client interface.

The oracle, health monitor and proxy depend only on this interface, so
tests substitute an AsyncMock and the aiohttp details stay in one module.
"""

from abc import ABC, abstractmethod
from typing import Any

from pricefeed.transport.types import HttpResponse


class HttpClient(ABC):
    """Abstract base class for async JSON HTTP clients.

    Implementations raise TransportError for connection failures and
    timeouts. Non-2xx statuses are returned, not raised.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Open the underlying connection pool."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying connection pool."""
        ...

    @abstractmethod
    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        """Issue a GET request and decode the JSON body."""
        ...

    @abstractmethod
    async def head(self, url: str, timeout: float | None = None) -> HttpResponse:
        """Issue a HEAD request (existence/liveness check)."""
        ...
