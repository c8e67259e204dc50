"""HTTP transport layer -- async JSON client over aiohttp."""

from pricefeed.transport.aiohttp_client import AiohttpClient
from pricefeed.transport.client import HttpClient
from pricefeed.transport.types import HttpResponse

__all__ = ["AiohttpClient", "HttpClient", "HttpResponse"]
