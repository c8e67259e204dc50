"""Custom exceptions for the price feed.

Network and payload errors (FetchError, TransportError) are internal: the
oracle and health monitor catch them and degrade to fallback data. The
ValueError subclasses are caller errors and propagate.
"""


class PriceFeedError(Exception):
    """Base exception for all price feed errors."""


class TransportError(PriceFeedError):
    """Raised by the HTTP transport on connection failures and timeouts."""


class FetchError(PriceFeedError):
    """Raised when one fetch attempt (one strategy) fails."""

    def __init__(self, message: str, strategy: str | None = None) -> None:
        super().__init__(message)
        self.strategy = strategy


class UpstreamStatusError(FetchError):
    """Raised when an endpoint answers with a non-2xx status."""

    def __init__(self, status: int, strategy: str | None = None) -> None:
        super().__init__(f"HTTP error! status: {status}", strategy)
        self.status = status


class MalformedResponseError(FetchError):
    """Raised when a response body does not have the expected shape."""


class InvalidPeriodError(PriceFeedError, ValueError):
    """Raised for a chart period missing from the period lookup table."""


class NegativeAmountError(PriceFeedError, ValueError):
    """Raised when a conversion is requested for a negative amount."""
