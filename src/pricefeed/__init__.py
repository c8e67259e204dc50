"""Token price feed: cached spot and historical prices with graceful fallback."""

__version__ = "0.1.0"
