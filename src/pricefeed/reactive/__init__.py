"""Reactive consumption layer -- self-refreshing price views over the oracle."""

from pricefeed.reactive.alerts import PriceChangeMonitor
from pricefeed.reactive.conversion import PriceConverter
from pricefeed.reactive.history import HistoricalSeriesSubscription
from pricefeed.reactive.refresh import DebouncedRefresher
from pricefeed.reactive.subscription import SpotPriceSubscription

__all__ = [
    "DebouncedRefresher",
    "HistoricalSeriesSubscription",
    "PriceChangeMonitor",
    "PriceConverter",
    "SpotPriceSubscription",
]
