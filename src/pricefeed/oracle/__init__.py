"""Price oracle -- cached spot/historical prices with ordered network fallback."""

from pricefeed.oracle.service import PriceOracle
from pricefeed.oracle.strategies import (
    DirectPriceStrategy,
    FetchStrategy,
    MarketChartStrategy,
    ProxyPriceStrategy,
)

__all__ = [
    "DirectPriceStrategy",
    "FetchStrategy",
    "MarketChartStrategy",
    "PriceOracle",
    "ProxyPriceStrategy",
]
