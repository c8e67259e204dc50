"""Shared data models for the price feed.

Prices are plain floats: the provider is a best-effort JSON source and
its values arrive as JSON numbers. Timestamps are Unix milliseconds.
All price models are frozen; later fetches supersede them, never mutate them.
"""

from dataclasses import dataclass, field
from enum import Enum


class ChartPeriod(str, Enum):
    """Supported historical chart periods."""

    ONE_HOUR = "1h"
    ONE_DAY = "24h"
    ONE_WEEK = "7d"
    ONE_MONTH = "30d"
    THREE_MONTHS = "90d"
    ONE_YEAR = "1y"


class PriceSource(str, Enum):
    """Where a PricePoint came from."""

    PROXY = "proxy"
    DIRECT = "direct"
    PROXY_FALLBACK = "proxy-fallback"  # proxy answered with its own fallback body
    FALLBACK = "fallback"  # synthesized locally


class AlertDirection(str, Enum):
    """Direction of a price move."""

    INCREASE = "increase"
    DECREASE = "decrease"


@dataclass(frozen=True)
class PricePoint:
    """Spot value of the token in USD.

    ``defaulted_fields`` names the auxiliary fields the provider omitted and
    that were filled with 0. ``error`` is set whenever ``is_fallback`` is.
    """

    usd: float
    observed_at_ms: int
    change_24h_pct: float = 0.0
    market_cap_usd: float = 0.0
    volume_24h_usd: float = 0.0
    is_fallback: bool = False
    source: PriceSource = PriceSource.DIRECT
    error: str | None = None
    defaulted_fields: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if self.usd < 0:
            raise ValueError(f"usd must be >= 0, got {self.usd}")


@dataclass(frozen=True)
class HistoryPoint:
    """One sample of a historical price series."""

    timestamp_ms: int
    price: float
    volume_usd: float = 0.0


@dataclass(frozen=True)
class PriceSeries:
    """Historical price series for one chart period, ordered by timestamp."""

    points: tuple[HistoryPoint, ...]
    period: ChartPeriod
    currency: str = "usd"
    is_fallback: bool = False
    error: str | None = None

    def __post_init__(self) -> None:
        timestamps = [p.timestamp_ms for p in self.points]
        if any(a > b for a, b in zip(timestamps, timestamps[1:])):
            raise ValueError("points must be ordered by non-decreasing timestamp")

    def __len__(self) -> int:
        return len(self.points)


@dataclass(frozen=True)
class HealthStatus:
    """Result of the latest provider liveness probe."""

    is_healthy: bool
    last_check_ms: int
    response_time_ms: int | None = None
    error: str | None = None


@dataclass(frozen=True)
class ConversionResult:
    """Token/fiat conversion at a given rate. Derived, never persisted."""

    token_amount: float
    fiat_amount: float
    rate: float
    rate_observed_at_ms: int


@dataclass(frozen=True)
class PriceAlert:
    """Transient notice that the spot price moved past a threshold."""

    direction: AlertDirection
    old_price: float
    new_price: float
    change_pct: float
    raised_at_ms: int = 0
