"""Threshold-based price change alerts.

Compares each newly observed spot price with the previous observation.
A move of at least ``threshold_pct`` percent raises a PriceAlert that clears
itself after ``display_seconds``. Only one alert is held; a newer one
replaces it and restarts the display timer.
"""

import asyncio

from pricefeed.clock import Clock, wall_clock_ms
from pricefeed.logging import get_logger
from pricefeed.models import AlertDirection, PriceAlert, PricePoint
from pricefeed.reactive.subscription import SpotPriceSubscription

logger = get_logger(__name__)


def percent_change(old_price: float, new_price: float) -> float:
    """Percentage move from old_price to new_price. old_price must be non-zero."""
    return (new_price - old_price) / old_price * 100


class PriceChangeMonitor:
    """Raises transient alerts on large moves between consecutive prices.

    Fallback prices are ignored and do not replace the previous price, so a
    drop from a live price to the configured fallback raises no alert. This
    deliberately differs from comparing every observed price: an estimate
    against a live price would report a move that never happened.

    Args:
        threshold_pct: Minimum absolute move in percent; None or 0 disables alerts.
        display_seconds: How long an alert stays before clearing itself.
        clock: Millisecond wall clock for ``raised_at_ms``.
    """

    def __init__(
        self,
        threshold_pct: float | None,
        display_seconds: float = 5.0,
        clock: Clock = wall_clock_ms,
    ) -> None:
        self._threshold = threshold_pct
        self._display_seconds = display_seconds
        self._clock = clock
        self._previous: float | None = None
        self._alert: PriceAlert | None = None
        self._expiry: asyncio.TimerHandle | None = None

    @property
    def alert(self) -> PriceAlert | None:
        return self._alert

    @property
    def previous_price(self) -> float | None:
        return self._previous

    def attach(self, subscription: SpotPriceSubscription) -> None:
        """Observe every price the subscription produces."""
        subscription.add_listener(self.observe)

    def observe(self, point: PricePoint) -> PriceAlert | None:
        """Record a new observation; returns the alert it raised, if any.

        Must be called from within the running event loop when alerts are enabled.
        """
        if point.is_fallback:
            return None

        old_price, self._previous = self._previous, point.usd
        if old_price is None or not self._threshold or old_price == 0:
            return None

        change = percent_change(old_price, point.usd)
        if abs(change) < self._threshold:
            return None

        alert = PriceAlert(
            direction=AlertDirection.INCREASE if change > 0 else AlertDirection.DECREASE,
            old_price=old_price,
            new_price=point.usd,
            change_pct=change,
            raised_at_ms=self._clock(),
        )
        self._set_alert(alert)
        logger.info(
            "price_alert_raised",
            direction=alert.direction.value,
            old_price=old_price,
            new_price=point.usd,
            change_pct=round(change, 4),
        )
        return alert

    def clear_alert(self) -> None:
        self._cancel_expiry()
        self._alert = None

    def close(self) -> None:
        """Cancel the pending self-clear timer."""
        self._cancel_expiry()

    def _set_alert(self, alert: PriceAlert) -> None:
        self._cancel_expiry()
        self._alert = alert
        loop = asyncio.get_running_loop()
        self._expiry = loop.call_later(self._display_seconds, self._expire, alert)

    def _expire(self, alert: PriceAlert) -> None:
        if self._alert is alert:
            self._alert = None
        self._expiry = None

    def _cancel_expiry(self) -> None:
        if self._expiry is not None:
            self._expiry.cancel()
            self._expiry = None
