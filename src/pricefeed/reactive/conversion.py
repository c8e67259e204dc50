"""Token/fiat conversion helpers for consumers of a spot subscription.

Previews are synchronous and use the subscription's last price, for display
while typing. The async conversions go through the oracle and return a full
ConversionResult. Negative amounts yield None, never a negative value.
"""

from pricefeed.logging import get_logger
from pricefeed.models import ConversionResult
from pricefeed.oracle.service import PriceOracle
from pricefeed.reactive.subscription import SpotPriceSubscription

logger = get_logger(__name__)


class PriceConverter:
    def __init__(self, oracle: PriceOracle, subscription: SpotPriceSubscription) -> None:
        self._oracle = oracle
        self._subscription = subscription
        self._converting = 0

    @property
    def rate(self) -> float:
        """Last observed USD price, 0 before the first observation."""
        price = self._subscription.price
        return price.usd if price is not None else 0.0

    @property
    def is_loading(self) -> bool:
        return self._subscription.is_loading or self._converting > 0

    def to_fiat_preview(self, token_amount: float) -> float | None:
        if token_amount < 0:
            return None
        return token_amount * self.rate

    def to_token_preview(self, fiat_amount: float) -> float | None:
        if fiat_amount < 0:
            return None
        rate = self.rate
        if rate == 0:
            return 0.0
        return fiat_amount / rate

    async def to_fiat(self, token_amount: float) -> ConversionResult | None:
        if token_amount < 0:
            return None
        return await self._quote(token_amount=token_amount)

    async def to_token(self, fiat_amount: float) -> ConversionResult | None:
        if fiat_amount < 0:
            return None
        return await self._quote(fiat_amount=fiat_amount)

    async def _quote(self, **amount: float) -> ConversionResult:
        self._converting += 1
        try:
            result = await self._oracle.quote(**amount)
        finally:
            self._converting -= 1
        logger.debug("conversion_quoted", rate=result.rate, **amount)
        return result
