"""Payload parsing for the provider's simple-price and market-chart responses.

Auxiliary spot fields the provider omits are filled with 0 by an explicit
step (fill_price_defaults) that reports which fields it filled, so callers
can tell a real 0% change from a missing one.
"""

import math
from typing import Any

from pricefeed.exceptions import MalformedResponseError
from pricefeed.models import HistoryPoint, PricePoint, PriceSource

# upstream key -> PricePoint attribute
AUXILIARY_FIELDS: dict[str, str] = {
    "usd_24h_change": "change_24h_pct",
    "usd_market_cap": "market_cap_usd",
    "usd_24h_vol": "volume_24h_usd",
}

PROXY_FALLBACK_FLAG = "_fallback"
PROXY_ERROR_FIELD = "_error"


def _as_number(value: Any) -> float | None:
    """Return value as a finite float, or None if it is not one."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return number


def fill_price_defaults(raw: dict[str, Any]) -> tuple[dict[str, float], frozenset[str]]:
    """Extract the auxiliary spot fields, defaulting missing ones to 0.

    A field counts as missing when absent, null, non-numeric, NaN or infinite.

    Returns:
        (values keyed by PricePoint attribute, names of the defaulted attributes)
    """
    values: dict[str, float] = {}
    defaulted: set[str] = set()
    for upstream_key, attr in AUXILIARY_FIELDS.items():
        number = _as_number(raw.get(upstream_key))
        if number is None:
            values[attr] = 0.0
            defaulted.add(attr)
        else:
            values[attr] = number
    return values, frozenset(defaulted)


def parse_simple_price(
    body: Any,
    token_id: str,
    source: PriceSource,
    observed_at_ms: int,
) -> PricePoint:
    """Build a PricePoint from a ``/simple/price``-shaped body.

    Bodies produced by the proxy's own fallback path (``_fallback: true``)
    become fallback PricePoints carrying the proxy's error message.

    Raises:
        MalformedResponseError: token missing, or ``usd`` missing/negative.
    """
    if not isinstance(body, dict):
        raise MalformedResponseError("Price response is not a JSON object")

    token_data = body.get(token_id)
    if not isinstance(token_data, dict):
        raise MalformedResponseError(f"Price data for {token_id!r} not found")

    usd = _as_number(token_data.get("usd"))
    if usd is None:
        raise MalformedResponseError(f"Price data for {token_id!r} has no usd value")
    if usd < 0:
        raise MalformedResponseError(f"Negative usd price for {token_id!r}: {usd}")

    auxiliary, defaulted = fill_price_defaults(token_data)

    if token_data.get(PROXY_FALLBACK_FLAG) is True:
        return PricePoint(
            usd=usd,
            observed_at_ms=observed_at_ms,
            is_fallback=True,
            source=PriceSource.PROXY_FALLBACK,
            error=str(token_data.get(PROXY_ERROR_FIELD) or "Proxy returned fallback price"),
            defaulted_fields=defaulted,
            **auxiliary,
        )

    return PricePoint(
        usd=usd,
        observed_at_ms=observed_at_ms,
        source=source,
        defaulted_fields=defaulted,
        **auxiliary,
    )


def _parse_pair(pair: Any) -> tuple[int, float] | None:
    if not isinstance(pair, (list, tuple)) or len(pair) < 2:
        return None
    ts = _as_number(pair[0])
    value = _as_number(pair[1])
    if ts is None or value is None:
        return None
    return int(ts), value


def parse_market_chart(body: Any) -> list[HistoryPoint]:
    """Build history points from a ``/market_chart``-shaped body.

    The parallel ``total_volumes`` series is joined on exact timestamp;
    unmatched points get volume 0. Malformed pairs are skipped and the result
    is sorted by timestamp.

    Raises:
        MalformedResponseError: ``prices`` missing or not an array.
    """
    if not isinstance(body, dict) or not isinstance(body.get("prices"), list):
        raise MalformedResponseError("Invalid historical price data format")

    volumes: dict[int, float] = {}
    raw_volumes = body.get("total_volumes")
    if isinstance(raw_volumes, list):
        for pair in raw_volumes:
            parsed = _parse_pair(pair)
            if parsed is not None:
                # first sample per timestamp wins
                volumes.setdefault(parsed[0], parsed[1])

    points = []
    for pair in body["prices"]:
        parsed = _parse_pair(pair)
        if parsed is None:
            continue
        ts, price = parsed
        points.append(HistoryPoint(timestamp_ms=ts, price=price, volume_usd=volumes.get(ts, 0.0)))

    points.sort(key=lambda p: p.timestamp_ms)
    return points
