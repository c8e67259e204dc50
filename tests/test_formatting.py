"""Tests for display formatting helpers."""

import pytest

from pricefeed.formatting import (
    format_change,
    format_compact_usd,
    format_currency,
    format_last_updated,
    format_price,
)

NOW = 1_700_000_000_000


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0.0000712, "7.120e-5"),
        (0.0001, "1.000e-4"),
        (0.0123, "0.012300"),
        (1.5, "1.500000"),
    ],
)
def test_format_price(value: float, expected: str) -> None:
    assert format_price(value) == expected


@pytest.mark.parametrize(("change", "expected"), [(1.5, "+1.50%"), (0, "+0.00%"), (-2.346, "-2.35%")])
def test_format_change(change: float, expected: str) -> None:
    assert format_change(change) == expected


@pytest.mark.parametrize(
    ("age_ms", "expected"),
    [
        (30_000, "Just now"),
        (60_000, "1 minute ago"),
        (5 * 60_000, "5 minutes ago"),
        (60 * 60_000, "1 hour ago"),
        (3 * 60 * 60_000 + 59_000, "3 hours ago"),
    ],
)
def test_format_last_updated(age_ms: int, expected: str) -> None:
    assert format_last_updated(NOW - age_ms, NOW) == expected


def test_format_last_updated_never() -> None:
    assert format_last_updated(None, NOW) == ""


@pytest.mark.parametrize(
    ("amount", "currency", "expected"),
    [
        (1234.56, "USD", "$1,234.56"),
        (-3.5, "USD", "-$3.50"),
        (1000.123456, "G$", "1,000.12 G$"),
        (1000.0, "G$", "1,000 G$"),
        (5.123456, "CELO", "5.1235 CELO"),
    ],
)
def test_format_currency(amount: float, currency: str, expected: str) -> None:
    assert format_currency(amount, currency) == expected  # type: ignore[arg-type]


def test_format_compact_usd() -> None:
    assert format_compact_usd(1_234_567) == "$1.23M"
