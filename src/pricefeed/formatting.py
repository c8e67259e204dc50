"""Display formatting for prices, changes and amounts."""

from typing import Literal

Currency = Literal["USD", "G$", "CELO"]


def _trim_fraction(text: str) -> str:
    """Drop trailing zeros (and a bare trailing dot) from a fixed-point string."""
    if "." not in text:
        return text
    return text.rstrip("0").rstrip(".")


def format_price(value: float) -> str:
    """Format a token price: exponent form below 0.001, else 6 decimals.

    >>> format_price(0.0000712)
    '7.120e-5'
    >>> format_price(0.0123)
    '0.012300'
    """
    if value < 0.001:
        mantissa, exponent = f"{value:.3e}".split("e")
        return f"{mantissa}e{int(exponent):+d}"
    return f"{value:.6f}"


def format_change(change_pct: float) -> str:
    """Signed percentage with two decimals, e.g. ``+1.50%``."""
    sign = "+" if change_pct >= 0 else ""
    return f"{sign}{change_pct:.2f}%"


def format_last_updated(updated_ms: int | None, now_ms: int) -> str:
    """Relative age of a price, e.g. ``3 minutes ago``."""
    if not updated_ms:
        return ""
    minutes = (now_ms - updated_ms) // 60_000
    if minutes < 1:
        return "Just now"
    if minutes == 1:
        return "1 minute ago"
    if minutes < 60:
        return f"{minutes} minutes ago"
    hours = minutes // 60
    if hours == 1:
        return "1 hour ago"
    return f"{hours} hours ago"


def format_currency(amount: float, currency: Currency = "USD") -> str:
    """Format an amount in USD, G$ or CELO.

    >>> format_currency(1234.56)
    '$1,234.56'
    >>> format_currency(1000.123456, "G$")
    '1,000.12 G$'
    """
    if currency == "G$":
        return f"{_trim_fraction(f'{amount:,.2f}')} G$"
    if currency == "CELO":
        return f"{_trim_fraction(f'{amount:,.4f}')} CELO"
    if amount < 0:
        return f"-${-amount:,.2f}"
    return f"${amount:,.2f}"


def format_compact_usd(value: float) -> str:
    """Millions with two decimals, for market cap and volume: ``$1.23M``."""
    return f"${value / 1_000_000:.2f}M"
