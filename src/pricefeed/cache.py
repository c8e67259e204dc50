"""In-memory TTL cache and consecutive-failure ledger for the price oracle.

Both are plain per-instance state injected into the oracle. The oracle runs
on a single event loop and never awaits between a read and a write of
either structure, so no locking is needed.
"""

from typing import Any

from pricefeed.clock import Clock, wall_clock_ms
from pricefeed.logging import get_logger

logger = get_logger(__name__)

CURRENT_PRICE_KEY = "current-price"


def historical_key(period: str) -> str:
    """Cache key for a historical series of the given period."""
    return f"historical-{period}"


class CacheStore:
    """Key -> (value, stored_at_ms) map with a fixed time-to-live.

    Args:
        ttl_ms: Entry lifetime in milliseconds.
        clock: Millisecond clock used for timestamps and expiry.
    """

    def __init__(self, ttl_ms: int, clock: Clock = wall_clock_ms) -> None:
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._entries: dict[str, tuple[Any, int]] = {}

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if absent or older than the TTL."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self._clock() - stored_at < self._ttl_ms:
            return value
        return None

    def put(self, key: str, value: Any) -> None:
        """Store a value stamped with the current time, overwriting any entry."""
        self._entries[key] = (value, self._clock())

    def stored_at(self, key: str) -> int | None:
        """Return when the key was last stored, expired or not."""
        entry = self._entries.get(key)
        return entry[1] if entry is not None else None

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class FailureLedger:
    """Per-key count of consecutive fetch failures.

    Observability only: the oracle's fallback behaviour does not depend on it.
    """

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}

    def record_failure(self, key: str) -> int:
        """Increment and return the consecutive failure count for a key."""
        count = self._counts.get(key, 0) + 1
        self._counts[key] = count
        if count > 1:
            logger.debug("consecutive_fetch_failures", key=key, count=count)
        return count

    def record_success(self, key: str) -> None:
        self._counts.pop(key, None)

    def get(self, key: str) -> int:
        return self._counts.get(key, 0)

    def snapshot(self) -> dict[str, int]:
        """Return a copy of all non-zero counters."""
        return dict(self._counts)

    def clear(self) -> None:
        self._counts.clear()
