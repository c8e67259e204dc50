"""Millisecond clocks.

Components take a ``Clock`` callable instead of reading the time directly so
tests can drive TTL expiry and probe latency with a fake clock.
"""

import time
from collections.abc import Callable

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    """Unix time in milliseconds."""
    return int(time.time() * 1000)


def monotonic_ms() -> int:
    """Monotonic time in milliseconds, for measuring elapsed time."""
    return int(time.monotonic() * 1000)
