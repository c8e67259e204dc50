"""Debounced manual refresh.

Rapid repeated refresh() calls within the debounce delay collapse into a
single call of the wrapped refetch coroutine function.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from pricefeed.clock import Clock, wall_clock_ms
from pricefeed.logging import get_logger

logger = get_logger(__name__)


class DebouncedRefresher:
    """Runs ``refetch`` once per burst of refresh() calls.

    Each refresh() restarts the delay. A refetch that has already started is
    never cancelled by a later refresh(); that call schedules the next one.

    Args:
        refetch: Coroutine function performing the actual refresh.
        delay: Debounce delay in seconds.
        clock: Millisecond wall clock for ``last_refresh_ms``.
    """

    def __init__(
        self,
        refetch: Callable[[], Awaitable[Any]],
        delay: float = 0.3,
        clock: Clock = wall_clock_ms,
    ) -> None:
        self._refetch = refetch
        self._delay = delay
        self._clock = clock
        self._pending: asyncio.Task | None = None  # type: ignore[type-arg]
        self._running: set[asyncio.Task] = set()  # type: ignore[type-arg]
        self._is_refreshing = False
        self._refresh_count = 0
        self._last_refresh_ms: int | None = None

    @property
    def is_refreshing(self) -> bool:
        return self._is_refreshing

    @property
    def refresh_count(self) -> int:
        return self._refresh_count

    @property
    def last_refresh_ms(self) -> int | None:
        return self._last_refresh_ms

    @property
    def is_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def refresh(self) -> None:
        """Schedule a refresh after the debounce delay. Must run inside the event loop."""
        if self.is_pending:
            assert self._pending is not None
            self._pending.cancel()
        task = asyncio.create_task(self._run_after_delay())
        self._pending = task
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    async def flush(self) -> None:
        """Wait until every scheduled or running refresh has finished."""
        while True:
            unfinished = [task for task in self._running if not task.done()]
            if not unfinished:
                return
            await asyncio.gather(*unfinished, return_exceptions=True)

    async def cancel(self) -> None:
        """Cancel scheduled and running refreshes."""
        tasks = list(self._running)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._pending = None
        self._is_refreshing = False

    async def _run_after_delay(self) -> None:
        await asyncio.sleep(self._delay)
        # past the delay: later refresh() calls must not cancel this run
        if self._pending is asyncio.current_task():
            self._pending = None

        self._is_refreshing = True
        try:
            await self._refetch()
        except Exception:
            logger.error("price_refresh_failed", exc_info=True)
            return
        finally:
            self._is_refreshing = False

        self._last_refresh_ms = self._clock()
        self._refresh_count += 1
        logger.debug("price_refreshed", refresh_count=self._refresh_count)
