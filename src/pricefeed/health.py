"""Price provider health monitor.

Probes the proxy endpoint with a HEAD request and, if that probe raises,
the upstream provider's ``/ping`` endpoint. A probe is healthy only if it
succeeded AND answered within the latency threshold. Independent of the
oracle's cache and failure ledger: a healthy provider and a cached
fallback price can coexist.
"""

import asyncio

from pricefeed.clock import Clock, monotonic_ms, wall_clock_ms
from pricefeed.config import HealthSettings, ProviderSettings
from pricefeed.exceptions import TransportError
from pricefeed.logging import get_logger
from pricefeed.models import HealthStatus
from pricefeed.transport.client import HttpClient
from pricefeed.transport.types import HttpResponse

logger = get_logger(__name__)

SLOW_OR_FAILED = "API response too slow or failed"


class HealthMonitor:
    """Checks provider reachability and responsiveness.

    ``check_health()`` runs one probe on demand; ``start()`` runs probes
    periodically in a background task until ``stop()``.

    Args:
        http: Transport used for probes.
        provider: Proxy URL and upstream base URL.
        settings: Probe timeout, latency threshold and check interval.
        clock: Wall clock for ``last_check_ms``.
        timer: Clock for measuring probe latency.
    """

    def __init__(
        self,
        http: HttpClient,
        provider: ProviderSettings,
        settings: HealthSettings,
        clock: Clock = wall_clock_ms,
        timer: Clock = monotonic_ms,
    ) -> None:
        self._http = http
        self._proxy_url = provider.proxy_url
        self._ping_url = f"{provider.base_url.rstrip('/')}/ping"
        self._settings = settings
        self._clock = clock
        self._timer = timer
        self._status = HealthStatus(is_healthy=True, last_check_ms=0)
        self._running = False
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    @property
    def is_running(self) -> bool:
        return self._running

    def get_status(self) -> HealthStatus:
        """Return the result of the most recent check (optimistic before the first)."""
        return self._status

    async def check_health(self) -> HealthStatus:
        """Probe the provider once and store the result. Never raises on network failure."""
        started = self._timer()
        try:
            response = await self._probe()
        except (TransportError, asyncio.TimeoutError) as e:
            elapsed = self._timer() - started
            status = HealthStatus(
                is_healthy=False,
                last_check_ms=self._clock(),
                response_time_ms=elapsed,
                error=str(e) or "Health probe timed out",
            )
        else:
            elapsed = self._timer() - started
            is_healthy = response.ok and elapsed < self._settings.latency_threshold_ms
            status = HealthStatus(
                is_healthy=is_healthy,
                last_check_ms=self._clock(),
                response_time_ms=elapsed,
                error=None if is_healthy else SLOW_OR_FAILED,
            )

        if status.is_healthy != self._status.is_healthy:
            logger.info(
                "provider_health_changed",
                is_healthy=status.is_healthy,
                response_time_ms=status.response_time_ms,
                error=status.error,
            )
        self._status = status
        logger.debug(
            "health_check_completed",
            is_healthy=status.is_healthy,
            response_time_ms=status.response_time_ms,
        )
        return status

    async def _probe(self) -> HttpResponse:
        timeout = self._settings.probe_timeout_seconds
        try:
            return await asyncio.wait_for(self._http.head(self._proxy_url, timeout=timeout), timeout)
        except (TransportError, asyncio.TimeoutError) as e:
            logger.debug("proxy_probe_failed_trying_ping", error=str(e))
        return await asyncio.wait_for(self._http.get(self._ping_url, timeout=timeout), timeout)

    # ──────────────────────────────────────────────
    # Periodic checking
    # ──────────────────────────────────────────────

    async def start(self) -> None:
        """Begin periodic health checks in the background."""
        if self._running:
            logger.warning("health_monitor_already_running")
            return
        self._running = True
        self._task = asyncio.create_task(self._check_loop())
        logger.info("health_monitor_started", interval=self._settings.check_interval_seconds)

    async def stop(self) -> None:
        """Stop periodic health checks."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("health_monitor_stopped")

    async def _check_loop(self) -> None:
        while self._running:
            try:
                await self.check_health()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning("health_check_error", exc_info=True)
            if self._running:
                await asyncio.sleep(self._settings.check_interval_seconds)
