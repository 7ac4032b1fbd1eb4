"""
Periodic price cache statistics logger.
"""

import asyncio

import structlog

from .price_cache import PriceCache

logger = structlog.get_logger(__name__)


class PriceCacheMonitor:
    """Logs PriceCache stats on a fixed interval from a background task."""

    def __init__(self, cache: PriceCache, interval_seconds: float = 60.0):
        self._cache = cache
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def log_stats(self) -> None:
        """Log one stats sample. Store errors are logged, not raised."""
        try:
            stats = await self._cache.get_stats()
        except Exception as e:
            logger.error("price_cache_stats_failed", error=str(e))
            return

        logger.info(
            "price_cache_stats",
            total_keys=stats["total_keys"],
            keys=stats["keys"],
        )

    async def _run(self) -> None:
        while True:
            await self.log_stats()
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        """Start the background task (no-op if already running)."""
        if self.is_running:
            logger.warning("price_cache_monitor_already_running")
            return

        self._task = asyncio.create_task(self._run())
        logger.info("price_cache_monitor_started", interval=self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the background task and wait for it to finish."""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("price_cache_monitor_stopped")
