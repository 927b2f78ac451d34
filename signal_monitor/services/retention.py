"""Periodic time-boundary eviction of cached market data."""

import asyncio
import logging
from typing import Awaitable, Callable

from signal_monitor.storage import market_cache

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_MS = market_cache.DEFAULT_MAX_AGE_MS
DEFAULT_SWEEP_INTERVAL_SECONDS = 24 * 60 * 60


class RetentionSweeper:
    """Runs market_cache.cleanup_old_data() on a fixed interval."""

    def __init__(
        self,
        max_age_ms: int = DEFAULT_RETENTION_MS,
        interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ):
        self.max_age_ms = max_age_ms
        self.interval = interval
        self._sleep = sleep or asyncio.sleep
        self._task: asyncio.Task | None = None

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def sweep(self) -> int:
        """Run one eviction pass now."""
        return await market_cache.cleanup_old_data(self.max_age_ms)

    async def _run(self) -> None:
        while True:
            await self._sleep(self.interval)
            try:
                await self.sweep()
            except Exception as e:
                logger.warning(f"Market data cleanup error: {e}")
