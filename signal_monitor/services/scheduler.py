"""Fixed-rate polling scheduler.

One asyncio timer drives all periodic work. Every tick enumerates the
current targets once and dispatches an independent task per instrument.
A failing task is logged and never affects its siblings, the loop, or
later ticks. Started tasks are never cancelled by the scheduler.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Coroutine, Iterable

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0

Dispatch = Callable[[str], Coroutine[Any, Any, Any]]


class PollingScheduler:
    """Deadline-based interval timer dispatching one task per target."""

    def __init__(
        self,
        targets: Callable[[], Iterable[str]],
        dispatch: Dispatch,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        clock: Callable[[], float] | None = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._targets = targets
        self._dispatch = dispatch
        self.interval = interval
        self._sleep = sleep or asyncio.sleep
        self._clock = clock
        self._loop_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()
        self.tick_count = 0

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def pending_tasks(self) -> set[asyncio.Task]:
        """Dispatched tasks that have not finished yet."""
        return set(self._tasks)

    def start(self) -> None:
        """Start the timer loop (requires a running event loop)."""
        if self.is_running:
            return
        self._loop_task = asyncio.create_task(self._run())
        logger.info(f"Polling scheduler started (interval={self.interval}s)")

    async def stop(self) -> None:
        """Stop ticking. In-flight tasks are left to complete."""
        if self._loop_task is None:
            return
        self._loop_task.cancel()
        try:
            await self._loop_task
        except asyncio.CancelledError:
            pass
        self._loop_task = None
        logger.info("Polling scheduler stopped")

    def tick(self) -> list[asyncio.Task]:
        """Dispatch one task per current target."""
        self.tick_count += 1
        tasks = []
        for instrument_id in list(self._targets()):
            task = asyncio.create_task(self._dispatch(instrument_id))
            task.set_name(f"evaluate:{instrument_id}")
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)
            tasks.append(task)
        logger.debug(f"Tick {self.tick_count}: dispatched {len(tasks)} evaluations")
        return tasks

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Task {task.get_name()} failed: {exc!r}")

    async def _run(self) -> None:
        clock = self._clock or asyncio.get_running_loop().time
        deadline = clock() + self.interval

        while True:
            await self._sleep(max(0.0, deadline - clock()))
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Scheduler tick error: {e}")

            deadline += self.interval
            now = clock()
            if deadline <= now:
                # Overran one or more periods: resume the cadence from now
                deadline = now + self.interval
