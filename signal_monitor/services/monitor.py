"""Trading monitor: the multi-indicator signal engine.

Wires the watch list, polling scheduler, indicator bank, classifier and
signal history around injected collaborators:

- fetch: async callable returning the latest price bars for an instrument,
  raising TransientFetchError on failure
- preferences: optional store whose subscribe(listener) pushes snapshots
  carrying the favorites list
- clock / sleep: time sources, replaceable in tests

Evaluation flow per instrument:
fetch bars -> IndicatorBank -> classify -> SignalHistory -> subscriber hook

The price-bar fetch is the only suspension point inside an evaluation.
While the one-shot start-up evaluation of an instrument is running,
periodic ticks skip that instrument. Periodic evaluations never block
later ticks: a slow fetch does not stop the next tick from dispatching.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol, Sequence

from signal_core.classifier import build_signal
from signal_core.errors import InsufficientDataError, TransientFetchError
from signal_core.history import DEFAULT_HISTORY_SIZE, SignalHistory, SignalHook
from signal_core.indicator_bank import MIN_BARS, IndicatorBank
from signal_core.models import IndicatorConfig, PriceBar, TradingSignal
from signal_monitor.services.scheduler import DEFAULT_INTERVAL_SECONDS, PollingScheduler
from signal_monitor.services.watchlist import WatchListTracker

logger = logging.getLogger(__name__)

FetchFunction = Callable[[str], Awaitable[Sequence[PriceBar]]]


class PreferenceSource(Protocol):
    """Anything that pushes preference snapshots with a ``favorites`` field."""

    def subscribe(self, listener: Callable[[Any], None]) -> Callable[[], None]:
        ...


@dataclass
class InstrumentState:
    """Per-instrument progress. Created on first monitoring, never removed."""

    last_update_time: int | None = None  # Unix ms of last successful evaluation
    evaluations: int = 0
    failures: int = 0


def _now_ms() -> int:
    return int(time.time() * 1000)


class TradingMonitor:
    """Periodically evaluates every watched instrument and records signals."""

    def __init__(
        self,
        fetch: FetchFunction,
        *,
        config: IndicatorConfig | None = None,
        preferences: PreferenceSource | None = None,
        update_interval: float = DEFAULT_INTERVAL_SECONDS,
        history_size: int = DEFAULT_HISTORY_SIZE,
        min_bars: int = MIN_BARS,
        clock: Callable[[], int] | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ):
        self.config = config or IndicatorConfig()
        self.bank = IndicatorBank(self.config, min_bars=min_bars)
        self.history = SignalHistory(max_size=history_size)

        self._fetch = fetch
        self._preferences = preferences
        self._clock = clock or _now_ms
        self._unsubscribe: Callable[[], None] | None = None

        self._states: dict[str, InstrumentState] = {}
        self._starting: set[str] = set()
        self._startup_tasks: set[asyncio.Task] = set()

        self.tracker = WatchListTracker(
            on_added=self._start_monitoring,
            has_state=self.has_state,
        )
        self.scheduler = PollingScheduler(
            targets=self._periodic_targets,
            dispatch=self._evaluate,
            interval=update_interval,
            sleep=sleep,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to preference changes and start the periodic timer."""
        if self._preferences is not None and self._unsubscribe is None:
            self._unsubscribe = self._preferences.subscribe(self._on_preferences)
        self.scheduler.start()

    async def stop(self) -> None:
        """Stop the timer and wait for evaluations already started."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self.scheduler.stop()

        pending = self._startup_tasks | self.scheduler.pending_tasks
        if pending:
            logger.info(f"Waiting for {len(pending)} in-flight evaluations")
            await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Watch list
    # ------------------------------------------------------------------

    def _on_preferences(self, prefs: Any) -> None:
        self.set_favorites(prefs.favorites)

    def set_favorites(self, favorites: Sequence[str]) -> list[str]:
        """Resynchronize the watch set with a favorites list.

        Returns:
            Instruments whose monitoring was started by this call
        """
        return self.tracker.sync(favorites)

    def has_state(self, instrument_id: str) -> bool:
        return instrument_id in self._states

    def _start_monitoring(self, instrument_id: str) -> None:
        """Create state and run one immediate evaluation."""
        self._states[instrument_id] = InstrumentState()
        self._starting.add(instrument_id)
        task = asyncio.create_task(self._run_startup(instrument_id))
        task.set_name(f"start:{instrument_id}")
        self._startup_tasks.add(task)
        task.add_done_callback(self._on_startup_done)

    async def _run_startup(self, instrument_id: str) -> TradingSignal | None:
        try:
            return await self._evaluate(instrument_id)
        finally:
            self._starting.discard(instrument_id)

    def _on_startup_done(self, task: asyncio.Task) -> None:
        self._startup_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Task {task.get_name()} failed: {exc!r}")

    def _periodic_targets(self) -> list[str]:
        targets = []
        for instrument_id in self.tracker.watch_set:
            if instrument_id in self._starting:
                logger.debug(f"{instrument_id}: start-up evaluation still running, skipping tick")
                continue
            targets.append(instrument_id)
        return targets

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    async def evaluate(self, instrument_id: str) -> TradingSignal | None:
        """Evaluate one instrument now.

        Never raises: fetch failures, short windows and unexpected errors are
        logged and yield None for this evaluation. Progress counters are kept
        only for monitored instruments; evaluating any other instrument does
        not start monitoring it.
        """
        return await self._evaluate(instrument_id)

    async def _evaluate(self, instrument_id: str) -> TradingSignal | None:
        state = self._states.get(instrument_id)
        if state is not None:
            state.evaluations += 1

        try:
            bars = await self._fetch(instrument_id)
            snapshot = self.bank.compute(bars)
            if snapshot is None:
                logger.info(f"Skipping {instrument_id}: incomplete indicator values")
                return None

            signal = build_signal(
                self.config,
                instrument_id,
                snapshot,
                bars[-1],
                timestamp=self._clock(),
            )
            if signal is not None:
                logger.info(
                    f"{signal.type.value.upper()} {instrument_id} @ {signal.price} "
                    f"({'; '.join(signal.reasons)})"
                )
                self.history.record(instrument_id, signal)
        except TransientFetchError as e:
            self._count_failure(state)
            logger.warning(f"Fetch failed for {instrument_id}: {e}")
            return None
        except InsufficientDataError as e:
            logger.info(f"Skipping {instrument_id}: {e}")
            return None
        except Exception:
            self._count_failure(state)
            logger.exception(f"Evaluation failed for {instrument_id}")
            return None

        if state is not None:
            state.last_update_time = self._clock()
        return signal

    @staticmethod
    def _count_failure(state: InstrumentState | None) -> None:
        if state is not None:
            state.failures += 1

    # ------------------------------------------------------------------
    # Query surface
    # ------------------------------------------------------------------

    def on_signal(self, callback: SignalHook | None) -> None:
        """Register the single signal subscriber (replaces any previous one)."""
        self.history.on_signal(callback)

    def get_recent_signals(self, instrument_id: str, count: int = 10) -> list[TradingSignal]:
        return self.history.query(instrument_id, count)

    def get_monitored_pairs(self) -> list[str]:
        return self.tracker.watch_set

    def get_last_update_time(self, instrument_id: str) -> int | None:
        state = self._states.get(instrument_id)
        return state.last_update_time if state else None

    def get_state(self, instrument_id: str) -> InstrumentState | None:
        return self._states.get(instrument_id)
