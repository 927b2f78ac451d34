"""Bounded per-instrument history of emitted signals."""

import logging
from collections import deque
from typing import Callable

from signal_core.models import TradingSignal

logger = logging.getLogger(__name__)

# Signals retained per instrument (oldest evicted first)
DEFAULT_HISTORY_SIZE = 100

SignalHook = Callable[[TradingSignal], None]


class SignalHistory:
    """Append-only FIFO buffer per instrument plus a single notification hook.

    The hook is called synchronously right after each successful record,
    once per signal, in emission order.
    """

    def __init__(self, max_size: int = DEFAULT_HISTORY_SIZE):
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self._buffers: dict[str, deque[TradingSignal]] = {}
        self._hook: SignalHook | None = None

    def on_signal(self, callback: SignalHook | None) -> None:
        """Register the notification hook, replacing any previous one."""
        self._hook = callback

    def record(self, instrument_id: str, signal: TradingSignal) -> None:
        """Append a signal, evicting the oldest one beyond max_size."""
        buffer = self._buffers.get(instrument_id)
        if buffer is None:
            buffer = deque(maxlen=self.max_size)
            self._buffers[instrument_id] = buffer
        buffer.append(signal)

        if self._hook is not None:
            try:
                self._hook(signal)
            except Exception as e:
                logger.error(f"Signal hook error for {instrument_id}: {e}")

    def query(self, instrument_id: str, count: int = 10) -> list[TradingSignal]:
        """Most recent ``count`` signals, oldest of the slice first."""
        buffer = self._buffers.get(instrument_id)
        if not buffer or count <= 0:
            return []
        return list(buffer)[-count:]

    def size(self, instrument_id: str) -> int:
        buffer = self._buffers.get(instrument_id)
        return len(buffer) if buffer else 0

    def instruments(self) -> list[str]:
        """Instruments that have at least one recorded signal."""
        return [k for k, v in self._buffers.items() if v]
