"""Watch list tracking driven by favorites changes."""

import logging
from typing import Callable, Iterable

logger = logging.getLogger(__name__)


class WatchListTracker:
    """Maintains the set of instruments under periodic evaluation.

    Each favorites change replaces the watch set. Instruments seen for the
    first time (no per-instrument state yet) are handed to ``on_added``
    exactly once. Instruments dropped from favorites simply stop being
    watched; their state and signal history are left untouched.
    """

    def __init__(
        self,
        on_added: Callable[[str], None],
        has_state: Callable[[str], bool],
    ):
        self._on_added = on_added
        self._has_state = has_state
        # dict keeps favorites order and collapses duplicates
        self._watch_set: dict[str, None] = {}

    @property
    def watch_set(self) -> list[str]:
        return list(self._watch_set)

    def __contains__(self, instrument_id: str) -> bool:
        return instrument_id in self._watch_set

    def __len__(self) -> int:
        return len(self._watch_set)

    def sync(self, favorites: Iterable[str]) -> list[str]:
        """Replace the watch set with ``favorites``.

        Returns:
            Instruments that were started by this call
        """
        previous = self._watch_set
        self._watch_set = dict.fromkeys(favorites)

        removed = [s for s in previous if s not in self._watch_set]
        if removed:
            logger.info(f"No longer watching: {', '.join(removed)}")

        started = []
        for instrument_id in self._watch_set:
            if not self._has_state(instrument_id):
                started.append(instrument_id)
                self._on_added(instrument_id)

        if started:
            logger.info(f"Started monitoring: {', '.join(started)}")
        return started
