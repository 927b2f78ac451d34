"""Data storage layer."""

from signal_monitor.storage import cache
from signal_monitor.storage import market_cache

__all__ = [
    "cache",
    "market_cache",
]
