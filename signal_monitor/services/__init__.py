"""Business services."""

from signal_monitor.services.fetcher import PriceBarFetcher
from signal_monitor.services.monitor import InstrumentState, TradingMonitor
from signal_monitor.services.retention import RetentionSweeper
from signal_monitor.services.scheduler import PollingScheduler
from signal_monitor.services.watchlist import WatchListTracker

__all__ = [
    "PriceBarFetcher",
    "TradingMonitor",
    "InstrumentState",
    "RetentionSweeper",
    "PollingScheduler",
    "WatchListTracker",
]
