"""Exchange clients."""

from signal_monitor.clients.binance_rest import (
    BinanceRestClient,
    RateLimiter,
    parse_depth,
    parse_klines,
)

__all__ = [
    "BinanceRestClient",
    "RateLimiter",
    "parse_klines",
    "parse_depth",
]
