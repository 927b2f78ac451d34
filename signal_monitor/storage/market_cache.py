"""Market-data cache for price bars and order-book snapshots.

Data structure:
- klines:{symbol}:{interval} -> sorted set of JSON bars, scored by bar time (ms)
- orderbook:{symbol}         -> sorted set of JSON snapshots, scored by capture time (ms)

Old entries are evicted by time boundary with cleanup_old_data(), which the
RetentionSweeper runs periodically.
"""

from __future__ import annotations

import logging
import time

import orjson
from pydantic import ValidationError

from signal_core.models import OrderBookSnapshot, PriceBar
from signal_monitor.storage import cache

logger = logging.getLogger(__name__)

# Default retention for cached market data (7 days)
DEFAULT_MAX_AGE_MS = 7 * 24 * 60 * 60 * 1000


def _klines_key(symbol: str, interval: str) -> str:
    return f"{cache.KEY_PREFIX_KLINES}{symbol}:{interval}"


def _orderbook_key(symbol: str) -> str:
    return f"{cache.KEY_PREFIX_ORDERBOOK}{symbol}"


def _now_ms() -> int:
    return int(time.time() * 1000)


async def store_klines(symbol: str, interval: str, bars: list[PriceBar]) -> bool:
    """Replace the cached bars for a symbol/interval with ``bars``.

    Returns:
        True if stored successfully
    """
    if not cache.is_cache_available():
        return False

    mapping = {orjson.dumps(bar.model_dump()): float(bar.time) for bar in bars}
    stored = await cache.replace_sorted_set(_klines_key(symbol, interval), mapping)
    if stored:
        logger.debug(f"Cached {len(bars)} {interval} bars for {symbol}")
    return stored


async def get_klines(
    symbol: str,
    interval: str,
    start_time: int,
    end_time: int,
) -> list[PriceBar]:
    """Cached bars with start_time <= time <= end_time, oldest first."""
    raw = await cache.zrangebyscore(_klines_key(symbol, interval), start_time, end_time)

    bars = []
    for item in raw:
        try:
            bars.append(PriceBar(**orjson.loads(item)))
        except (orjson.JSONDecodeError, TypeError, ValidationError) as e:
            logger.warning(f"Skipping unreadable cached bar for {symbol}: {e}")
    return bars


async def store_order_book(snapshot: OrderBookSnapshot) -> bool:
    """Append an order-book snapshot to the symbol's series."""
    if not cache.is_cache_available():
        return False

    data = orjson.dumps(snapshot.model_dump())
    added = await cache.zadd(
        _orderbook_key(snapshot.instrument_id), {data: float(snapshot.timestamp)}
    )
    return added > 0


async def get_latest_order_book(symbol: str) -> OrderBookSnapshot | None:
    """Most recent cached snapshot for a symbol, if any."""
    raw = await cache.zlast(_orderbook_key(symbol))
    if raw is None:
        return None

    try:
        return OrderBookSnapshot(**orjson.loads(raw))
    except (orjson.JSONDecodeError, TypeError, ValidationError) as e:
        logger.warning(f"Unreadable cached order book for {symbol}: {e}")
        return None


async def cleanup_old_data(
    max_age_ms: int = DEFAULT_MAX_AGE_MS,
    now_ms: int | None = None,
) -> int:
    """Evict bars and snapshots older than ``max_age_ms``.

    Returns:
        Number of entries removed
    """
    if not cache.is_cache_available():
        return 0

    cutoff = (now_ms if now_ms is not None else _now_ms()) - max_age_ms
    removed = 0

    for prefix in (cache.KEY_PREFIX_KLINES, cache.KEY_PREFIX_ORDERBOOK):
        for key in await cache.scan_keys(f"{prefix}*"):
            # Exclusive upper bound: entries exactly at the cutoff are kept
            removed += await cache.zremrangebyscore(key, "-inf", f"({cutoff}")

    logger.info(f"Market data cleanup removed {removed} entries older than {cutoff}")
    return removed
