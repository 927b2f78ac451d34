"""Redis cache layer for market data.

Provides the primitives used by the market-data cache:
- Sorted sets scored by timestamp (price bars, order-book snapshots)
- Key scanning for the retention sweep

Every operation degrades to a no-op when Redis is unavailable, so the
engine keeps running without a cache.
"""

from __future__ import annotations

import logging

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from signal_monitor.config import get_settings

logger = logging.getLogger(__name__)

# Global connection pool
_pool: ConnectionPool | None = None
_client: redis.Redis | None = None


# =============================================================================
# Key prefixes for different data types
# =============================================================================

KEY_PREFIX_KLINES = "klines:"        # Price bars: klines:{symbol}:{interval}
KEY_PREFIX_ORDERBOOK = "orderbook:"  # Order-book snapshots: orderbook:{symbol}


# =============================================================================
# Connection management
# =============================================================================

async def init_cache(url: str | None = None) -> None:
    """Initialize Redis connection pool."""
    global _pool, _client

    if _client is not None:
        return

    redis_url = url or get_settings().redis_url
    _pool = ConnectionPool.from_url(
        redis_url,
        max_connections=20,
        decode_responses=False,  # Members are orjson bytes
    )
    _client = redis.Redis(connection_pool=_pool)

    # Test connection
    try:
        await _client.ping()
        logger.info(f"Redis connected: {redis_url}")
    except (redis.ConnectionError, OSError) as e:
        logger.warning(f"Redis connection failed: {e}. Cache will be disabled.")
        await _pool.disconnect()
        _client = None
        _pool = None


async def close_cache() -> None:
    """Close Redis connection pool."""
    global _pool, _client

    if _client is not None:
        await _client.aclose()
        _client = None

    if _pool is not None:
        await _pool.disconnect()
        _pool = None

    logger.info("Redis connection closed")


def is_cache_available() -> bool:
    """Check if cache is available."""
    return _client is not None


# =============================================================================
# Sorted set operations (time series scored by timestamp)
# =============================================================================

async def zadd(key: str, mapping: dict[bytes, float]) -> int:
    """Add members with scores to a sorted set.

    Returns:
        Number of new members added
    """
    if _client is None or not mapping:
        return 0

    try:
        return await _client.zadd(key, mapping)
    except redis.RedisError as e:
        logger.warning(f"Redis ZADD error: {e}")
        return 0


async def replace_sorted_set(key: str, mapping: dict[bytes, float]) -> bool:
    """Atomically replace the whole content of a sorted set."""
    if _client is None:
        return False

    try:
        async with _client.pipeline(transaction=True) as pipe:
            pipe.delete(key)
            if mapping:
                pipe.zadd(key, mapping)
            await pipe.execute()
        return True
    except redis.RedisError as e:
        logger.warning(f"Redis sorted set replace error: {e}")
        return False


async def zrangebyscore(key: str, min_score: float | str, max_score: float | str) -> list[bytes]:
    """Members with min_score <= score <= max_score, ascending."""
    if _client is None:
        return []

    try:
        return await _client.zrangebyscore(key, min_score, max_score)
    except redis.RedisError as e:
        logger.warning(f"Redis ZRANGEBYSCORE error: {e}")
        return []


async def zlast(key: str) -> bytes | None:
    """Highest-scored member of a sorted set."""
    if _client is None:
        return None

    try:
        result = await _client.zrange(key, -1, -1)
        return result[0] if result else None
    except redis.RedisError as e:
        logger.warning(f"Redis ZRANGE error: {e}")
        return None


async def zremrangebyscore(key: str, min_score: float | str, max_score: float | str) -> int:
    """Remove members scored within [min_score, max_score].

    Returns:
        Number of members removed
    """
    if _client is None:
        return 0

    try:
        return await _client.zremrangebyscore(key, min_score, max_score)
    except redis.RedisError as e:
        logger.warning(f"Redis ZREMRANGEBYSCORE error: {e}")
        return 0


async def scan_keys(pattern: str) -> list[str]:
    """All keys matching a pattern (e.g. "klines:*")."""
    if _client is None:
        return []

    try:
        keys = []
        async for key in _client.scan_iter(match=pattern):
            keys.append(key.decode() if isinstance(key, bytes) else key)
        return keys
    except redis.RedisError as e:
        logger.warning(f"Redis SCAN error: {e}")
        return []


# =============================================================================
# Health check
# =============================================================================

async def ping() -> bool:
    """Check if Redis is responsive."""
    if _client is None:
        return False

    try:
        return await _client.ping()
    except redis.RedisError:
        return False
