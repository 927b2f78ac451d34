"""Tests for the market-data cache."""

import asyncio
from unittest.mock import AsyncMock, patch

import orjson
import pytest

from signal_core.models import OrderBookSnapshot
from signal_monitor.services.retention import RetentionSweeper
from signal_monitor.storage import market_cache

DAY_MS = 24 * 60 * 60 * 1000


@pytest.fixture
def book():
    return OrderBookSnapshot(
        instrument_id="BTCUSDT",
        timestamp=1_700_000_000_000,
        bids=((100.5, 2.0),),
        asks=((100.6, 1.0),),
    )


class TestKlines:
    """Tests for price-bar caching."""

    @pytest.mark.asyncio
    async def test_store_klines_replaces_series(self, make_bars):
        bars = make_bars([100.0, 101.0])

        with patch.object(market_cache.cache, "is_cache_available", return_value=True):
            with patch.object(market_cache.cache, "replace_sorted_set", new_callable=AsyncMock, return_value=True) as mock_replace:
                assert await market_cache.store_klines("BTCUSDT", "1h", bars)

        key, mapping = mock_replace.call_args.args
        assert key == "klines:BTCUSDT:1h"
        assert sorted(mapping.values()) == [float(bars[0].time), float(bars[1].time)]

    @pytest.mark.asyncio
    async def test_store_klines_without_cache(self, make_bars):
        with patch.object(market_cache.cache, "is_cache_available", return_value=False):
            assert await market_cache.store_klines("BTCUSDT", "1h", make_bars([1.0])) is False

    @pytest.mark.asyncio
    async def test_get_klines(self, make_bars):
        bars = make_bars([100.0, 101.0])
        raw = [orjson.dumps(b.model_dump()) for b in bars]

        with patch.object(market_cache.cache, "zrangebyscore", new_callable=AsyncMock, return_value=raw) as mock_range:
            result = await market_cache.get_klines("BTCUSDT", "1h", 0, 2_000_000_000_000)

        mock_range.assert_awaited_once_with("klines:BTCUSDT:1h", 0, 2_000_000_000_000)
        assert result == bars

    @pytest.mark.asyncio
    async def test_get_klines_skips_unreadable(self, make_bars):
        good = orjson.dumps(make_bars([100.0])[0].model_dump())

        with patch.object(market_cache.cache, "zrangebyscore", new_callable=AsyncMock, return_value=[b"garbage", good]):
            result = await market_cache.get_klines("BTCUSDT", "1h", 0, 1)

        assert len(result) == 1


class TestOrderBook:
    @pytest.mark.asyncio
    async def test_store_order_book(self, book):
        with patch.object(market_cache.cache, "is_cache_available", return_value=True):
            with patch.object(market_cache.cache, "zadd", new_callable=AsyncMock, return_value=1) as mock_zadd:
                assert await market_cache.store_order_book(book)

        key, mapping = mock_zadd.call_args.args
        assert key == "orderbook:BTCUSDT"
        assert list(mapping.values()) == [float(book.timestamp)]

    @pytest.mark.asyncio
    async def test_latest_order_book_round_trip(self, book):
        raw = orjson.dumps(book.model_dump())

        with patch.object(market_cache.cache, "zlast", new_callable=AsyncMock, return_value=raw):
            assert await market_cache.get_latest_order_book("BTCUSDT") == book

    @pytest.mark.asyncio
    async def test_latest_order_book_missing(self):
        with patch.object(market_cache.cache, "zlast", new_callable=AsyncMock, return_value=None):
            assert await market_cache.get_latest_order_book("BTCUSDT") is None


class TestCleanup:
    """Tests for time-boundary eviction."""

    @pytest.mark.asyncio
    async def test_cleanup_evicts_before_cutoff(self):
        now = 10 * DAY_MS
        keys = {
            "klines:*": ["klines:BTCUSDT:1h", "klines:ETHUSDT:1h"],
            "orderbook:*": ["orderbook:BTCUSDT"],
        }

        with patch.object(market_cache.cache, "is_cache_available", return_value=True), \
             patch.object(market_cache.cache, "scan_keys", new_callable=AsyncMock, side_effect=lambda p: keys[p]), \
             patch.object(market_cache.cache, "zremrangebyscore", new_callable=AsyncMock, return_value=2) as mock_rem:
            removed = await market_cache.cleanup_old_data(7 * DAY_MS, now_ms=now)

        assert removed == 6
        cutoff = 3 * DAY_MS
        mock_rem.assert_any_await("klines:BTCUSDT:1h", "-inf", f"({cutoff}")
        mock_rem.assert_any_await("orderbook:BTCUSDT", "-inf", f"({cutoff}")
        assert mock_rem.await_count == 3

    @pytest.mark.asyncio
    async def test_cleanup_without_cache(self):
        with patch.object(market_cache.cache, "is_cache_available", return_value=False):
            assert await market_cache.cleanup_old_data() == 0


class TestRetentionSweeper:
    @pytest.mark.asyncio
    async def test_sweep_uses_retention(self):
        sweeper = RetentionSweeper(max_age_ms=DAY_MS)

        with patch.object(market_cache, "cleanup_old_data", new_callable=AsyncMock, return_value=4) as mock_cleanup:
            assert await sweeper.sweep() == 4

        mock_cleanup.assert_awaited_once_with(DAY_MS)

    @pytest.mark.asyncio
    async def test_periodic_sweep_survives_errors(self):
        sleeps = []

        async def sleep(delay):
            sleeps.append(delay)
            if len(sleeps) > 2:
                raise asyncio.CancelledError

        sweeper = RetentionSweeper(interval=3600, sleep=sleep)

        with patch.object(market_cache, "cleanup_old_data", new_callable=AsyncMock, side_effect=[RuntimeError("redis down"), 0]) as mock_cleanup:
            with pytest.raises(asyncio.CancelledError):
                await sweeper._run()

        assert sleeps == [3600, 3600, 3600]
        assert mock_cleanup.await_count == 2
