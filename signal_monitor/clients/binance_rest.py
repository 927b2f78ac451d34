"""Binance REST API client for price bars and order-book depth."""

import asyncio
import time
from typing import Any

import httpx

from signal_core.models import OrderBookSnapshot, PriceBar


class RateLimiter:
    """Simple rate limiter for API calls."""

    def __init__(self, calls_per_minute: int = 1200):
        self.calls_per_minute = calls_per_minute
        self.interval = 60.0 / calls_per_minute
        self.last_call = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait if necessary to respect rate limit."""
        async with self._lock:
            now = asyncio.get_running_loop().time()
            wait_time = self.last_call + self.interval - now
            if wait_time > 0:
                await asyncio.sleep(wait_time)
            self.last_call = asyncio.get_running_loop().time()


def parse_klines(data: Any) -> list[PriceBar]:
    """Convert the raw /klines payload into price bars.

    Raises:
        ValueError: If the payload is not a list of kline rows.
    """
    if not isinstance(data, list):
        raise ValueError(f"expected a list of klines, got {type(data).__name__}")

    bars = []
    try:
        for item in data:
            bars.append(
                PriceBar(
                    time=int(item[0]),
                    open=float(item[1]),
                    high=float(item[2]),
                    low=float(item[3]),
                    close=float(item[4]),
                    volume=float(item[5]),
                )
            )
    except (IndexError, TypeError) as e:
        raise ValueError(f"malformed kline row: {e}") from e

    return bars


def parse_depth(symbol: str, data: Any, timestamp: int) -> OrderBookSnapshot:
    """Convert the raw /depth payload into an order book snapshot.

    Raises:
        ValueError: If the payload has no usable bids/asks.
    """
    try:
        bids = tuple((float(p), float(q)) for p, q in data["bids"])
        asks = tuple((float(p), float(q)) for p, q in data["asks"])
    except (KeyError, TypeError) as e:
        raise ValueError(f"malformed depth payload: {e}") from e

    return OrderBookSnapshot(instrument_id=symbol, timestamp=timestamp, bids=bids, asks=asks)


class BinanceRestClient:
    """Binance Futures REST API client."""

    BASE_URL = "https://fapi.binance.com"

    def __init__(
        self,
        api_key: str = "",
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url or self.BASE_URL
        self.rate_limiter = RateLimiter()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {}
            if self.api_key:
                headers["X-MBX-APIKEY"] = self.api_key
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=30.0,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self, method: str, endpoint: str, params: dict[str, Any] | None = None
    ) -> Any:
        """Make an API request with rate limiting."""
        await self.rate_limiter.acquire()
        client = await self._get_client()
        response = await client.request(method, endpoint, params=params)
        response.raise_for_status()
        return response.json()

    async def get_klines(
        self,
        symbol: str,
        interval: str = "1h",
        limit: int = 100,
    ) -> list[PriceBar]:
        """
        Fetch the most recent K-lines from Binance.

        Args:
            symbol: Trading pair (e.g., "BTCUSDT")
            interval: K-line interval (e.g., "1h")
            limit: Maximum number of K-lines (max 1500)

        Returns:
            List of PriceBar objects, oldest first

        Raises:
            httpx.HTTPError: On transport errors or non-2xx responses
            ValueError: If the response body cannot be parsed
        """
        params: dict[str, Any] = {
            "symbol": symbol,
            "interval": interval,
            "limit": min(limit, 1500),
        }
        data = await self._request("GET", "/fapi/v1/klines", params)
        return parse_klines(data)

    async def get_order_book(self, symbol: str, limit: int = 20) -> OrderBookSnapshot:
        """Fetch order-book depth, timestamped with the local receive time."""
        data = await self._request(
            "GET", "/fapi/v1/depth", {"symbol": symbol, "limit": limit}
        )
        return parse_depth(symbol, data, int(time.time() * 1000))
