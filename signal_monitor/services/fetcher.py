"""Price-bar fetch collaborator for the trading monitor."""

import logging

import httpx

from signal_core.errors import TransientFetchError
from signal_core.models import PriceBar
from signal_monitor.clients import BinanceRestClient
from signal_monitor.storage import market_cache

logger = logging.getLogger(__name__)


class PriceBarFetcher:
    """Fetches the latest bar window for an instrument.

    Transport, HTTP status and parse errors are raised as TransientFetchError,
    never returned as a partial window. When ``cache_bars`` is set, each
    fetched window is also written to the market-data cache.
    """

    def __init__(
        self,
        client: BinanceRestClient,
        interval: str = "1h",
        limit: int = 100,
        cache_bars: bool = False,
    ):
        self.client = client
        self.interval = interval
        self.limit = limit
        self.cache_bars = cache_bars

    async def __call__(self, instrument_id: str) -> list[PriceBar]:
        try:
            bars = await self.client.get_klines(
                instrument_id, interval=self.interval, limit=self.limit
            )
        except httpx.HTTPError as e:
            raise TransientFetchError(instrument_id, f"request failed: {e!r}") from e
        except ValueError as e:
            raise TransientFetchError(instrument_id, f"unreadable response: {e}") from e

        if self.cache_bars and bars:
            await market_cache.store_klines(instrument_id, self.interval, bars)

        return bars
