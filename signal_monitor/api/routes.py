"""REST API routes."""

import logging
import time
from typing import Any, Optional

import httpx
from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, ValidationError

from signal_core.models import OrderBookSnapshot, PriceBar, TradingSignal
from signal_monitor.clients import BinanceRestClient
from signal_monitor.config import get_settings
from signal_monitor.preferences import PreferenceStore, UserPreferences
from signal_monitor.services import TradingMonitor
from signal_monitor.storage import cache, market_cache

logger = logging.getLogger(__name__)

router = APIRouter()


# Response models
class SystemStatus(BaseModel):
    """System status response."""

    status: str
    version: str
    monitored_pairs: list[str]
    update_interval: float
    total_signals: int
    cache_available: bool


class LastUpdateResponse(BaseModel):
    instrument_id: str
    last_update_time: Optional[int] = None


class FavoritesRequest(BaseModel):
    favorites: list[str]


# Accessors for services owned by the application lifespan
def get_monitor(request: Request) -> TradingMonitor:
    monitor = getattr(request.app.state, "monitor", None)
    if monitor is None:
        raise HTTPException(status_code=503, detail="Monitor not running")
    return monitor


def get_preferences(request: Request) -> PreferenceStore:
    store = getattr(request.app.state, "preferences", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Preferences not loaded")
    return store


def get_client(request: Request) -> BinanceRestClient:
    client = getattr(request.app.state, "client", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Exchange client not available")
    return client


@router.get("/status", response_model=SystemStatus)
async def get_status(request: Request):
    """Get system status."""
    monitor = get_monitor(request)
    history = monitor.history

    return SystemStatus(
        status="running" if monitor.scheduler.is_running else "stopped",
        version="0.1.0",
        monitored_pairs=monitor.get_monitored_pairs(),
        update_interval=monitor.scheduler.interval,
        total_signals=sum(history.size(i) for i in history.instruments()),
        cache_available=await cache.ping(),
    )


@router.get("/pairs", response_model=list[str])
async def get_pairs(request: Request):
    """Get the instruments currently in the watch set."""
    return get_monitor(request).get_monitored_pairs()


@router.get("/pairs/{instrument_id}/last-update", response_model=LastUpdateResponse)
async def get_last_update(request: Request, instrument_id: str):
    """Get the time of the last successful evaluation for an instrument."""
    monitor = get_monitor(request)
    return LastUpdateResponse(
        instrument_id=instrument_id,
        last_update_time=monitor.get_last_update_time(instrument_id),
    )


@router.get("/signals/{instrument_id}", response_model=list[TradingSignal])
async def get_signals(
    request: Request,
    instrument_id: str,
    count: int = Query(10, ge=1, le=100, description="Number of signals to return"),
):
    """Get the most recent signals for an instrument, oldest first."""
    return get_monitor(request).get_recent_signals(instrument_id, count)


@router.get("/preferences", response_model=UserPreferences)
async def get_user_preferences(request: Request):
    """Get current user preferences."""
    return get_preferences(request).value


@router.put("/preferences", response_model=UserPreferences)
async def update_user_preferences(request: Request, updates: dict[str, Any]):
    """Update one or more preference fields."""
    store = get_preferences(request)

    try:
        return store.update_preferences(updates)
    except KeyError as e:
        raise HTTPException(status_code=400, detail=e.args[0])
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.put("/preferences/favorites", response_model=UserPreferences)
async def update_favorites(request: Request, body: FavoritesRequest):
    """Replace the favorites list; the watch set follows it."""
    store = get_preferences(request)
    return store.update_preference("favorites", body.favorites)


@router.get("/klines/{instrument_id}", response_model=list[PriceBar])
async def get_klines(
    request: Request,
    instrument_id: str,
    start: Optional[int] = Query(None, description="Start time (Unix ms)"),
    end: Optional[int] = Query(None, description="End time (Unix ms)"),
):
    """Get price bars from the market-data cache, falling back to the exchange."""
    settings = get_settings()
    start_ms = start if start is not None else 0
    end_ms = end if end is not None else int(time.time() * 1000)

    bars = await market_cache.get_klines(
        instrument_id, settings.kline_interval, start_ms, end_ms
    )
    if bars:
        return bars

    client = get_client(request)
    try:
        bars = await client.get_klines(
            instrument_id, interval=settings.kline_interval, limit=settings.kline_limit
        )
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Failed to fetch klines for {instrument_id}: {e}")
        raise HTTPException(status_code=502, detail="Failed to fetch klines")

    return [bar for bar in bars if start_ms <= bar.time <= end_ms]


@router.get("/orderbook/{instrument_id}", response_model=OrderBookSnapshot)
async def get_orderbook(
    request: Request,
    instrument_id: str,
    limit: int = Query(20, ge=5, le=1000, description="Depth levels per side"),
):
    """Get a fresh order book snapshot, or the last cached one if the exchange fails."""
    client = get_client(request)
    try:
        snapshot = await client.get_order_book(instrument_id, limit=limit)
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Failed to fetch order book for {instrument_id}: {e}")
        cached = await market_cache.get_latest_order_book(instrument_id)
        if cached is None:
            raise HTTPException(status_code=502, detail="Failed to fetch order book")
        return cached

    await market_cache.store_order_book(snapshot)
    return snapshot
