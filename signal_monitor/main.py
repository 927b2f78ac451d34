"""Main application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager

from signal_monitor.config import get_settings, load_indicator_config

# Configure logging FIRST, before any other imports
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)

# Reduce noise from third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from signal_monitor.api import manager, router, websocket_endpoint
from signal_monitor.clients import BinanceRestClient
from signal_monitor.preferences import PreferenceStore
from signal_monitor.services import PriceBarFetcher, RetentionSweeper, TradingMonitor
from signal_monitor.storage import cache

# Startup timeout in seconds
STARTUP_TIMEOUT = 30

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting trading signal monitor...")

    # Redis is optional: the cache layer degrades to no-ops without it
    try:
        await asyncio.wait_for(cache.init_cache(settings.redis_url), timeout=STARTUP_TIMEOUT)
    except asyncio.TimeoutError:
        logger.warning("Redis connection timed out, continuing without cache")

    indicator_config = load_indicator_config(settings.indicator_config_path)

    client = BinanceRestClient(
        api_key=settings.binance_api_key,
        base_url=settings.binance_base_url,
    )
    fetcher = PriceBarFetcher(
        client,
        interval=settings.kline_interval,
        limit=settings.kline_limit,
        cache_bars=settings.cache_klines,
    )
    preferences = PreferenceStore(settings.preferences_path)

    monitor = TradingMonitor(
        fetcher,
        config=indicator_config,
        preferences=preferences,
        update_interval=settings.update_interval_seconds,
        history_size=settings.history_size,
    )
    monitor.on_signal(manager.publish_signal)

    sweeper = RetentionSweeper(
        max_age_ms=int(settings.retention_days * 24 * 60 * 60 * 1000),
        interval=settings.cleanup_interval_hours * 60 * 60,
    )

    app.state.client = client
    app.state.preferences = preferences
    app.state.monitor = monitor

    await monitor.start()
    sweeper.start()
    logger.info(
        f"Monitoring {len(monitor.get_monitored_pairs())} pairs "
        f"every {settings.update_interval_seconds:g}s"
    )

    yield

    # Shutdown
    logger.info("Shutting down...")
    app.state.monitor = None

    await sweeper.stop()
    await monitor.stop()
    await client.close()
    await cache.close_cache()

    logger.info("Shutdown complete")


# Create FastAPI app with orjson for faster JSON serialization
app = FastAPI(
    title="Trading Signal Monitor",
    description="Multi-indicator trading signals for crypto futures",
    version="0.1.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include REST routes
app.include_router(router, prefix="/api")

# WebSocket endpoint
app.websocket("/ws")(websocket_endpoint)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Trading Signal Monitor",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


def main():
    """Run the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "signal_monitor.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
