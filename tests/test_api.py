"""Tests for the REST API and WebSocket broadcasting."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import orjson
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from signal_core.models import OrderBookSnapshot
from signal_monitor.api import ConnectionManager, router
from signal_monitor.preferences import PreferenceStore
from signal_monitor.services import TradingMonitor


@pytest.fixture
def monitor(make_bars):
    return TradingMonitor(AsyncMock(return_value=make_bars([100.0] * 100)))


@pytest.fixture
def preferences(monitor):
    store = PreferenceStore()
    store.subscribe(lambda prefs: monitor.set_favorites(prefs.favorites))
    return store


@pytest.fixture
def exchange():
    return MagicMock(get_klines=AsyncMock(), get_order_book=AsyncMock())


@pytest.fixture
def client(monitor, preferences, exchange):
    app = FastAPI()
    app.include_router(router, prefix="/api")
    app.state.monitor = monitor
    app.state.preferences = preferences
    app.state.client = exchange

    with TestClient(app) as test_client:
        yield test_client


class TestMonitorRoutes:
    """Tests for engine query endpoints."""

    def test_status(self, client, monitor, make_signal):
        monitor.history.record("BTCUSDT", make_signal())

        response = client.get("/api/status")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "stopped"
        assert data["total_signals"] == 1
        assert data["update_interval"] == 60.0
        assert data["cache_available"] is False

    def test_favorites_drive_pairs(self, client):
        response = client.put("/api/preferences/favorites", json={"favorites": ["BTCUSDT", "ETHUSDT"]})

        assert response.status_code == 200
        assert response.json()["favorites"] == ["BTCUSDT", "ETHUSDT"]
        assert client.get("/api/pairs").json() == ["BTCUSDT", "ETHUSDT"]

    def test_recent_signals(self, client, monitor, make_signal):
        for i in range(12):
            monitor.history.record("BTCUSDT", make_signal(price=float(i)))

        response = client.get("/api/signals/BTCUSDT", params={"count": 5})

        assert response.status_code == 200
        data = response.json()
        assert [s["price"] for s in data] == [7.0, 8.0, 9.0, 10.0, 11.0]
        assert data[0]["type"] == "buy"
        assert len(data[0]["reasons"]) == 2

    def test_recent_signals_unknown_instrument(self, client):
        assert client.get("/api/signals/XRPUSDT").json() == []

    def test_last_update_unknown(self, client):
        data = client.get("/api/pairs/BTCUSDT/last-update").json()

        assert data == {"instrument_id": "BTCUSDT", "last_update_time": None}

    def test_monitor_missing(self):
        app = FastAPI()
        app.include_router(router, prefix="/api")

        response = TestClient(app).get("/api/pairs")

        assert response.status_code == 503


class TestPreferenceRoutes:
    def test_get_preferences(self, client):
        data = client.get("/api/preferences").json()

        assert data["theme"] == "dark"
        assert data["selected_indicators"] == ["MA", "RSI"]

    def test_update_preferences(self, client):
        response = client.put("/api/preferences", json={"theme": "light", "left_panel_width": 250})

        assert response.status_code == 200
        assert response.json()["theme"] == "light"
        assert response.json()["left_panel_width"] == 250

    def test_unknown_preference(self, client):
        assert client.put("/api/preferences", json={"font": "mono"}).status_code == 400

    def test_invalid_preference(self, client):
        assert client.put("/api/preferences", json={"theme": "sepia"}).status_code == 422

    def test_invalid_preference_applies_nothing(self, client, monitor):
        response = client.put(
            "/api/preferences",
            json={"theme": "light", "favorites": ["BTCUSDT"], "left_panel_width": "wide"},
        )

        assert response.status_code == 422
        data = client.get("/api/preferences").json()
        assert data["theme"] == "dark"
        assert data["favorites"] == []
        assert monitor.get_monitored_pairs() == []


class TestMarketDataRoutes:
    """Tests for klines and order book passthrough."""

    def test_klines_from_exchange(self, client, exchange, make_bars):
        exchange.get_klines.return_value = make_bars([100.0, 101.0, 102.0])

        response = client.get("/api/klines/BTCUSDT")

        assert response.status_code == 200
        assert [b["close"] for b in response.json()] == [100.0, 101.0, 102.0]

    def test_klines_exchange_error(self, client, exchange):
        exchange.get_klines.side_effect = httpx.ConnectError("down")

        assert client.get("/api/klines/BTCUSDT").status_code == 502

    def test_orderbook(self, client, exchange):
        exchange.get_order_book.return_value = OrderBookSnapshot(
            instrument_id="BTCUSDT",
            timestamp=1,
            bids=((100.5, 2.0),),
            asks=((100.6, 1.0),),
        )

        response = client.get("/api/orderbook/BTCUSDT")

        assert response.status_code == 200
        assert response.json()["bids"] == [[100.5, 2.0]]
        exchange.get_order_book.assert_awaited_once_with("BTCUSDT", limit=20)

    def test_orderbook_exchange_error_without_cache(self, client, exchange):
        exchange.get_order_book.side_effect = httpx.ConnectError("down")

        assert client.get("/api/orderbook/BTCUSDT").status_code == 502


class TestConnectionManager:
    """Tests for WebSocket broadcasting."""

    @pytest.mark.asyncio
    async def test_send_signal(self, make_signal):
        manager = ConnectionManager()
        websocket = AsyncMock()
        await manager.connect(websocket)

        await manager.send_signal(make_signal())

        websocket.accept.assert_awaited_once()
        message = orjson.loads(websocket.send_text.call_args.args[0])
        assert message["type"] == "signal"
        assert message["data"]["instrument_id"] == "BTCUSDT"
        assert message["data"]["type"] == "buy"
        assert "timestamp" in message

    @pytest.mark.asyncio
    async def test_failed_connection_dropped(self, make_signal):
        manager = ConnectionManager()
        good, bad = AsyncMock(), AsyncMock()
        bad.send_text.side_effect = RuntimeError("closed")
        await manager.connect(good)
        await manager.connect(bad)

        await manager.send_signal(make_signal())

        assert manager.connection_count == 1
        good.send_text.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_publish_signal_schedules_broadcast(self, make_signal):
        manager = ConnectionManager()
        websocket = AsyncMock()
        await manager.connect(websocket)

        manager.publish_signal(make_signal())
        await asyncio.gather(*manager._send_tasks)

        websocket.send_text.assert_awaited_once()


class TestApplication:
    def test_health_and_websocket(self):
        from signal_monitor.main import app

        client = TestClient(app)
        assert client.get("/health").json() == {"status": "healthy"}

        with client.websocket_connect("/ws") as websocket:
            websocket.send_text("ping")
            assert websocket.receive_text() == "pong"
