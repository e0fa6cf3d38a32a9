"""Integration tests for the app and its real-time endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from broadcaster.broadcast.dispatcher import BroadcastDispatcher
from broadcaster.broadcast.hub import StreamHub
from broadcaster.broadcast.registry import SubscriptionRegistry
from broadcaster.broadcast.stream import _generate_events
from broadcaster.config import Settings
from broadcaster.main import create_app
from broadcaster.market.seed_prices import SEED_PRICES
from broadcaster.market.watcher import PriceWatcher


@pytest.fixture
def app():
    # Simulator provider, in-memory cache, slow polling
    return create_app(Settings(poll_interval=60.0))


class TestQueryEndpoints:
    """The REST surface wired through the real coordinator."""

    def test_list_symbols(self, app):
        with TestClient(app) as client:
            response = client.get("/api/currency-exchange-rates")

        assert response.status_code == 200
        assert set(response.json()) == {"EUR-USD", "USD-JPY", "BTC-USD"}

    def test_current_price(self, app):
        with TestClient(app) as client:
            response = client.get("/api/currency-exchange-rates/USD-JPY/price")

        assert response.status_code == 200
        body = response.json()
        assert body["instrument"] == "USD-JPY"
        assert body["price"] > 0

    def test_unsupported_symbol(self, app):
        """XAU-USD is not found, regardless of cache or provider state."""
        with TestClient(app) as client:
            response = client.get("/api/currency-exchange-rates/XAU-USD/price")

        assert response.status_code == 404


class TestStreamEndpoints:
    """SSE and WebSocket subscription handling."""

    def test_sse_unsupported_symbol_is_404(self, app):
        with TestClient(app) as client:
            response = client.get("/api/stream/XAU-USD")

        assert response.status_code == 404
        assert app.state.hub.group_members("XAU-USD") == set()

    def test_websocket_subscribe_gets_snapshot(self, app):
        with TestClient(app) as client:
            with client.websocket_connect("/ws/ticker") as ws:
                ws.send_json({"action": "subscribe", "symbol": "EUR-USD"})
                message = ws.receive_json()

                assert message["instrument"] == "EUR-USD"
                assert message["price"] == pytest.approx(SEED_PRICES["EUR-USD"], rel=0.02)
                assert app.state.registry.subscriber_count("EUR-USD") == 1
                assert app.state.watcher.is_watching("EUR-USD")

    def test_websocket_switch_symbol(self, app):
        with TestClient(app) as client:
            with client.websocket_connect("/ws/ticker") as ws:
                ws.send_json({"action": "subscribe", "symbol": "EUR-USD"})
                ws.receive_json()
                ws.send_json({"action": "subscribe", "symbol": "BTC-USD"})
                message = ws.receive_json()

                assert message["instrument"] == "BTC-USD"
                assert app.state.registry.subscriber_count("EUR-USD") == 0
                assert app.state.registry.subscriber_count("BTC-USD") == 1
                assert not app.state.watcher.is_watching("EUR-USD")

    def test_websocket_unknown_symbol(self, app):
        with TestClient(app) as client:
            with client.websocket_connect("/ws/ticker") as ws:
                ws.send_json({"action": "subscribe", "symbol": "XAU-USD"})
                message = ws.receive_json()

        assert "XAU-USD" in message["error"]

    def test_websocket_bad_messages(self, app):
        with TestClient(app) as client:
            with client.websocket_connect("/ws/ticker") as ws:
                ws.send_json({"action": "dance"})
                unknown_action = ws.receive_json()
                ws.send_json({"action": "subscribe"})
                missing_symbol = ws.receive_json()
                ws.send_json(["EUR-USD"])
                not_an_object = ws.receive_json()

        assert "Unknown action" in unknown_action["error"]
        assert "symbol" in missing_symbol["error"]
        assert "JSON objects" in not_an_object["error"]

    def test_websocket_unsubscribe(self, app):
        with TestClient(app) as client:
            with client.websocket_connect("/ws/ticker") as ws:
                ws.send_json({"action": "subscribe", "symbol": "USD-JPY"})
                ws.receive_json()
                ws.send_json({"action": "unsubscribe"})
                # Round-trip a bad message so the unsubscribe has been processed
                ws.send_json({"action": "noop"})
                ws.receive_json()

                assert app.state.registry.subscriber_count("USD-JPY") == 0
                assert not app.state.watcher.is_watching("USD-JPY")


@pytest.mark.asyncio
class TestSSEGenerator:
    """The SSE subscription lives exactly as long as the event generator."""

    @pytest.fixture
    def parts(self, coordinator):
        hub = StreamHub()
        watcher = PriceWatcher(coordinator, poll_interval=60.0)
        registry = SubscriptionRegistry(coordinator, watcher, BroadcastDispatcher(hub))
        request = MagicMock()
        request.client.host = "127.0.0.1"
        request.is_disconnected = AsyncMock(return_value=False)
        return hub, watcher, registry, request

    async def test_unstarted_stream_leaves_nothing_behind(self, parts):
        hub, watcher, registry, request = parts
        events = _generate_events(hub, registry, "EUR-USD", request, 0.01)

        await events.aclose()

        assert registry.subscriber_count("EUR-USD") == 0
        assert hub.group_members("EUR-USD") == set()
        assert not watcher.is_watching("EUR-USD")

    async def test_stream_subscribes_then_releases(self, parts):
        hub, watcher, registry, request = parts
        events = _generate_events(hub, registry, "EUR-USD", request, 0.01)

        assert await events.__anext__() == "retry: 1000\n\n"
        assert registry.subscriber_count("EUR-USD") == 1
        assert len(hub.group_members("EUR-USD")) == 1
        assert (await events.__anext__()).startswith("data: ")

        await events.aclose()

        assert registry.subscriber_count("EUR-USD") == 0
        assert hub.group_members("EUR-USD") == set()
        assert not watcher.is_watching("EUR-USD")
        await registry.close()
        await watcher.stop_all()
