"""SSE and WebSocket endpoints for live price updates."""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from collections.abc import AsyncGenerator

from fastapi import APIRouter, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import StreamingResponse

from ..market.errors import SymbolNotFound
from ..market.symbols import require_supported
from .hub import StreamHub
from .registry import SubscriptionRegistry

logger = logging.getLogger(__name__)


def create_stream_router(
    hub: StreamHub,
    registry: SubscriptionRegistry,
    disconnect_check_interval: float = 0.5,
) -> APIRouter:
    """Create the live price router with references to the hub and registry.

    This factory pattern lets us inject the collaborators without globals.
    """
    router = APIRouter(tags=["streaming"])

    @router.get("/api/stream/{symbol}")
    async def stream_prices(symbol: str, request: Request) -> StreamingResponse:
        """SSE endpoint for one symbol.

        The client first receives the current price, then one event per
        price change:

            data: {"instrument": "EUR-USD", "price": 1.0851, "refresh_time": "..."}

        Includes a retry directive so the browser auto-reconnects on
        disconnection (EventSource built-in behavior).
        """
        try:
            require_supported(symbol)
        except SymbolNotFound as e:
            raise HTTPException(status_code=404, detail=str(e)) from e

        return StreamingResponse(
            _generate_events(hub, registry, symbol, request, disconnect_check_interval),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
            },
        )

    @router.websocket("/ws/ticker")
    async def ticker_socket(websocket: WebSocket) -> None:
        """WebSocket hub. Clients switch symbols by sending messages:

            {"action": "subscribe", "symbol": "EUR-USD"}
            {"action": "unsubscribe"}
        """
        await websocket.accept()
        connection_id = uuid.uuid4().hex
        queue = hub.connect(connection_id)
        sender = asyncio.create_task(_pump(websocket, queue), name=f"ws-sender-{connection_id}")
        logger.info("WebSocket client connected: %s", connection_id)

        try:
            while True:
                message = await websocket.receive_json()
                await _handle_message(hub, registry, connection_id, message)
        except WebSocketDisconnect:
            logger.info("WebSocket client disconnected: %s", connection_id)
        finally:
            sender.cancel()
            await _release(hub, registry, connection_id)

    return router


async def _handle_message(
    hub: StreamHub,
    registry: SubscriptionRegistry,
    connection_id: str,
    message: object,
) -> None:
    if not isinstance(message, dict):
        await hub.send_to_connection(connection_id, {"error": "Messages must be JSON objects."})
        return

    action = message.get("action")
    if action == "subscribe":
        symbol = message.get("symbol")
        if not isinstance(symbol, str):
            await hub.send_to_connection(connection_id, {"error": "'symbol' is required."})
            return
        try:
            replaced = await registry.subscribe(connection_id, symbol)
        except SymbolNotFound as e:
            await hub.send_to_connection(connection_id, {"error": str(e)})
            return
        if replaced is not None:
            hub.leave_group(replaced, connection_id)
        hub.join_group(symbol, connection_id)
    elif action == "unsubscribe":
        symbol = await registry.unsubscribe(connection_id)
        if symbol is not None:
            hub.leave_group(symbol, connection_id)
    else:
        await hub.send_to_connection(connection_id, {"error": f"Unknown action: {action!r}"})


async def _pump(websocket: WebSocket, queue: asyncio.Queue) -> None:
    """Forward queued messages to the socket until cancelled."""
    try:
        while True:
            payload = await queue.get()
            await websocket.send_json(payload)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        # The receive loop notices the closed socket and cleans up
        logger.info("WebSocket send failed: %s", e)


async def _release(hub: StreamHub, registry: SubscriptionRegistry, connection_id: str) -> None:
    """Connection gone, whatever the cause: same path as an explicit unsubscribe."""
    symbol = await registry.unsubscribe(connection_id)
    if symbol is not None:
        hub.leave_group(symbol, connection_id)
    hub.disconnect(connection_id)


async def _generate_events(
    hub: StreamHub,
    registry: SubscriptionRegistry,
    symbol: str,
    request: Request,
    interval: float,
) -> AsyncGenerator[str, None]:
    """Async generator that yields SSE-formatted price events.

    The subscription only exists while this generator runs, so a response
    that never starts streaming leaves nothing behind. Waits on the
    connection's queue, waking every ``interval`` seconds to check for client
    disconnect (detected via request.is_disconnected()).
    """
    connection_id = uuid.uuid4().hex
    queue = hub.connect(connection_id)
    client_ip = request.client.host if request.client else "unknown"

    try:
        await registry.subscribe(connection_id, symbol)
        hub.join_group(symbol, connection_id)
        logger.info("SSE client connected: %s (%s)", client_ip, connection_id)

        # Tell the client to retry after 1 second if the connection drops
        yield "retry: 1000\n\n"

        while True:
            if await request.is_disconnected():
                logger.info("SSE client disconnected: %s", client_ip)
                break

            try:
                payload = await asyncio.wait_for(queue.get(), timeout=interval)
            except asyncio.TimeoutError:
                continue

            yield f"data: {json.dumps(payload)}\n\n"
    except asyncio.CancelledError:
        logger.info("SSE stream cancelled for: %s", client_ip)
        raise
    finally:
        await _release(hub, registry, connection_id)
