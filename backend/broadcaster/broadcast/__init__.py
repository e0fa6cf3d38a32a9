"""Subscription tracking and real-time delivery.

Public API:
    StreamHub               - Per-connection queues and symbol groups
    BroadcastDispatcher     - Fire-and-forget snapshot and group delivery
    SubscriptionRegistry    - Reference-counted subscriptions driving watches
    create_stream_router    - FastAPI router factory for SSE/WebSocket endpoints
"""

from .dispatcher import BroadcastDispatcher
from .hub import StreamHub
from .registry import SubscriptionRegistry
from .stream import create_stream_router

__all__ = [
    "BroadcastDispatcher",
    "StreamHub",
    "SubscriptionRegistry",
    "create_stream_router",
]
