"""Hands price updates to the real-time transport."""

from __future__ import annotations

import logging

from ..market.models import PriceUpdate
from .hub import StreamHub

logger = logging.getLogger(__name__)


class BroadcastDispatcher:
    """Fire-and-forget delivery of price updates to one connection or a group.

    Implements the watcher's Notifier protocol. Transport failures are logged
    here and never reach the caller, so a broken transport cannot stop a
    watch loop.
    """

    def __init__(self, hub: StreamHub) -> None:
        self._hub = hub

    async def deliver_to_one(self, connection_id: str, update: PriceUpdate) -> None:
        """Initial snapshot for a single newly subscribed connection."""
        try:
            await self._hub.send_to_connection(connection_id, update.to_dict())
        except Exception:
            logger.exception("Sending snapshot of %s to %s failed", update.instrument, connection_id)

    async def deliver_to_group(self, symbol: str, update: PriceUpdate) -> None:
        """Multicast a changed price to everyone subscribed to ``symbol``."""
        logger.debug("Broadcast updated price for %s", symbol)
        try:
            delivered = await self._hub.send_to_group(symbol, update.to_dict())
        except Exception:
            logger.exception("Broadcasting %s update failed", symbol)
            return
        logger.debug("Price for %s delivered to %d connections", symbol, delivered)

    async def deliver(self, symbol: str, update: PriceUpdate) -> None:
        await self.deliver_to_group(symbol, update)
