"""Connection-to-symbol subscriptions with reference-counted watches."""

from __future__ import annotations

import asyncio
import logging

from ..market.coordinator import PriceFetchCoordinator
from ..market.errors import PROVIDER_FAILURES
from ..market.symbols import require_supported
from ..market.watcher import PriceWatcher
from .dispatcher import BroadcastDispatcher

logger = logging.getLogger(__name__)


class SubscriptionRegistry:
    """Tracks which symbol each connection follows and drives the watcher.

    One asyncio.Lock covers both maps together with the start/stop decision,
    so two racing calls can never both conclude they are the first or the
    last subscriber of a symbol. Nothing inside the lock awaits I/O:
    starting and stopping a watch only schedules or cancels a task.
    """

    def __init__(
        self,
        coordinator: PriceFetchCoordinator,
        watcher: PriceWatcher,
        dispatcher: BroadcastDispatcher,
    ) -> None:
        self._coordinator = coordinator
        self._watcher = watcher
        self._dispatcher = dispatcher

        self._connection_to_symbol: dict[str, str] = {}
        self._subscriber_count: dict[str, int] = {}
        self._lock = asyncio.Lock()
        self._snapshot_tasks: set[asyncio.Task] = set()

    # --- Public API ---

    async def subscribe(self, connection_id: str, symbol: str) -> str | None:
        """Subscribe a connection to ``symbol``.

        A connection follows one symbol at a time; subscribing to a new one
        releases the old subscription first. Returns the symbol that was
        replaced (so the caller can leave its transport group), or None.
        Raises SymbolNotFound for unsupported symbols.
        """
        require_supported(symbol)
        logger.debug("Subscribing %s to %s", connection_id, symbol)

        replaced: str | None = None
        async with self._lock:
            current = self._connection_to_symbol.get(connection_id)
            if current != symbol:
                if current is not None:
                    replaced = self._remove_locked(connection_id)
                self._connection_to_symbol[connection_id] = symbol
                self._subscriber_count[symbol] = self._subscriber_count.get(symbol, 0) + 1
            if not self._watcher.is_watching(symbol):
                # First subscriber, or the previous loop for this symbol died
                self._watcher.start(symbol, self._dispatcher)

        task = asyncio.create_task(
            self._send_snapshot(connection_id, symbol), name=f"snapshot-{connection_id}"
        )
        self._snapshot_tasks.add(task)
        task.add_done_callback(self._snapshot_tasks.discard)
        return replaced

    async def unsubscribe(self, connection_id: str) -> str | None:
        """Drop the connection's subscription. Returns its symbol, or None if it had none."""
        async with self._lock:
            symbol = self._remove_locked(connection_id)
        if symbol is None:
            logger.debug("Connection %s had no subscription", connection_id)
        return symbol

    def subscriber_count(self, symbol: str) -> int:
        return self._subscriber_count.get(symbol, 0)

    def symbol_for(self, connection_id: str) -> str | None:
        return self._connection_to_symbol.get(connection_id)

    async def close(self) -> None:
        """Cancel pending snapshot deliveries. Used at shutdown."""
        tasks = list(self._snapshot_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # --- Internals ---

    def _remove_locked(self, connection_id: str) -> str | None:
        symbol = self._connection_to_symbol.pop(connection_id, None)
        if symbol is None:
            return None

        logger.debug("Removing subscription of %s from %s", connection_id, symbol)
        remaining = max(self._subscriber_count.get(symbol, 0) - 1, 0)
        self._subscriber_count[symbol] = remaining
        if remaining == 0:
            logger.info("No more clients for %s left. Stopping price watch.", symbol)
            self._watcher.stop(symbol)
        return symbol

    async def _send_snapshot(self, connection_id: str, symbol: str) -> None:
        try:
            update = await self._coordinator.get_current_price(symbol)
        except PROVIDER_FAILURES as e:
            logger.warning("No initial price for %s (%s): %s", connection_id, symbol, e)
            return
        except Exception:
            logger.exception("Initial price for %s (%s) failed", connection_id, symbol)
            return
        await self._dispatcher.deliver_to_one(connection_id, update)
