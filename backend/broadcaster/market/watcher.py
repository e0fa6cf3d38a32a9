"""Background polling loops that report price changes per symbol."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from .coordinator import PriceFetchCoordinator
from .errors import PROVIDER_FAILURES, ProviderUnavailable
from .models import PriceUpdate

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 60.0


class Notifier(Protocol):
    """Receives changed prices from a watch loop."""

    async def deliver(self, symbol: str, update: PriceUpdate) -> None: ...


class PriceWatcher:
    """Owns at most one polling task per symbol.

    A watch loop polls the PriceFetchCoordinator every ``poll_interval``
    seconds and hands the price to its Notifier only when it differs from the
    last one handed over. The first price a loop sees is its baseline and is
    not delivered; new subscribers get their snapshot elsewhere.

    start() and stop() never block: start() schedules a task, stop() cancels
    it. Cancellation lands at the loop's next await, whether that is the lock
    wait, the upstream fetch or the sleep.
    """

    def __init__(
        self,
        coordinator: PriceFetchCoordinator,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._coordinator = coordinator
        self._interval = poll_interval
        self._watches: dict[str, asyncio.Task] = {}

    # --- Public API ---

    def start(self, symbol: str, notifier: Notifier) -> bool:
        """Start watching ``symbol``. Returns False if a watch was already live."""
        task = self._watches.get(symbol)
        if task is not None and not task.done():
            logger.warning("Price watch for %s already running", symbol)
            return False

        task = asyncio.create_task(self._run_loop(symbol, notifier), name=f"price-watch-{symbol}")
        task.add_done_callback(lambda t: self._on_loop_done(symbol, t))
        self._watches[symbol] = task
        logger.info("Starting price watch for %s", symbol)
        return True

    def stop(self, symbol: str) -> bool:
        """Cancel the watch for ``symbol``. Returns False if none was running."""
        task = self._watches.pop(symbol, None)
        if task is None:
            logger.warning("Price watch for %s not running", symbol)
            return False

        task.cancel()
        logger.info("Stopped price watch for %s", symbol)
        return True

    def is_watching(self, symbol: str) -> bool:
        task = self._watches.get(symbol)
        return task is not None and not task.done()

    def watched_symbols(self) -> list[str]:
        return [symbol for symbol, task in self._watches.items() if not task.done()]

    async def stop_all(self) -> None:
        """Cancel every loop and wait for them to finish. Used at shutdown."""
        tasks = list(self._watches.values())
        self._watches.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("All price watches stopped (%d)", len(tasks))

    # --- Internals ---

    async def _run_loop(self, symbol: str, notifier: Notifier) -> None:
        last_delivered: PriceUpdate | None = None

        try:
            while True:
                update: PriceUpdate | None = None
                try:
                    update = await self._coordinator.get_current_price(symbol)
                except PROVIDER_FAILURES as e:
                    if isinstance(e, ProviderUnavailable):
                        logger.warning("Price provider unavailable for %s: %s", symbol, e)
                    else:
                        logger.error("Error fetching price update for %s: %s", symbol, e)

                delivery = None
                if update is not None:
                    if last_delivered is None:
                        last_delivered = update
                    elif update.changed_from(last_delivered):
                        last_delivered = update
                        delivery = self._deliver(notifier, symbol, update)

                if delivery is None:
                    await asyncio.sleep(self._interval)
                else:
                    # A slow delivery delays the next tick instead of overlapping it
                    await asyncio.gather(delivery, asyncio.sleep(self._interval))
        except asyncio.CancelledError:
            logger.info("Price watch stopped for %s", symbol)
            raise

    @staticmethod
    async def _deliver(notifier: Notifier, symbol: str, update: PriceUpdate) -> None:
        try:
            await notifier.deliver(symbol, update)
        except Exception:
            logger.exception("Delivering %s update failed", symbol)

    def _on_loop_done(self, symbol: str, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Price watch for %s crashed", symbol, exc_info=exc)
        # Release the handle only if it is still ours, not a newer loop's
        if self._watches.get(symbol) is task:
            del self._watches[symbol]
