"""Per-symbol single-flight cache-or-fetch reads."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from .cache import PriceCacheGateway
from .errors import SymbolNotFound
from .interface import PriceProvider
from .models import PriceUpdate
from .symbols import SUPPORTED_SYMBOLS

logger = logging.getLogger(__name__)


class PriceFetchCoordinator:
    """Serializes cache-check, upstream fetch and cache write per symbol.

    Every supported symbol gets its own asyncio.Lock up front. Holding it
    across the whole read-through means N concurrent first-time callers
    produce a single upstream request: the first one fetches and fills the
    cache, the rest find the fresh entry once they get the lock.

    Different symbols never share a lock, so slow upstream calls for one
    symbol do not hold up any other.
    """

    def __init__(
        self,
        provider: PriceProvider,
        cache: PriceCacheGateway,
        symbols: Iterable[str] = SUPPORTED_SYMBOLS,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._symbols: tuple[str, ...] = tuple(symbols)
        # The catalog is fixed, so the lock map never grows after this
        self._locks: dict[str, asyncio.Lock] = {symbol: asyncio.Lock() for symbol in self._symbols}

    def available_symbols(self) -> list[str]:
        return list(self._symbols)

    async def get_current_price(self, symbol: str) -> PriceUpdate:
        """Cached price for ``symbol`` if fresh, otherwise fetched upstream.

        Raises SymbolNotFound for unsupported symbols. ProviderUnavailable and
        ProviderError from the provider propagate unchanged. Cancelling the
        calling task cancels the lock wait or the in-flight fetch of this
        call only.
        """
        lock = self._locks.get(symbol)
        if lock is None:
            logger.warning("Attempt to get price for unsupported symbol '%s'", symbol)
            raise SymbolNotFound(symbol)

        async with lock:
            cached = await self._cache.get(symbol)
            if cached is not None:
                logger.debug("Cache hit for %s", symbol)
                return cached

            update = await self._provider.fetch(symbol)
            await self._cache.set(symbol, update)
            logger.debug("Fetched %s from provider: %s", symbol, update.price)
            return update
