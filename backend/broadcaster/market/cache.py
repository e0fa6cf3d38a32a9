"""Price cache gateway over a string-keyed TTL store."""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from threading import Lock

from .models import PriceUpdate

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60
KEY_PREFIX = "price:"


class CacheStore(ABC):
    """Contract for the backing key/value store.

    ``get`` returns None on a miss and never raises for "not found". Other
    backend failures may raise; PriceCacheGateway turns them into misses.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""

    async def close(self) -> None:
        """Release backend resources. Default: nothing to release."""


class InMemoryCacheStore(CacheStore):
    """Thread-safe in-process TTL store. Used when no Redis URL is configured."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[str, float]] = {}  # key -> (value, expires_at)
        self._lock = Lock()

    async def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if time.monotonic() >= expires_at:
                del self._entries[key]
                return None
            return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (value, time.monotonic() + ttl_seconds)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and time.monotonic() < entry[1]


class PriceCacheGateway:
    """get/set-with-TTL of the last known PriceUpdate per symbol.

    The cache is advisory: any backend failure or unreadable payload is
    logged and reported as a miss. Deciding whether to go upstream is the
    caller's job.
    """

    def __init__(self, store: CacheStore, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        self._store = store
        self._ttl = ttl_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    async def get(self, symbol: str) -> PriceUpdate | None:
        key = KEY_PREFIX + symbol
        try:
            raw = await self._store.get(key)
        except Exception as e:
            logger.warning("Cache read failed for %s, treating as miss: %s", symbol, e)
            return None

        if not raw:
            return None

        try:
            return PriceUpdate.from_dict(json.loads(raw))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Discarding unreadable cache entry for %s: %s", symbol, e)
            return None

    async def set(self, symbol: str, update: PriceUpdate) -> None:
        payload = json.dumps(update.to_dict())
        try:
            await self._store.set(KEY_PREFIX + symbol, payload, self._ttl)
        except Exception as e:
            logger.warning("Cache write failed for %s: %s", symbol, e)
