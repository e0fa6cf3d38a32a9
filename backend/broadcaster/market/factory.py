"""Factories for the upstream provider and the cache store."""

from __future__ import annotations

import logging

from ..config import Settings
from .cache import CacheStore, InMemoryCacheStore
from .interface import PriceProvider
from .symbols import list_symbols

logger = logging.getLogger(__name__)


def create_price_provider(settings: Settings) -> PriceProvider:
    """Create the appropriate price provider based on settings.

    - massive_api_key non-empty → MassivePriceProvider (real market data)
    - Otherwise → SimulatorPriceProvider (GBM simulation)
    """
    if settings.massive_api_key:
        from .massive_client import MassivePriceProvider

        logger.info("Price provider: Massive API (real data)")
        return MassivePriceProvider(api_key=settings.massive_api_key)
    else:
        from .simulator import SimulatorPriceProvider

        logger.info("Price provider: GBM Simulator")
        return SimulatorPriceProvider(symbols=list_symbols())


def create_cache_store(settings: Settings) -> CacheStore:
    """Redis when a URL is configured, otherwise a process-local store."""
    if settings.redis_url:
        from .redis_store import RedisCacheStore

        logger.info("Cache store: Redis")
        return RedisCacheStore(redis_url=settings.redis_url)

    logger.info("Cache store: in-memory")
    return InMemoryCacheStore()
