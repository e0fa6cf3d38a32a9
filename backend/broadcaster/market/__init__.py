"""Market data subsystem for the broadcaster.

Public API:
    PriceUpdate             - Immutable price snapshot dataclass
    PriceCacheGateway       - Advisory get/set-with-TTL cache of last prices
    PriceProvider           - Abstract interface for upstream providers
    PriceFetchCoordinator   - Per-symbol single-flight cache-or-fetch reads
    PriceWatcher            - Per-symbol polling loops, change-only delivery
    create_price_provider   - Factory that selects simulator or Massive
    create_cache_store      - Factory that selects Redis or in-memory
    create_rates_router     - FastAPI router factory for the query endpoints
"""

from .cache import CacheStore, InMemoryCacheStore, PriceCacheGateway
from .coordinator import PriceFetchCoordinator
from .errors import (
    InvalidSymbolFormat,
    MarketDataError,
    ProviderError,
    ProviderUnavailable,
    SymbolNotFound,
)
from .factory import create_cache_store, create_price_provider
from .interface import PriceProvider
from .models import PriceUpdate
from .rates import create_rates_router
from .symbols import SUPPORTED_SYMBOLS, is_supported, list_symbols, split_legs
from .watcher import Notifier, PriceWatcher

__all__ = [
    "CacheStore",
    "InMemoryCacheStore",
    "InvalidSymbolFormat",
    "MarketDataError",
    "Notifier",
    "PriceCacheGateway",
    "PriceFetchCoordinator",
    "PriceProvider",
    "PriceUpdate",
    "PriceWatcher",
    "ProviderError",
    "ProviderUnavailable",
    "SUPPORTED_SYMBOLS",
    "SymbolNotFound",
    "create_cache_store",
    "create_price_provider",
    "create_rates_router",
    "is_supported",
    "list_symbols",
    "split_legs",
]
