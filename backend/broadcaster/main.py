"""FastAPI application wiring.

Run with:
    uvicorn broadcaster.main:app
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .broadcast import BroadcastDispatcher, StreamHub, SubscriptionRegistry, create_stream_router
from .config import Settings
from .market import (
    PriceCacheGateway,
    PriceFetchCoordinator,
    PriceWatcher,
    create_cache_store,
    create_price_provider,
    create_rates_router,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Single stream handler on the root logger."""
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the component graph and mount the routers.

    Nothing touches the network until the first request: the Massive client
    is created lazily and Redis connects on first use.
    """
    settings = settings or Settings.from_env()

    store = create_cache_store(settings)
    provider = create_price_provider(settings)
    coordinator = PriceFetchCoordinator(
        provider=provider,
        cache=PriceCacheGateway(store, ttl_seconds=settings.cache_ttl),
    )
    watcher = PriceWatcher(coordinator, poll_interval=settings.poll_interval)
    hub = StreamHub()
    registry = SubscriptionRegistry(coordinator, watcher, BroadcastDispatcher(hub))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        logger.info("Broadcaster started (poll interval %.1fs)", settings.poll_interval)
        try:
            yield
        finally:
            await registry.close()
            await watcher.stop_all()
            await provider.close()
            await store.close()
            logger.info("Broadcaster stopped")

    app = FastAPI(title="FX Broadcaster", lifespan=lifespan)
    app.include_router(create_rates_router(coordinator))
    app.include_router(create_stream_router(hub, registry))
    app.state.settings = settings
    app.state.coordinator = coordinator
    app.state.watcher = watcher
    app.state.hub = hub
    app.state.registry = registry
    return app


app = create_app()
