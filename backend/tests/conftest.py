"""Pytest configuration and fixtures."""

import asyncio
from datetime import datetime, timezone

import pytest

from broadcaster.market.cache import CacheStore, InMemoryCacheStore, PriceCacheGateway
from broadcaster.market.coordinator import PriceFetchCoordinator
from broadcaster.market.interface import PriceProvider
from broadcaster.market.models import PriceUpdate

REFRESH_TIME = datetime(2024, 2, 10, 16, 0, tzinfo=timezone.utc)


class FakeProvider(PriceProvider):
    """Scripted provider.

    Each fetch consumes the next entry of ``outcomes`` (a price or an
    exception to raise); the last entry repeats forever. Tracks how many
    fetches overlapped.
    """

    def __init__(self, *outcomes, delay: float = 0.0) -> None:
        self.outcomes = list(outcomes) or [1.0]
        self.delay = delay
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, symbol: str) -> PriceUpdate:
        index = min(self.calls, len(self.outcomes) - 1)
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            outcome = self.outcomes[index]
            if isinstance(outcome, BaseException):
                raise outcome
            return PriceUpdate(instrument=symbol, price=float(outcome), refresh_time=REFRESH_TIME)
        finally:
            self.in_flight -= 1


class NullCacheStore(CacheStore):
    """Always misses, so every read goes upstream."""

    async def get(self, key: str) -> str | None:
        return None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        pass


class RecordingNotifier:
    """Notifier that remembers what it was handed."""

    def __init__(self, delay: float = 0.0, fail: bool = False) -> None:
        self.delay = delay
        self.fail = fail
        self.delivered: list[tuple[str, PriceUpdate]] = []

    async def deliver(self, symbol: str, update: PriceUpdate) -> None:
        self.delivered.append((symbol, update))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("transport down")

    @property
    def prices(self) -> list[float]:
        return [update.price for _, update in self.delivered]


@pytest.fixture
def event_loop_policy():
    """Use the default event loop policy for all async tests."""
    return asyncio.DefaultEventLoopPolicy()


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider(1.0850)


@pytest.fixture
def cache_store() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def coordinator(fake_provider, cache_store) -> PriceFetchCoordinator:
    """Coordinator with a real 60s in-memory cache."""
    return PriceFetchCoordinator(provider=fake_provider, cache=PriceCacheGateway(cache_store))


@pytest.fixture
def uncached_coordinator(fake_provider) -> PriceFetchCoordinator:
    """Coordinator whose cache always misses, so each read hits the provider."""
    return PriceFetchCoordinator(provider=fake_provider, cache=PriceCacheGateway(NullCacheStore()))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
