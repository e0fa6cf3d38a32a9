"""Abstract interface for upstream price providers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import PriceUpdate


class PriceProvider(ABC):
    """Contract for upstream price lookups.

    Providers are pull-only: every call is one (rate-limited, possibly slow)
    upstream request. Nobody calls a provider directly except the
    PriceFetchCoordinator, which serializes calls per symbol and caches the
    results.

    Lifecycle:
        provider = create_price_provider(settings)
        update = await provider.fetch("EUR-USD")
        # ... app shutting down ...
        await provider.close()
    """

    @abstractmethod
    async def fetch(self, symbol: str) -> PriceUpdate:
        """Return the current price for ``symbol``.

        Must either return a PriceUpdate with a price and a timezone-aware
        instant, or raise ProviderUnavailable (upstream overloaded/down) or
        ProviderError (bad data, auth failure, transport failure). No silent
        defaults. Cancelling the calling task abandons the request.
        """

    async def close(self) -> None:
        """Release client resources. Safe to call multiple times."""
