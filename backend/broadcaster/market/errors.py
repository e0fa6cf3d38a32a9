"""Exception taxonomy for the market data subsystem."""

from __future__ import annotations


class MarketDataError(Exception):
    """Base class for all market data failures."""


class InvalidSymbolFormat(MarketDataError, ValueError):
    """A composite symbol does not split into exactly two non-empty legs."""

    def __init__(self, symbol: str) -> None:
        super().__init__(f"Symbol '{symbol}' is misformatted")
        self.symbol = symbol


class SymbolNotFound(MarketDataError, LookupError):
    """A well-formed symbol that is not in the supported catalog."""

    def __init__(self, symbol: str) -> None:
        super().__init__(f"Financial instrument with symbol '{symbol}' not found.")
        self.symbol = symbol


class ProviderUnavailable(MarketDataError):
    """Upstream price provider is overloaded or down (5xx-class)."""

    def __init__(self, message: str = "Price data provider is currently unavailable.") -> None:
        super().__init__(message)


class ProviderError(MarketDataError):
    """Malformed upstream response, auth failure or transport-level error."""


# Failures a caller may retry on its own schedule
PROVIDER_FAILURES: tuple[type[MarketDataError], ...] = (ProviderUnavailable, ProviderError)
