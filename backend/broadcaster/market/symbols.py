"""Catalog of supported currency exchange symbols."""

from __future__ import annotations

from .errors import InvalidSymbolFormat, SymbolNotFound

SEPARATOR = "-"

EUR_USD = "EUR-USD"
USD_JPY = "USD-JPY"
BTC_USD = "BTC-USD"

# Fixed at import time; every other component validates against this
SUPPORTED_SYMBOLS: tuple[str, ...] = (EUR_USD, USD_JPY, BTC_USD)


def list_symbols() -> list[str]:
    """All supported symbols. Callers must not rely on the ordering."""
    return list(SUPPORTED_SYMBOLS)


def is_supported(symbol: str) -> bool:
    return symbol in SUPPORTED_SYMBOLS


def require_supported(symbol: str) -> str:
    """Return ``symbol`` unchanged, or raise SymbolNotFound."""
    if not is_supported(symbol):
        raise SymbolNotFound(symbol)
    return symbol


def split_legs(symbol: str) -> tuple[str, str]:
    """Split ``"EUR-USD"`` into ``("EUR", "USD")``.

    Raises InvalidSymbolFormat unless the separator yields exactly two
    non-empty legs.
    """
    legs = symbol.split(SEPARATOR)
    if len(legs) != 2 or not all(legs):
        raise InvalidSymbolFormat(symbol)
    return legs[0], legs[1]
