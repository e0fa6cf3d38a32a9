"""Massive (Polygon.io) API client for real exchange rates."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from urllib3.exceptions import HTTPError, MaxRetryError, ResponseError

from .errors import ProviderError, ProviderUnavailable
from .interface import PriceProvider
from .models import PriceUpdate
from .symbols import split_legs

logger = logging.getLogger(__name__)

# Base legs quoted on the crypto endpoints rather than forex
CRYPTO_ASSETS: frozenset[str] = frozenset({"BTC", "ETH", "SOL"})


class MassivePriceProvider(PriceProvider):
    """PriceProvider backed by the Massive (Polygon.io) REST API.

    Forex pairs use GET /v1/last_quote/currencies/{from}/{to} and are priced
    at the bid/ask midpoint. Crypto pairs use GET /v1/last/crypto/{from}/{to}
    and are priced at the last trade.

    The RESTClient retries 5xx responses itself; once those retries are
    exhausted the failure surfaces as ProviderUnavailable.
    """

    def __init__(self, api_key: str) -> None:
        self._api_key = api_key
        self._client: Any = None  # Lazy import to avoid hard dependency at import time

    async def fetch(self, symbol: str) -> PriceUpdate:
        base, quote = split_legs(symbol)
        logger.debug("Fetching %s from Massive", symbol)

        try:
            # The Massive RESTClient is synchronous; run in a thread to
            # avoid blocking the event loop.
            price, refresh_time = await asyncio.to_thread(self._fetch_quote, base, quote)
        except MaxRetryError as e:
            if isinstance(e.reason, ResponseError):
                logger.warning("Massive unavailable for %s: %s", symbol, e.reason)
                raise ProviderUnavailable(f"Price data provider returned errors: {e.reason}") from e
            logger.error("Massive transport failure for %s: %s", symbol, e)
            raise ProviderError(f"Transport failure talking to Massive: {e}") from e
        except HTTPError as e:
            logger.error("Massive transport failure for %s: %s", symbol, e)
            raise ProviderError(f"Transport failure talking to Massive: {e}") from e
        except (AttributeError, TypeError, ValueError, OSError, OverflowError) as e:
            logger.error("Invalid response from Massive for %s: %s", symbol, e)
            raise ProviderError(f"Invalid response from Massive for {symbol}") from e
        except Exception as e:
            # BadResponse / AuthError and anything else the client raises
            logger.error("Error fetching %s from Massive: %s", symbol, e)
            raise ProviderError(f"Error fetching data from Massive: {e}") from e

        return PriceUpdate(instrument=symbol, price=price, refresh_time=refresh_time)

    async def close(self) -> None:
        self._client = None

    # --- Internal ---

    def _get_client(self) -> Any:
        if self._client is None:
            from massive import RESTClient

            self._client = RESTClient(api_key=self._api_key)
            logger.info("Massive REST client created")
        return self._client

    def _fetch_quote(self, base: str, quote: str) -> tuple[float, datetime]:
        """Synchronous call to the Massive REST API. Runs in a thread."""
        client = self._get_client()

        if base in CRYPTO_ASSETS:
            trade = client.get_last_crypto_trade(base, quote)
            return float(trade.price), _from_millis(trade.timestamp)

        last = client.get_last_forex_quote(base, quote).last
        price = (float(last.bid) + float(last.ask)) / 2.0
        return price, _from_millis(last.timestamp)


def _from_millis(timestamp_ms: Any) -> datetime:
    # Massive timestamps are Unix milliseconds
    return datetime.fromtimestamp(int(timestamp_ms) / 1000.0, tz=timezone.utc)
