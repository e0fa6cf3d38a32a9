"""REST endpoints for supported symbols and on-demand prices."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from .coordinator import PriceFetchCoordinator
from .errors import ProviderError, ProviderUnavailable, SymbolNotFound

logger = logging.getLogger(__name__)


def create_rates_router(coordinator: PriceFetchCoordinator) -> APIRouter:
    """Create the exchange rates router bound to a coordinator."""
    router = APIRouter(prefix="/api/currency-exchange-rates", tags=["rates"])

    @router.get("")
    async def list_exchange_rates() -> list[str]:
        """Symbols that can be queried and subscribed to."""
        return coordinator.available_symbols()

    @router.get("/{symbol}/price", response_model=None)
    async def get_current_price(symbol: str) -> dict | JSONResponse:
        """Current price for one symbol.

        Three outcomes only: the price, 404 for an unknown instrument, or 503
        when the upstream provider cannot answer right now.
        """
        try:
            update = await coordinator.get_current_price(symbol)
        except SymbolNotFound as e:
            return JSONResponse(status_code=404, content={"error": str(e)})
        except ProviderUnavailable:
            return JSONResponse(
                status_code=503,
                content={"error": "Price data provider is currently unavailable."},
            )
        except ProviderError:
            logger.exception("Error fetching price update for %s", symbol)
            return JSONResponse(status_code=503, content={"error": "Failed to fetch price update."})
        except Exception:
            logger.exception("Unexpected error fetching price update for %s", symbol)
            return JSONResponse(status_code=500, content={"error": "An internal server error occurred."})

        return update.to_dict()

    return router
