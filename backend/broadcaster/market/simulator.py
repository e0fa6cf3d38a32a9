"""GBM-based exchange rate simulator."""

from __future__ import annotations

import logging
import math
import random
import time

import numpy as np

from .interface import PriceProvider
from .models import PriceUpdate
from .seed_prices import (
    DEFAULT_DECIMALS,
    DEFAULT_PARAMS,
    PRICE_DECIMALS,
    SEED_PRICES,
    SYMBOL_PARAMS,
)

logger = logging.getLogger(__name__)


class GBMSimulator:
    """Geometric Brownian Motion simulator for exchange rates.

    Math:
        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    Where:
        S(t)   = current rate
        mu     = annualized drift
        sigma  = annualized volatility
        dt     = elapsed time as a fraction of a year
        Z      = standard normal random variable

    FX and crypto trade around the clock, so a year is 365 * 24h. Unlike a
    fixed-cadence ticker, each symbol advances by however much time passed
    since it was last observed.
    """

    SECONDS_PER_YEAR = 365 * 24 * 3600  # 31,536,000

    def __init__(self, symbols: list[str], event_probability: float = 0.001) -> None:
        self._event_prob = event_probability
        self._rng = np.random.default_rng()

        self._prices: dict[str, float] = {}
        self._params: dict[str, dict[str, float]] = {}

        for symbol in symbols:
            self.add_symbol(symbol)

    # --- Public API ---

    def step(self, symbol: str, elapsed_seconds: float) -> float:
        """Advance one symbol by ``elapsed_seconds``. Returns the rounded rate."""
        params = self._params[symbol]
        mu = params["mu"]
        sigma = params["sigma"]
        dt = max(elapsed_seconds, 0.0) / self.SECONDS_PER_YEAR

        if dt > 0:
            z = float(self._rng.standard_normal())
            drift = (mu - 0.5 * sigma**2) * dt
            diffusion = sigma * math.sqrt(dt) * z
            self._prices[symbol] *= math.exp(drift + diffusion)

        # Random event: occasional 0.5-1.5% jump, e.g. a central bank surprise
        if random.random() < self._event_prob:
            shock_magnitude = random.uniform(0.005, 0.015)
            shock_sign = random.choice([-1, 1])
            self._prices[symbol] *= 1 + shock_magnitude * shock_sign
            logger.debug(
                "Random event on %s: %.2f%% %s",
                symbol,
                shock_magnitude * 100,
                "up" if shock_sign > 0 else "down",
            )

        return self.get_price(symbol)

    def add_symbol(self, symbol: str) -> None:
        if symbol in self._prices:
            return
        self._prices[symbol] = SEED_PRICES.get(symbol, random.uniform(0.5, 2.0))
        self._params[symbol] = SYMBOL_PARAMS.get(symbol, dict(DEFAULT_PARAMS))

    def get_price(self, symbol: str) -> float | None:
        """Current rate rounded to the symbol's quote precision, or None if not tracked."""
        price = self._prices.get(symbol)
        if price is None:
            return None
        return round(price, PRICE_DECIMALS.get(symbol, DEFAULT_DECIMALS))

    def symbols(self) -> list[str]:
        return list(self._prices)


class SimulatorPriceProvider(PriceProvider):
    """PriceProvider backed by the GBM simulator.

    Used when no Massive API key is configured. Never fails, which makes it
    handy for local development but useless for exercising error paths.
    """

    def __init__(self, symbols: list[str], event_probability: float = 0.001) -> None:
        self._sim = GBMSimulator(symbols=symbols, event_probability=event_probability)
        self._last_observed: dict[str, float] = {}
        logger.info("Simulator provider created for %d symbols", len(symbols))

    async def fetch(self, symbol: str) -> PriceUpdate:
        now = time.monotonic()
        elapsed = now - self._last_observed.get(symbol, now)
        self._last_observed[symbol] = now
        self._sim.add_symbol(symbol)
        price = self._sim.step(symbol, elapsed)
        return PriceUpdate.now(symbol, price)
