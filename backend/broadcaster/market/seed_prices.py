"""Seed prices and per-symbol parameters for the exchange rate simulator."""

# Realistic starting rates for the supported symbols
SEED_PRICES: dict[str, float] = {
    "EUR-USD": 1.0850,
    "USD-JPY": 151.20,
    "BTC-USD": 64000.00,
}

# Per-symbol GBM parameters
# sigma: annualized volatility (higher = more price movement)
# mu: annualized drift / expected return
SYMBOL_PARAMS: dict[str, dict[str, float]] = {
    "EUR-USD": {"sigma": 0.07, "mu": 0.0},
    "USD-JPY": {"sigma": 0.09, "mu": 0.01},
    "BTC-USD": {"sigma": 0.60, "mu": 0.10},  # Crypto is far more volatile
}

# Default parameters for symbols not listed above
DEFAULT_PARAMS: dict[str, float] = {"sigma": 0.10, "mu": 0.0}

# Decimal places quoted per symbol
PRICE_DECIMALS: dict[str, int] = {
    "EUR-USD": 5,
    "USD-JPY": 3,
    "BTC-USD": 2,
}

DEFAULT_DECIMALS = 4
