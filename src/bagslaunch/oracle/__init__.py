"""USD price lookups."""

from .coingecko import COINGECKO_PRICE_URL, SOL, CoingeckoOracle, PriceOracle

__all__ = ["COINGECKO_PRICE_URL", "SOL", "CoingeckoOracle", "PriceOracle"]
