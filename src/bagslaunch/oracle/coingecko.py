"""Coingecko-based price oracle."""

from __future__ import annotations

import logging
import time
from typing import Dict, Optional, Tuple

import httpx

from ..errors import NetworkError, UpstreamError

COINGECKO_PRICE_URL = "https://api.coingecko.com/api/v3/simple/price"
SOL = "solana"

logger = logging.getLogger(__name__)


class PriceOracle:
    async def price(self, token: str = SOL) -> float:  # pragma: no cover - interface
        raise NotImplementedError

    async def aclose(self) -> None:
        pass


class CoingeckoOracle(PriceOracle):
    """USD spot prices from the Coingecko simple price endpoint.

    Prices are cached for ``ttl`` seconds; a stale cached price is served when
    a refresh fails.
    """

    def __init__(
        self,
        http: Optional[httpx.AsyncClient] = None,
        url: str = COINGECKO_PRICE_URL,
        ttl: float = 60.0,
    ) -> None:
        self.session = http or httpx.AsyncClient()
        self.url = url
        self.ttl = ttl
        self._cache: Dict[str, Tuple[float, float]] = {}

    async def __aenter__(self) -> "CoingeckoOracle":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.session.aclose()

    async def aclose(self) -> None:
        await self.session.aclose()

    async def price(self, token: str = SOL) -> float:
        key = token.lower()
        now = time.monotonic()
        cached = self._cache.get(key)
        if cached is not None and now - cached[1] < self.ttl:
            return cached[0]
        try:
            resp = await self.session.get(
                self.url,
                params={"ids": key, "vs_currencies": "usd"},
                timeout=5,
            )
            resp.raise_for_status()
            price = float(resp.json()[key]["usd"])
        except httpx.HTTPStatusError as exc:
            if cached is not None:
                return cached[0]
            raise UpstreamError(
                f"Price lookup for {key} failed", status=exc.response.status_code
            ) from exc
        except httpx.RequestError as exc:
            if cached is not None:
                return cached[0]
            raise NetworkError(f"Price lookup for {key} failed: {exc}") from exc
        except (ValueError, KeyError, TypeError) as exc:
            if cached is not None:
                return cached[0]
            raise UpstreamError(f"Unexpected price response for {key}: {exc}") from exc
        if price <= 0:
            raise UpstreamError(f"No price available for {key}")
        logger.debug("%s price %.4f USD", key, price)
        self._cache[key] = (price, now)
        return price
