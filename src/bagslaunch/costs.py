"""What a launch is expected to cost and what the launch wallet holds."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from .errors import LaunchError
from .oracle import SOL, PriceOracle
from .types import LAMPORTS_PER_SOL, sol_to_lamports

# Rough network and program fees for the config and launch transactions.
ESTIMATED_FEES_SOL = Decimal("0.05")

logger = logging.getLogger(__name__)


def _usd(sol: float, price: Optional[float]) -> Optional[float]:
    if not price:
        return None
    return round(sol * price, 2)


@dataclass(frozen=True)
class CostEstimate:
    initial_buy_sol: float
    fees_sol: float
    total_sol: float
    sol_price_usd: Optional[float] = None

    @property
    def total_usd(self) -> Optional[float]:
        return _usd(self.total_sol, self.sol_price_usd)

    def priced(self, sol_price_usd: Optional[float]) -> "CostEstimate":
        return dataclasses.replace(self, sol_price_usd=sol_price_usd)

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["total_usd"] = self.total_usd
        return data


@dataclass(frozen=True)
class WalletBalance:
    address: str
    lamports: int
    sol_price_usd: Optional[float] = None

    @property
    def sol(self) -> float:
        return self.lamports / LAMPORTS_PER_SOL

    @property
    def usd(self) -> Optional[float]:
        return _usd(self.sol, self.sol_price_usd)

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["sol"] = self.sol
        data["usd"] = self.usd
        return data


def estimate_cost(initial_buy_sol: float) -> CostEstimate:
    """Initial buy plus estimated fees; raises ``ValidationError`` on bad amounts."""
    buy = Decimal(sol_to_lamports(initial_buy_sol)) / LAMPORTS_PER_SOL
    return CostEstimate(
        initial_buy_sol=float(buy),
        fees_sol=float(ESTIMATED_FEES_SOL),
        total_sol=float(buy + ESTIMATED_FEES_SOL),
    )


async def sol_price(oracle: Optional[PriceOracle]) -> Optional[float]:
    """USD price of SOL, or ``None`` when it cannot be fetched."""
    if oracle is None:
        return None
    try:
        return await oracle.price(SOL)
    except LaunchError as exc:
        logger.warning("SOL price unavailable: %s", exc)
        return None
