"""Value types shared by the launch client, signer and orchestrator."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .errors import LaunchError, ValidationError

# Wrapped SOL; the quote side of every fee-share config.
WSOL_MINT = "So11111111111111111111111111111111111111112"
IPFS_GATEWAY = "https://ipfs.io/ipfs/"
LAMPORTS_PER_SOL = 1_000_000_000
TOTAL_BPS = 10_000


class Platform(str, Enum):
    TWITTER = "twitter"


class LaunchState(str, Enum):
    COLLECTING_METADATA = "collecting_metadata"
    CONFIGURING_FEE_SHARE = "configuring_fee_share"
    REQUESTING_LAUNCH_TX = "requesting_launch_tx"
    SIGNING_CONFIG = "signing_config"
    REQUESTING_LAUNCH_TX_AFTER_CONFIG = "requesting_launch_tx_after_config"
    SIGNING_LAUNCH = "signing_launch"
    CONFIRMING = "confirming"
    DONE = "done"
    FAILED = "failed"


def sol_to_lamports(sol: float) -> int:
    """Convert a SOL amount to lamports, rounding down."""
    amount = Decimal(str(sol))
    if not amount.is_finite():
        raise ValidationError(f"Initial buy must be a finite amount of SOL, got {sol}")
    lamports = int(amount * LAMPORTS_PER_SOL)
    if lamports < 0:
        raise ValidationError("Initial buy must not be negative")
    return lamports


@dataclass(frozen=True)
class ImageFile:
    filename: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class LaunchRequest:
    """Everything needed to launch one token.

    ``username`` is the raw handle as typed by the user; it is cleaned and
    validated by the orchestrator.  ``creator_bps`` and ``claimer_bps`` only
    matter when a username is given and must then add up to 10000.
    """

    name: str
    symbol: str
    launch_wallet: str
    description: str = ""
    image: Optional[ImageFile] = None
    username: str = ""
    platform: Platform = Platform.TWITTER
    creator_bps: int = 1_000
    claimer_bps: int = 9_000
    initial_buy_lamports: int = 0
    website: str = ""
    twitter: str = ""
    telegram: str = ""


@dataclass(frozen=True)
class TokenArtifact:
    token_mint: str
    metadata_uri: str
    launch: Mapping[str, Any] = field(default_factory=dict)

    @property
    def ipfs_hash(self) -> str:
        uri = self.metadata_uri
        if uri.startswith(IPFS_GATEWAY):
            return uri[len(IPFS_GATEWAY):]
        return uri


@dataclass(frozen=True)
class ConfigResult:
    """Config key plus the transaction that must land before it is usable."""

    config_key: str
    transaction: Optional[str] = None


@dataclass(frozen=True)
class FeeShareConfig:
    """Fee split between two wallets, ordered for the on-chain record.

    Slot A always holds the wallet whose address sorts first under plain
    code-point comparison, whichever of creator or claimer that is.
    """

    wallet_a: str
    wallet_b: str
    wallet_a_bps: int
    wallet_b_bps: int
    payer: str
    base_mint: str
    creator_wallet: str
    claimer_wallet: str
    quote_mint: str = WSOL_MINT
    config_key: Optional[str] = None
    transaction: Optional[str] = None

    @classmethod
    def build(
        cls,
        creator_wallet: str,
        claimer_wallet: str,
        creator_bps: int,
        claimer_bps: int,
        base_mint: str,
    ) -> "FeeShareConfig":
        if creator_bps < 0 or claimer_bps < 0 or creator_bps + claimer_bps != TOTAL_BPS:
            raise ValidationError(
                f"Fee split must add up to {TOTAL_BPS} bps, got {creator_bps} + {claimer_bps}"
            )
        if creator_wallet == claimer_wallet:
            raise ValidationError("Fee claimer wallet is the same as the creator wallet")
        if creator_wallet < claimer_wallet:
            a, b, a_bps, b_bps = creator_wallet, claimer_wallet, creator_bps, claimer_bps
        else:
            a, b, a_bps, b_bps = claimer_wallet, creator_wallet, claimer_bps, creator_bps
        return cls(
            wallet_a=a,
            wallet_b=b,
            wallet_a_bps=a_bps,
            wallet_b_bps=b_bps,
            payer=creator_wallet,
            base_mint=base_mint,
            creator_wallet=creator_wallet,
            claimer_wallet=claimer_wallet,
        )

    @property
    def creator_bps(self) -> int:
        return self.wallet_a_bps if self.wallet_a == self.creator_wallet else self.wallet_b_bps

    @property
    def claimer_bps(self) -> int:
        return self.wallet_a_bps if self.wallet_a == self.claimer_wallet else self.wallet_b_bps

    def payload(self) -> Dict[str, Any]:
        return {
            "walletA": self.wallet_a,
            "walletB": self.wallet_b,
            "walletABps": self.wallet_a_bps,
            "walletBBps": self.wallet_b_bps,
            "payer": self.payer,
            "baseMint": self.base_mint,
            "quoteMint": self.quote_mint,
        }

    def with_result(self, result: ConfigResult) -> "FeeShareConfig":
        return dataclasses.replace(
            self, config_key=result.config_key, transaction=result.transaction
        )


@dataclass(frozen=True)
class LaunchPlan:
    """Either a ready launch transaction or a config that must be signed first."""

    artifact: TokenArtifact
    config_key: str
    launch_wallet: str
    initial_buy_lamports: int
    transaction: Optional[str] = None
    config_transaction: Optional[str] = None

    @property
    def needs_config_signing(self) -> bool:
        return self.config_transaction is not None


@dataclass(frozen=True)
class FeeSharingSummary:
    platform: str
    username: str
    creator_percent: float
    claimer_percent: float

    @classmethod
    def from_config(
        cls, config: FeeShareConfig, username: str, platform: Platform
    ) -> "FeeSharingSummary":
        return cls(
            platform=platform.value,
            username=username,
            creator_percent=config.creator_bps / 100,
            claimer_percent=config.claimer_bps / 100,
        )


@dataclass
class LaunchOutcome:
    ok: bool
    state: LaunchState
    states: List[LaunchState] = field(default_factory=list)
    token_mint: Optional[str] = None
    signature: Optional[str] = None
    metadata_uri: Optional[str] = None
    fee_sharing: Optional[FeeSharingSummary] = None
    error: Optional[str] = None
    message: Optional[str] = None
    status: Optional[int] = None
    config_signature: Optional[str] = None
    partial: bool = False

    @classmethod
    def rejected(cls, exc: LaunchError) -> "LaunchOutcome":
        """Failure for input refused before a launch could start."""
        return cls(
            ok=False,
            state=LaunchState.FAILED,
            states=[LaunchState.COLLECTING_METADATA, LaunchState.FAILED],
            error=exc.kind,
            message=exc.message,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["state"] = self.state.value
        data["states"] = [s.value for s in self.states]
        return data


__all__ = [
    "WSOL_MINT",
    "IPFS_GATEWAY",
    "LAMPORTS_PER_SOL",
    "TOTAL_BPS",
    "Platform",
    "LaunchState",
    "sol_to_lamports",
    "ImageFile",
    "LaunchRequest",
    "TokenArtifact",
    "ConfigResult",
    "FeeShareConfig",
    "LaunchPlan",
    "FeeSharingSummary",
    "LaunchOutcome",
]
