from typing import Dict, List, Optional, Tuple

import httpx
import pytest

from bagslaunch.errors import ConfigurationError, WalletNotFoundError
from bagslaunch.oracle import CoingeckoOracle
from bagslaunch.types import ConfigResult, FeeShareConfig, Platform, TokenArtifact
from bagslaunch.wallet import ConfirmationResult

CREATOR = "CreatorWa11et1111111111111111111111111111111"
MINT = "Mint1111111111111111111111111111111111111bag"
SOL_PRICE = 150.0


class FakeApi:
    """In-memory stand-in for :class:`bagslaunch.api.LaunchApiClient`."""

    def __init__(self) -> None:
        self.api_key = "key"
        self.wallets: Dict[str, str] = {"bob": "ZClaimerWallet"}
        self.fee_share_tx: Optional[str] = None
        self.standalone_tx: Optional[str] = None
        self.failures: Dict[str, Exception] = {}
        self.calls: List[Tuple[str, tuple]] = []
        self.fee_share_configs: List[FeeShareConfig] = []
        self.closed = False

    def names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, args))
        if name in self.failures:
            raise self.failures[name]

    def require_key(self) -> None:
        if not self.api_key:
            raise ConfigurationError("Launch API key not configured")

    async def create_token_info(self, request) -> TokenArtifact:
        self._record("create_token_info", request)
        return TokenArtifact(
            token_mint=MINT,
            metadata_uri="https://ipfs.io/ipfs/QmMetadata",
            launch={"status": "PRE_LAUNCH"},
        )

    async def lookup_platform_wallet(self, username: str, platform: Platform) -> str:
        self._record("lookup_platform_wallet", username, platform)
        if username not in self.wallets:
            raise WalletNotFoundError(username, platform.value)
        return self.wallets[username]

    async def create_fee_share_config(self, config: FeeShareConfig) -> ConfigResult:
        self._record("create_fee_share_config", config)
        self.fee_share_configs.append(config)
        return ConfigResult("FeeShareCfg", self.fee_share_tx)

    async def create_standalone_launch_config(self, launch_wallet: str) -> ConfigResult:
        self._record("create_standalone_launch_config", launch_wallet)
        return ConfigResult("LaunchCfg", self.standalone_tx)

    async def create_launch_transaction(self, artifact, config_key, wallet, lamports) -> str:
        self._record("create_launch_transaction", artifact, config_key, wallet, lamports)
        return "launch-tx"

    async def create_launch_transaction_after_config(
        self, artifact, config_key, wallet, lamports
    ) -> str:
        self._record(
            "create_launch_transaction_after_config", artifact, config_key, wallet, lamports
        )
        return "launch-tx-after-config"

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        self.closed = True

    async def __aenter__(self) -> "FakeApi":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class FakeSigner:
    """Signer recording every call; failures keyed by transaction or signature."""

    address = CREATOR

    def __init__(self) -> None:
        self.events: List[Tuple[str, str]] = []
        self.lamports = 2_500_000_000
        self.balance_error: Optional[Exception] = None
        self.sign_failures: Dict[str, Exception] = {}
        self.confirm_failures: Dict[str, Exception] = {}

    async def balance(self) -> int:
        if self.balance_error is not None:
            raise self.balance_error
        return self.lamports

    async def sign(self, serialized: str) -> bytes:
        self.events.append(("sign", serialized))
        if serialized in self.sign_failures:
            raise self.sign_failures[serialized]
        return serialized.encode()

    async def broadcast(self, signed: bytes) -> str:
        signature = f"sig:{signed.decode()}"
        self.events.append(("broadcast", signature))
        return signature

    async def confirm(self, signature: str) -> ConfirmationResult:
        self.events.append(("confirm", signature))
        if signature in self.confirm_failures:
            raise self.confirm_failures[signature]
        return ConfirmationResult(signature=signature, status="confirmed", slot=1)

    async def aclose(self) -> None:
        pass


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def signer() -> FakeSigner:
    return FakeSigner()


def coingecko_oracle(price: float = SOL_PRICE, status: int = 200) -> CoingeckoOracle:
    """Coingecko oracle answering from an in-memory transport."""

    def handler(request: httpx.Request) -> httpx.Response:
        if status != 200:
            return httpx.Response(status, json={"error": "unavailable"})
        return httpx.Response(200, json={request.url.params["ids"]: {"usd": price}})

    return CoingeckoOracle(http=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
