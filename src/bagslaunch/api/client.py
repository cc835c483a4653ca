"""Async client for the Bags token-launch API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type

import httpx
from pydantic import ValidationError as SchemaError

from ..errors import ConfigurationError, NetworkError, UpstreamError, WalletNotFoundError
from ..types import (
    ConfigResult,
    FeeShareConfig,
    LaunchRequest,
    Platform,
    TokenArtifact,
)
from .schema import Envelope, ErrorBody, LaunchConfig, TokenInfo

DEFAULT_BASE_URL = "https://public-api-v2.bags.fm/api/v1"
PING_URL = "https://public-api-v2.bags.fm/ping"

logger = logging.getLogger(__name__)

_UPLOAD_ERRORS = {
    413: "Image file must be under 15MB",
    429: "Too many requests. Please wait a moment and try again.",
    500: "Server error. Please try again later.",
}

# Substring of the 400 error text -> message shown to the user.
_BAD_UPLOAD_ERRORS = (
    ("file type", "Unsupported file type. Please upload PNG, JPG, JPEG, GIF, or WebP images."),
    ("Unsupported", "Unsupported file type. Please upload PNG, JPG, JPEG, GIF, or WebP images."),
    ("required", "Image file is required"),
    ("Invalid image", "Invalid image file. Please check your file and try again."),
)


def _upload_error_message(resp: httpx.Response) -> str:
    if resp.status_code in _UPLOAD_ERRORS:
        return _UPLOAD_ERRORS[resp.status_code]
    message = _error_message(resp)
    if resp.status_code == 400:
        for needle, friendly in _BAD_UPLOAD_ERRORS:
            if needle in message:
                return friendly
        return message or "Bad request"
    return message


def _validation_issues(items: list) -> Optional[str]:
    parts = []
    for item in items:
        if isinstance(item, dict):
            path = ".".join(str(p) for p in item.get("path", []))
            parts.append(f"{path}: {item.get('message', '')}")
    return "Validation errors: " + ", ".join(parts) if parts else None


def _error_message(resp: httpx.Response) -> str:
    """Best human readable message from an error response."""
    fallback = resp.text or resp.reason_phrase
    try:
        raw = resp.json()
    except ValueError:
        return fallback
    if isinstance(raw, list):
        return _validation_issues(raw) or fallback
    try:
        body = ErrorBody.model_validate(raw)
    except SchemaError:
        return fallback
    if isinstance(body.error, str) and body.error:
        return body.error
    if isinstance(body.error, list):
        return _validation_issues(body.error) or fallback
    return fallback


class LaunchApiClient:
    """Stateless request/response wrappers for the launch endpoints.

    Parameters
    ----------
    api_key:
        Value of the ``x-api-key`` header.  Every call fails with
        :class:`~bagslaunch.errors.ConfigurationError` before touching the
        network when it is empty.
    base_url:
        API root, defaults to the public v1 endpoint.
    http:
        Optional pre-built ``httpx.AsyncClient``; tests pass one backed by
        ``httpx.MockTransport``.
    """

    TOKEN_INFO_PATH = "/token-launch/create-token-info"
    WALLET_PATH = "/token-launch/fee-share/wallet/{platform}"
    FEE_SHARE_CONFIG_PATH = "/token-launch/fee-share/create-config"
    LAUNCH_CONFIG_PATH = "/token-launch/create-config"
    LAUNCH_TX_PATH = "/token-launch/create-launch-transaction"
    LAUNCH_TX_AFTER_CONFIG_PATH = "/token-launch/create-launch-transaction-after-config"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        http: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        ping_url: str = PING_URL,
    ) -> None:
        self.api_key = api_key or ""
        self.base_url = base_url.rstrip("/")
        self.ping_url = ping_url
        self.session = http or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "LaunchApiClient":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.session.aclose()

    async def aclose(self) -> None:
        await self.session.aclose()

    def require_key(self) -> None:
        if not self.api_key:
            raise ConfigurationError("Launch API key not configured")

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        self.require_key()
        headers = {"x-api-key": self.api_key}
        url = f"{self.base_url}{path}"
        try:
            return await self.session.request(method, url, headers=headers, **kwargs)
        except httpx.RequestError as exc:
            raise NetworkError(f"Network error calling {path}: {exc}") from exc

    @staticmethod
    def _parse(resp: httpx.Response, schema: Type[Any], path: str) -> Any:
        try:
            envelope = Envelope[schema].model_validate(resp.json())
        except (ValueError, SchemaError) as exc:
            raise UpstreamError(
                f"Unexpected response from {path}: {exc}", status=resp.status_code
            ) from exc
        if not envelope.success:
            raise UpstreamError(_error_message(resp), status=resp.status_code)
        return envelope.response

    async def _call(self, method: str, path: str, schema: Type[Any], **kwargs: Any) -> Any:
        resp = await self._send(method, path, **kwargs)
        if resp.is_error:
            raise UpstreamError(_error_message(resp), status=resp.status_code)
        return self._parse(resp, schema, path)

    async def create_token_info(self, request: LaunchRequest) -> TokenArtifact:
        """Upload metadata and image, returning the new mint and metadata URI."""
        form: Dict[str, str] = {
            "name": request.name,
            "symbol": request.symbol,
            "description": request.description,
        }
        for key, value in (
            ("website", request.website),
            ("twitter", request.twitter),
            ("telegram", request.telegram),
        ):
            if value:
                form[key] = value
        files = None
        if request.image is not None:
            image = request.image
            files = {"image": (image.filename, image.data, image.content_type)}
            logger.info("uploading image %s (%.2fMB)", image.filename, image.size / 1024 / 1024)

        resp = await self._send("POST", self.TOKEN_INFO_PATH, data=form, files=files)
        if resp.is_error:
            raise UpstreamError(_upload_error_message(resp), status=resp.status_code)
        info: TokenInfo = self._parse(resp, TokenInfo, self.TOKEN_INFO_PATH)
        logger.info("token info created for mint %s", info.token_mint)
        return TokenArtifact(
            token_mint=info.token_mint,
            metadata_uri=info.token_metadata,
            launch=info.token_launch,
        )

    async def lookup_platform_wallet(self, username: str, platform: Platform) -> str:
        path = self.WALLET_PATH.format(platform=platform.value)
        resp = await self._send(
            "GET", path, params={f"{platform.value}Username": username}
        )
        if resp.status_code == 404:
            raise WalletNotFoundError(username, platform.value)
        if resp.is_error:
            raise UpstreamError(_error_message(resp), status=resp.status_code)
        wallet: str = self._parse(resp, str, path)
        if not wallet:
            raise WalletNotFoundError(username, platform.value)
        return wallet

    async def create_fee_share_config(self, config: FeeShareConfig) -> ConfigResult:
        payload = config.payload()
        logger.debug("fee share payload: %s", payload)
        cfg: LaunchConfig = await self._call(
            "POST", self.FEE_SHARE_CONFIG_PATH, LaunchConfig, json=payload
        )
        return ConfigResult(config_key=cfg.config_key, transaction=cfg.tx or None)

    async def create_standalone_launch_config(self, launch_wallet: str) -> ConfigResult:
        cfg: LaunchConfig = await self._call(
            "POST",
            self.LAUNCH_CONFIG_PATH,
            LaunchConfig,
            json={"launchWallet": launch_wallet},
        )
        return ConfigResult(config_key=cfg.config_key, transaction=cfg.tx or None)

    @staticmethod
    def _launch_payload(
        artifact: TokenArtifact, config_key: str, wallet: str, initial_buy_lamports: int
    ) -> Dict[str, Any]:
        return {
            "ipfs": artifact.ipfs_hash,
            "tokenMint": artifact.token_mint,
            "wallet": wallet,
            "configKey": config_key,
            "initialBuyLamports": initial_buy_lamports,
        }

    async def _launch_transaction(self, path: str, payload: Dict[str, Any]) -> str:
        logger.debug("launch transaction payload: %s", payload)
        tx: str = await self._call("POST", path, str, json=payload)
        if not tx:
            raise UpstreamError(f"No transaction returned from {path}")
        return tx

    async def create_launch_transaction(
        self, artifact: TokenArtifact, config_key: str, wallet: str, initial_buy_lamports: int
    ) -> str:
        """Return the base58 serialized launch transaction."""
        payload = self._launch_payload(artifact, config_key, wallet, initial_buy_lamports)
        return await self._launch_transaction(self.LAUNCH_TX_PATH, payload)

    async def create_launch_transaction_after_config(
        self, artifact: TokenArtifact, config_key: str, wallet: str, initial_buy_lamports: int
    ) -> str:
        """Same as :meth:`create_launch_transaction` once the config tx has landed."""
        payload = self._launch_payload(artifact, config_key, wallet, initial_buy_lamports)
        return await self._launch_transaction(self.LAUNCH_TX_AFTER_CONFIG_PATH, payload)

    async def ping(self) -> bool:
        try:
            resp = await self.session.get(self.ping_url, timeout=5)
            return resp.json().get("message") == "pong"
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            logger.warning("ping failed: %s", exc)
            return False
