"""Keypair-backed signer talking to a Solana RPC node.

This is the server-side stand-in for a browser wallet: transactions handed
back by the launch API are partially signed (the mint keypair signs
upstream), so the local keypair only fills in its own signature slot.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

import base58
import httpx
from cryptography.fernet import Fernet
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.keypair import Keypair
from solders.message import to_bytes_versioned
from solders.signature import Signature
from solders.transaction import VersionedTransaction
from solders.transaction_status import TransactionConfirmationStatus

from ..errors import (
    ChainRejectedError,
    ConfigurationError,
    ConfirmationTimeoutError,
    NetworkError,
    UpstreamError,
    UserRejectedError,
)
from .signer import ConfirmationResult

logger = logging.getLogger(__name__)

_CONFIRMED = (TransactionConfirmationStatus.Confirmed, TransactionConfirmationStatus.Finalized)


def load_keypair(path: str, key: Optional[str] = None) -> Keypair:
    """Load a signing keypair from ``path``.

    Parameters
    ----------
    path:
        File holding either a JSON array of the 64 secret key bytes (the
        ``solana-keygen`` format) or a base58 encoded secret key.
    key:
        Optional base64 Fernet key.  When given the file is decrypted first.
    """
    if not path:
        raise ConfigurationError("no keypair path specified")
    with open(path, "rb") as fh:
        data = fh.read()
    if key:
        data = Fernet(key).decrypt(data)
    text = data.decode().strip()
    if text.startswith("["):
        return Keypair.from_bytes(bytes(json.loads(text)))
    return Keypair.from_base58_string(text)


class KeypairSigner:
    """Sign with a local :class:`~solders.keypair.Keypair` and submit over RPC.

    Parameters
    ----------
    keypair:
        Wallet used to sign.  Must be one of the required signers of every
        transaction it is asked to sign.
    rpc_http:
        HTTP RPC endpoint used for broadcast and confirmation.
    confirm_timeout:
        Seconds to wait for ``confirmed`` commitment before giving up.
    poll_interval:
        Delay between signature status polls.
    """

    def __init__(
        self,
        keypair: Keypair,
        rpc_http: str,
        confirm_timeout: float = 60.0,
        poll_interval: float = 1.0,
        client: Optional[AsyncClient] = None,
    ) -> None:
        self.keypair = keypair
        self.confirm_timeout = confirm_timeout
        self.poll_interval = poll_interval
        self.client = client or AsyncClient(rpc_http)

    @property
    def address(self) -> str:
        return str(self.keypair.pubkey())

    async def __aenter__(self) -> "KeypairSigner":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.client.close()

    async def aclose(self) -> None:
        await self.client.close()

    async def balance(self) -> int:
        """Lamports held by the signing wallet."""
        try:
            resp = await self.client.get_balance(self.keypair.pubkey())
        except (SolanaRpcException, httpx.HTTPError) as exc:
            raise NetworkError(f"Failed to fetch balance of {self.address}: {exc}") from exc
        return resp.value

    async def sign(self, serialized: str) -> bytes:
        try:
            tx = VersionedTransaction.from_bytes(base58.b58decode(serialized))
        except Exception as exc:
            raise UpstreamError(f"Could not decode transaction: {exc}") from exc

        message = tx.message
        required = list(message.account_keys[: message.header.num_required_signatures])
        pubkey = self.keypair.pubkey()
        if pubkey not in required:
            raise UserRejectedError(f"Wallet {pubkey} is not a signer of this transaction")

        signatures = list(tx.signatures)
        signatures[required.index(pubkey)] = self.keypair.sign_message(
            to_bytes_versioned(message)
        )
        signed = VersionedTransaction.populate(message, signatures)
        logger.debug("signed transaction %s", signatures[0])
        return bytes(signed)

    async def broadcast(self, signed: bytes) -> str:
        try:
            resp = await self.client.send_raw_transaction(
                signed, opts=TxOpts(skip_preflight=True, max_retries=3)
            )
        except RPCException as exc:
            raise ChainRejectedError(None, exc) from exc
        except (SolanaRpcException, httpx.HTTPError) as exc:
            raise NetworkError(f"Failed to send transaction: {exc}") from exc
        signature = str(resp.value)
        logger.info("transaction sent: %s", signature)
        return signature

    async def confirm(self, signature: str) -> ConfirmationResult:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.confirm_timeout
        sig = Signature.from_string(signature)
        while True:
            try:
                resp = await self.client.get_signature_statuses([sig])
            except (SolanaRpcException, httpx.HTTPError) as exc:
                raise NetworkError(f"Failed to fetch status of {signature}: {exc}") from exc
            status = resp.value[0]
            if status is not None:
                if status.err is not None:
                    raise ChainRejectedError(signature, status.err)
                if status.confirmation_status in _CONFIRMED:
                    logger.info("transaction confirmed: %s", signature)
                    return ConfirmationResult(
                        signature=signature,
                        status=str(status.confirmation_status),
                        slot=status.slot,
                    )
            if loop.time() >= deadline:
                raise ConfirmationTimeoutError(signature, self.confirm_timeout)
            await asyncio.sleep(self.poll_interval)
