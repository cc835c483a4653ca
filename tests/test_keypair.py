import json
import types

import base58
import httpx
import pytest
from cryptography.fernet import Fernet
from solana.rpc.core import RPCException
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0, to_bytes_versioned
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction
from solders.transaction_status import TransactionConfirmationStatus

from bagslaunch.errors import (
    ChainRejectedError,
    ConfigurationError,
    ConfirmationTimeoutError,
    NetworkError,
    UpstreamError,
    UserRejectedError,
)
from bagslaunch.wallet import KeypairSigner, load_keypair


class DummyRpc:
    def __init__(self, statuses=None, rpc_error=None) -> None:
        self.statuses = list(statuses or [])
        self.rpc_error = rpc_error
        self.sent = []
        self.polls = 0
        self.lamports = 0
        self.closed = False

    async def send_raw_transaction(self, txn, opts=None):
        if self.rpc_error is not None:
            raise self.rpc_error
        self.sent.append((txn, opts))
        return types.SimpleNamespace(value=VersionedTransaction.from_bytes(txn).signatures[0])

    async def get_signature_statuses(self, signatures):
        self.polls += 1
        status = self.statuses.pop(0) if self.statuses else None
        return types.SimpleNamespace(value=[status])

    async def get_balance(self, pubkey):
        if self.rpc_error is not None:
            raise self.rpc_error
        self.balance_of = pubkey
        return types.SimpleNamespace(value=self.lamports)

    async def close(self):
        self.closed = True


def status(confirmation, err=None):
    return types.SimpleNamespace(confirmation_status=confirmation, err=err, slot=42)


def partially_signed(payer: Keypair, mint: Keypair) -> tuple:
    """Launch-like transaction needing payer and mint signatures, mint already signed."""
    ixs = [
        transfer(TransferParams(from_pubkey=payer.pubkey(), to_pubkey=mint.pubkey(), lamports=1)),
        transfer(TransferParams(from_pubkey=mint.pubkey(), to_pubkey=payer.pubkey(), lamports=1)),
    ]
    message = MessageV0.try_compile(payer.pubkey(), ixs, [], Hash.default())
    mint_sig = mint.sign_message(to_bytes_versioned(message))
    tx = VersionedTransaction.populate(message, [Signature.default(), mint_sig])
    return base58.b58encode(bytes(tx)).decode(), message, mint_sig


def make_signer(keypair, rpc=None, **kwargs) -> KeypairSigner:
    return KeypairSigner(keypair, "http://rpc.test", client=rpc or DummyRpc(), **kwargs)


@pytest.mark.asyncio
async def test_sign_fills_own_slot_only():
    payer, mint = Keypair(), Keypair()
    serialized, message, mint_sig = partially_signed(payer, mint)

    signed = VersionedTransaction.from_bytes(await make_signer(payer).sign(serialized))

    assert signed.message == message
    assert signed.signatures[0] == payer.sign_message(to_bytes_versioned(message))
    assert signed.signatures[1] == mint_sig


@pytest.mark.asyncio
async def test_sign_rejects_foreign_transaction():
    payer, mint = Keypair(), Keypair()
    serialized, _, _ = partially_signed(payer, mint)

    with pytest.raises(UserRejectedError):
        await make_signer(Keypair()).sign(serialized)


@pytest.mark.asyncio
async def test_sign_rejects_garbage():
    with pytest.raises(UpstreamError):
        await make_signer(Keypair()).sign("not-a-transaction")


@pytest.mark.asyncio
async def test_broadcast_returns_signature():
    payer, mint = Keypair(), Keypair()
    serialized, _, _ = partially_signed(payer, mint)
    rpc = DummyRpc()
    signer = make_signer(payer, rpc)

    signed = await signer.sign(serialized)
    signature = await signer.broadcast(signed)

    assert signature == str(VersionedTransaction.from_bytes(signed).signatures[0])
    txn, opts = rpc.sent[0]
    assert txn == signed
    assert opts.skip_preflight is True
    assert opts.max_retries == 3


@pytest.mark.asyncio
async def test_broadcast_transport_failure():
    rpc = DummyRpc(rpc_error=httpx.ConnectError("refused"))
    with pytest.raises(NetworkError):
        await make_signer(Keypair(), rpc).broadcast(b"\x00")


@pytest.mark.asyncio
async def test_confirm_polls_until_confirmed():
    rpc = DummyRpc(
        statuses=[
            None,
            status(TransactionConfirmationStatus.Processed),
            status(TransactionConfirmationStatus.Confirmed),
        ]
    )
    signer = make_signer(Keypair(), rpc, poll_interval=0.001)
    signature = str(Signature.default())

    result = await signer.confirm(signature)

    assert result.signature == signature
    assert result.slot == 42
    assert rpc.polls == 3


@pytest.mark.asyncio
async def test_confirm_chain_error():
    err = {"InstructionError": [0, {"Custom": 1}]}
    rpc = DummyRpc(statuses=[status(TransactionConfirmationStatus.Confirmed, err=err)])
    with pytest.raises(ChainRejectedError) as exc:
        await make_signer(Keypair(), rpc).confirm(str(Signature.default()))
    assert exc.value.err == err


@pytest.mark.asyncio
async def test_confirm_insufficient_funds_message():
    rpc = DummyRpc(
        statuses=[status(TransactionConfirmationStatus.Processed, err="InsufficientFundsForFee")]
    )
    with pytest.raises(ChainRejectedError) as exc:
        await make_signer(Keypair(), rpc).confirm(str(Signature.default()))
    assert exc.value.message == "Insufficient SOL balance for transaction fees"
    assert exc.value.err == "InsufficientFundsForFee"


@pytest.mark.asyncio
async def test_broadcast_insufficient_funds_message():
    rpc = DummyRpc(rpc_error=RPCException("Transfer: insufficient lamports 100, need 5000"))
    with pytest.raises(ChainRejectedError) as exc:
        await make_signer(Keypair(), rpc).broadcast(b"\x00")
    assert exc.value.signature is None
    assert exc.value.message == "Insufficient SOL balance for transaction fees"


@pytest.mark.asyncio
async def test_confirm_timeout():
    signer = make_signer(Keypair(), DummyRpc(), confirm_timeout=0.05, poll_interval=0.01)
    with pytest.raises(ConfirmationTimeoutError):
        await signer.confirm(str(Signature.default()))



@pytest.mark.asyncio
async def test_balance_reads_signing_wallet():
    keypair = Keypair()
    rpc = DummyRpc()
    rpc.lamports = 1_250_000_000
    assert await make_signer(keypair, rpc).balance() == 1_250_000_000
    assert rpc.balance_of == keypair.pubkey()


@pytest.mark.asyncio
async def test_balance_transport_failure():
    rpc = DummyRpc(rpc_error=httpx.ConnectError("refused"))
    with pytest.raises(NetworkError):
        await make_signer(Keypair(), rpc).balance()



@pytest.mark.asyncio
async def test_signer_closes_client():
    rpc = DummyRpc()
    async with make_signer(Keypair(), rpc) as signer:
        assert signer.address
    assert rpc.closed


def test_load_keypair_json(tmp_path):
    keypair = Keypair()
    path = tmp_path / "id.json"
    path.write_text(json.dumps(list(bytes(keypair))))
    assert load_keypair(str(path)).pubkey() == keypair.pubkey()


def test_load_keypair_encrypted(tmp_path):
    keypair = Keypair()
    key = Fernet.generate_key()
    path = tmp_path / "id.enc"
    path.write_bytes(Fernet(key).encrypt(keypair.to_json().encode()))
    assert load_keypair(str(path), key.decode()).pubkey() == keypair.pubkey()


def test_load_keypair_base58(tmp_path):
    keypair = Keypair()
    path = tmp_path / "id.txt"
    path.write_text(str(keypair) + "\n")
    assert load_keypair(str(path)).pubkey() == keypair.pubkey()


def test_load_keypair_requires_path():
    with pytest.raises(ConfigurationError):
        load_keypair("")
