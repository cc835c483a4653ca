"""Signer interface consumed by the launch orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class ConfirmationResult:
    signature: str
    status: str
    slot: Optional[int] = None


class Signer(Protocol):
    """Capability that signs, broadcasts and confirms transactions.

    ``sign`` may wait indefinitely on the wallet owner; it raises
    :class:`~bagslaunch.errors.UserRejectedError` when declined and
    :class:`~bagslaunch.errors.WalletUnavailableError` when no wallet is
    present.  ``broadcast`` raises :class:`~bagslaunch.errors.NetworkError`
    on transport failures.  ``confirm`` raises
    :class:`~bagslaunch.errors.ChainRejectedError` if the transaction failed
    on chain and :class:`~bagslaunch.errors.ConfirmationTimeoutError` if it
    did not confirm in time.
    """

    async def sign(self, serialized: str) -> bytes:
        """Decode the base58 ``serialized`` transaction and return it signed."""

    async def broadcast(self, signed: bytes) -> str:
        """Submit ``signed`` and return its signature."""

    async def confirm(self, signature: str) -> ConfirmationResult:
        """Block until ``signature`` is confirmed."""

    async def balance(self) -> int:
        """Lamport balance of the signing wallet."""
