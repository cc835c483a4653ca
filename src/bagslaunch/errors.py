"""Error taxonomy for token launches.

Every failure a launch can run into is a :class:`LaunchError` subclass with a
stable ``kind`` tag.  Collaborators raise these; the orchestrator turns them
into failure outcomes so callers never have to catch anything.
"""

from __future__ import annotations

from typing import Any, Optional


class LaunchError(Exception):
    """Base class for all launch failures."""

    kind = "launch_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LaunchError):
    """Request input is malformed; never reaches the network."""

    kind = "validation"


class InvalidMediaError(LaunchError):
    """Token image violates size or type constraints."""

    kind = "invalid_media"


class ConfigurationError(LaunchError):
    """Required credentials or settings are missing."""

    kind = "configuration"


class UpstreamError(LaunchError):
    """The launch API rejected a request or answered with an unexpected shape."""

    kind = "upstream"

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.message} (HTTP {self.status})"


class WalletNotFoundError(UpstreamError):
    """The social account has no wallet registered with the platform."""

    kind = "wallet_not_found"

    def __init__(self, username: str, platform: str) -> None:
        super().__init__(
            f"@{username} doesn't have a registered wallet on {platform}. "
            "They need to connect their wallet at bags.fm first.",
            status=404,
        )
        self.username = username
        self.platform = platform


class UserRejectedError(LaunchError):
    """The wallet declined to sign."""

    kind = "user_rejected"


class WalletUnavailableError(LaunchError):
    """No wallet capability is available to sign with."""

    kind = "wallet_unavailable"


class NetworkError(LaunchError):
    """Transport failure while talking to the API or the RPC node."""

    kind = "network"


# Markers of a fee payer that cannot cover fees or rent, in RPC messages and
# transaction error names.
_INSUFFICIENT_FUNDS = ("insufficient funds", "insufficientfunds", "insufficient lamports")


class ChainRejectedError(LaunchError):
    """Transaction was rejected by the cluster, on submission or after landing."""

    kind = "chain_rejected"

    def __init__(self, signature: Optional[str], err: Any) -> None:
        detail = str(err).lower()
        if any(marker in detail for marker in _INSUFFICIENT_FUNDS):
            super().__init__("Insufficient SOL balance for transaction fees")
        elif signature:
            super().__init__(f"Transaction {signature} failed: {err}")
        else:
            super().__init__(f"Transaction rejected: {err}")
        self.signature = signature
        self.err = err


class ConfirmationTimeoutError(LaunchError):
    """Transaction was not confirmed within the allowed window."""

    kind = "confirmation_timeout"

    def __init__(self, signature: str, timeout: float) -> None:
        super().__init__(f"Transaction {signature} not confirmed after {timeout:.0f}s")
        self.signature = signature
        self.timeout = timeout


__all__ = [
    "LaunchError",
    "ValidationError",
    "InvalidMediaError",
    "ConfigurationError",
    "UpstreamError",
    "WalletNotFoundError",
    "UserRejectedError",
    "WalletUnavailableError",
    "NetworkError",
    "ChainRejectedError",
    "ConfirmationTimeoutError",
]
