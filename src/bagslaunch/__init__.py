"""Token launcher for the Bags launch API on Solana."""

from .errors import LaunchError
from .types import LaunchOutcome, LaunchRequest, LaunchState

__all__ = ["LaunchError", "LaunchOutcome", "LaunchRequest", "LaunchState"]
