"""Transaction signing."""

from .signer import ConfirmationResult, Signer
from .keypair import KeypairSigner, load_keypair

__all__ = ["ConfirmationResult", "Signer", "KeypairSigner", "load_keypair"]
