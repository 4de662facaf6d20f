"""Ed25519 wallet signature checks for profile updates."""

import logging

import base58
from nacl.exceptions import CryptoError
from nacl.signing import VerifyKey

logger = logging.getLogger(__name__)

_PUBKEY_BYTES = 32


def verify_wallet_signature(wallet_address: str, message: str, signature: str) -> bool:
    """Check a base58 detached signature over ``message`` against the wallet's key.

    Never raises: malformed addresses, malformed signatures and mismatches
    all return False.
    """
    try:
        public_key = base58.b58decode(wallet_address)
        if len(public_key) != _PUBKEY_BYTES:
            return False
        signature_bytes = base58.b58decode(signature)
        VerifyKey(public_key).verify(message.encode("utf-8"), signature_bytes)
        return True
    except (CryptoError, ValueError, TypeError) as exc:
        logger.info("Wallet signature rejected for %s: %s", wallet_address, type(exc).__name__)
        return False
