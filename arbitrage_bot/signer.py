"""
Signer capability handed to the transaction assembler.

Any object with pubkey() -> Pubkey and sign_message(bytes) -> Signature can
sign; KeypairSigner wraps a solders Keypair held for the process lifetime.
"""
from typing import Optional

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature

from .errors import ConfigError


class KeypairSigner:
    """Signs versioned messages with an in-memory keypair."""

    def __init__(self, keypair: Keypair):
        self._keypair = keypair

    def pubkey(self) -> Pubkey:
        return self._keypair.pubkey()

    def sign_message(self, message: bytes) -> Signature:
        return self._keypair.sign_message(message)

    @classmethod
    def from_seed(cls, seed: bytes) -> "KeypairSigner":
        """Deterministic signer from a 32-byte seed (tests, dry runs)."""
        return cls(Keypair.from_seed(seed))

    def __repr__(self) -> str:
        # Never render key material
        return f"KeypairSigner({self.pubkey()})"


def load_keypair(private_key_str: Optional[str]) -> Keypair:
    """
    Load a keypair from a base58-encoded 64-byte secret key.

    Raises:
        ConfigError: If the key is missing or cannot be decoded
    """
    if not private_key_str:
        raise ConfigError("No wallet private key provided (set WALLET_PRIVATE_KEY)")

    try:
        key_bytes = base58.b58decode(private_key_str.strip())
        return Keypair.from_bytes(key_bytes)
    except ValueError as e:
        raise ConfigError(f"Error loading wallet: {e}") from e
