from ecdsa import SigningKey, Ed25519 # type: ignore
import os
import base58 # type: ignore
from typing import Tuple

SECRET_LENGTH = 32
KEYPAIR_LENGTH = 64

def generate_private_key() -> bytes:
    """Generates a random 32-byte Ed25519 seed."""
    return os.urandom(SECRET_LENGTH)

def public_key_from_private(priv_bytes: bytes) -> bytes:
    """Returns the 32-byte Ed25519 public key for a seed."""
    sk = SigningKey.from_string(priv_bytes, curve=Ed25519)
    return sk.get_verifying_key().to_string()

def keypair_bytes(priv_bytes: bytes) -> bytes:
    """Returns the 64-byte keypair layout: seed followed by public key."""
    return priv_bytes + public_key_from_private(priv_bytes)

def split_keypair(raw: bytes) -> Tuple[bytes, bytes]:
    """
    Splits a 64-byte keypair into (seed, public key) and checks they belong together.

    Raises:
        ValueError: If the length is wrong or the halves do not match
    """
    if len(raw) != KEYPAIR_LENGTH:
        raise ValueError(f"Invalid keypair length: {len(raw)} bytes (expected {KEYPAIR_LENGTH})")
    priv, pub = raw[:SECRET_LENGTH], raw[SECRET_LENGTH:]
    if public_key_from_private(priv) != pub:
        raise ValueError("Public key does not match secret key")
    return priv, pub

def pubkey_to_str(pub_bytes: bytes) -> str:
    """Renders a public key in the ledger's base58 address form."""
    return base58.b58encode(pub_bytes).decode("ascii")
