import json
import os
from pathlib import Path
from typing import Tuple

from ..protocol.crypto.keys import generate_private_key, keypair_bytes, pubkey_to_str, split_keypair


def encode_keypair(raw: bytes) -> str:
    """Serializes a 64-byte keypair as the ledger's JSON byte array."""
    return json.dumps(list(raw))


def decode_keypair(text: str) -> bytes:
    """
    Parses a JSON byte array keypair file body.

    Raises:
        ValueError: If the content is not a valid 64-byte keypair
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Not a JSON keypair file: {e}")
    if not isinstance(data, list) or not all(isinstance(b, int) and 0 <= b <= 255 for b in data):
        raise ValueError("Keypair file must contain a JSON array of byte values")
    raw = bytes(data)
    split_keypair(raw)
    return raw


def read_keypair_file(path: Path) -> Tuple[bytes, str]:
    """
    Loads a keypair file.

    Returns:
        (raw 64-byte keypair, base58 public key)

    Raises:
        OSError: If the file cannot be read
        ValueError: If the content is not a valid keypair
    """
    with open(path, "r") as f:
        raw = decode_keypair(f.read())
    _, pub = split_keypair(raw)
    return raw, pubkey_to_str(pub)


def load_keypair_file_bytes(path: Path) -> Tuple[bytes, str]:
    """
    Reads a keypair file verbatim and validates it.

    Returns:
        (file content as stored on disk, base58 public key)

    Raises:
        OSError: If the file cannot be read
        ValueError: If the content is not a valid keypair
    """
    with open(path, "rb") as f:
        content = f.read()
    raw = decode_keypair(content.decode("utf-8"))
    _, pub = split_keypair(raw)
    return content, pubkey_to_str(pub)


def write_new_keypair_file(path: Path, force: bool = False) -> str:
    """
    Generates a keypair and writes it with owner-only permissions.

    Returns:
        Base58 public key

    Raises:
        FileExistsError: If the file exists and force is not set
    """
    path = Path(path)
    if path.exists() and not force:
        raise FileExistsError(f"Refusing to overwrite {path}")

    raw = keypair_bytes(generate_private_key())
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(encode_keypair(raw))
    # Secure permissions
    os.chmod(path, 0o600)
    _, pub = split_keypair(raw)
    return pubkey_to_str(pub)
