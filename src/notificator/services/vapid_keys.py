"""
VAPID Key Manager

Generates, persists and loads the application server's VAPID identity.

Key file format (JSON):

    {"publicKey": "<base64url>", "privateKey": "<base64url>"}

The public key is the 65-byte uncompressed P-256 point (0x04 || X || Y).
The private key is the raw 32-byte big-endian scalar, which is what
``Vapid.from_raw`` expects when the signer decodes it. Both are URL-safe
base64 without padding.

The pair must be kept across restarts: browsers bind every subscription to
the public key it was created with.
"""

import binascii
import json
import logging
import os
from dataclasses import dataclass

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from py_vapid import Vapid
from py_vapid.utils import b64urldecode, b64urlencode

from src.notificator.core.errors import KeyFileCorrupt, KeyFileError, KeyFileMissing

logger = logging.getLogger(__name__)

PUBLIC_KEY_LENGTH = 65
PRIVATE_KEY_LENGTH = 32


def b64url_encode(data: bytes) -> str:
    """Encode bytes as base64url without padding."""
    return b64urlencode(data)


def b64url_decode(data: str) -> bytes:
    return b64urldecode(data.encode("ascii"))


@dataclass(frozen=True)
class VapidKeyPair:
    public_key: str
    private_key: str

    def to_json(self) -> dict:
        return {"publicKey": self.public_key, "privateKey": self.private_key}


def _public_bytes(private_key: ec.EllipticCurvePrivateKey) -> bytes:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )


def generate_vapid_keys() -> VapidKeyPair:
    """Generate a fresh P-256 key pair encoded for the key file."""
    vapid_key = Vapid()
    vapid_key.generate_keys()

    private_value = vapid_key.private_key.private_numbers().private_value
    private_raw = private_value.to_bytes(PRIVATE_KEY_LENGTH, "big")
    public_raw = _public_bytes(vapid_key.private_key)

    return VapidKeyPair(
        public_key=b64url_encode(public_raw),
        private_key=b64url_encode(private_raw),
    )


def private_key_from(keys: VapidKeyPair) -> ec.EllipticCurvePrivateKey:
    """Decode the stored raw scalar back into a P-256 private key."""
    raw = b64url_decode(keys.private_key)
    if len(raw) != PRIVATE_KEY_LENGTH:
        raise ValueError(f"private key is {len(raw)} bytes, expected {PRIVATE_KEY_LENGTH}")
    return ec.derive_private_key(int.from_bytes(raw, "big"), ec.SECP256R1())


def decode_key_pair(content) -> VapidKeyPair:
    """Validate parsed key file content and return the key pair.

    Raises:
        KeyFileCorrupt: fields missing, not base64url, wrong sizes, or the
            public key does not belong to the private key.
    """
    if not isinstance(content, dict):
        raise KeyFileCorrupt("VAPID key file must contain a JSON object")

    public_key = content.get("publicKey")
    private_key = content.get("privateKey")
    if not isinstance(public_key, str) or not isinstance(private_key, str):
        raise KeyFileCorrupt("VAPID key file is missing publicKey/privateKey")

    keys = VapidKeyPair(public_key=public_key.strip(), private_key=private_key.strip())
    try:
        public_raw = b64url_decode(keys.public_key)
        derived = _public_bytes(private_key_from(keys))
    except (ValueError, UnicodeEncodeError, binascii.Error) as e:
        logger.error(f"VAPID key file contains an unusable key: {e}")
        raise KeyFileCorrupt() from e

    if len(public_raw) != PUBLIC_KEY_LENGTH or public_raw[0] != 0x04:
        raise KeyFileCorrupt("VAPID public key is not an uncompressed P-256 point")
    if public_raw != derived:
        raise KeyFileCorrupt("VAPID public key doesn't match the private key")

    return keys


def load_key_file(path: str) -> VapidKeyPair:
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = json.load(f)
    except FileNotFoundError as e:
        raise KeyFileMissing() from e
    except (OSError, ValueError) as e:
        logger.error(f"{path} couldn't be parsed: {e}")
        raise KeyFileCorrupt() from e

    return decode_key_pair(content)


def save_key_file(path: str, keys: VapidKeyPair) -> None:
    """Write the key file and fsync it before returning."""
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(keys.to_json(), f, indent=2)
            f.flush()
            os.fsync(f.fileno())
    except OSError as e:
        logger.error(f"{path} couldn't be saved: {e}")
        raise KeyFileError("VAPID key file couldn't be saved") from e


def load_or_create_keys(path: str) -> VapidKeyPair:
    """Load the VAPID identity, creating and persisting one on first start.

    A corrupt file or a failed write is fatal for the caller: the service
    must not run with an identity it cannot keep.
    """
    logger.info(f"Searching {path}")
    try:
        keys = load_key_file(path)
        logger.info(f"VAPID keys loaded from {path}")
        return keys
    except KeyFileMissing:
        logger.warning(f"{path} couldn't be found. Creating new file, with newly made VAPID keys")

    keys = generate_vapid_keys()
    save_key_file(path, keys)
    logger.info(f"VAPID keys saved to {path}")
    return keys
