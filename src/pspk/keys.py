"""
pspk - Pairwise key exchange.

X25519 Diffie-Hellman over raw 32-byte scalars and points, plus the
HKDF expansion that turns a shared secret into message key material.

Everything here works on raw bytes rather than key objects: the group
protocol feeds the output of one exchange back in as the public input
of the next, and the resolved group secret is itself used as a scalar.
"""

import logging
from typing import Tuple

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import x25519
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from .constants import (
    KEY_SIZE,
    MESSAGE_KEY_ENCRYPTION_SLICE,
    MESSAGE_KEY_INFO,
    MESSAGE_KEY_NONCE_OFFSET,
    MESSAGE_KEY_SIZE,
)
from .errors import CryptoError, ErrorCode, InvalidPointError

logger = logging.getLogger(__name__)

_ZERO_POINT = bytes(KEY_SIZE)


def generate_dh() -> Tuple[bytes, bytes]:
    """
    Generate a fresh X25519 key pair.

    Returns:
        (public_point, private_scalar), both 32 raw bytes
    """
    private_key = x25519.X25519PrivateKey.generate()
    private_scalar = private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_point = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return public_point, private_scalar


def public_from_private(private_scalar: bytes) -> bytes:
    """Recompute the public point belonging to a private scalar."""
    return _private_key(private_scalar).public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def _private_key(private_scalar: bytes) -> x25519.X25519PrivateKey:
    if len(private_scalar) != KEY_SIZE:
        raise CryptoError(
            ErrorCode.E105_INVALID_KEY,
            f"Private scalar must be {KEY_SIZE} bytes",
            {"length": len(private_scalar)},
        )
    return x25519.X25519PrivateKey.from_private_bytes(private_scalar)


def dh(private_scalar: bytes, public_point: bytes) -> bytes:
    """
    Multiply a public point by a private scalar (X25519).

    The scalar multiplication is constant time in the scalar. Low-order
    inputs produce an all-zero result, which is rejected so that no
    caller ever continues with a degenerate shared secret.

    Raises:
        InvalidPointError: public input has the wrong length or is low order
        CryptoError: private scalar has the wrong length
    """
    private_key = _private_key(private_scalar)

    if len(public_point) != KEY_SIZE:
        raise InvalidPointError(
            f"Public point must be {KEY_SIZE} bytes",
            {"length": len(public_point)},
        )
    try:
        public_key = x25519.X25519PublicKey.from_public_bytes(public_point)
        shared = private_key.exchange(public_key)
    except ValueError as e:
        raise InvalidPointError(f"Key exchange rejected public point: {e}") from e

    if shared == _ZERO_POINT:
        raise InvalidPointError("Public point is of low order")
    return shared


def derive_message_key(shared_secret: bytes) -> bytes:
    """
    Expand a shared secret into message key material with HKDF-SHA256.

    Pure function of its input: both sides of an exchange derive the
    same 96 bytes independently. Bytes 0..32 are the AES key and the
    tail from byte 64 is nonce material.
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=MESSAGE_KEY_SIZE,
        salt=None,
        info=MESSAGE_KEY_INFO,
    )
    return hkdf.derive(shared_secret)


def split_message_key(material: bytes) -> Tuple[bytes, bytes]:
    """Split key material into (encryption_key, nonce_material)."""
    if len(material) < MESSAGE_KEY_SIZE:
        raise CryptoError(
            ErrorCode.E105_INVALID_KEY,
            f"Message key material must be at least {MESSAGE_KEY_SIZE} bytes",
            {"length": len(material)},
        )
    return material[MESSAGE_KEY_ENCRYPTION_SLICE], material[MESSAGE_KEY_NONCE_OFFSET:]


def generate_fingerprint(public_point: bytes) -> str:
    """
    Generate a human-readable fingerprint from a public point using SHA-256.

    Anyone may publish under any name, so users should compare
    fingerprints through a trusted channel before relying on a key.

    Returns a 64-character hexadecimal fingerprint.
    """
    digest = hashes.Hash(hashes.SHA256())
    digest.update(public_point)
    return digest.finalize().hex()
