"""
pspk - Authenticated encryption of messages.

AES-256-GCM under key material derived from a shared secret. The nonce
is taken from the derived material rather than drawn at random, so the
ciphertext carries no nonce and the peer rebuilds everything from the
shared secret alone.

Note that two messages sealed under the same shared secret reuse the
same key and nonce. Ephemeral sealing avoids this by deriving from a
fresh key pair per message.
"""

import base64
import binascii
import logging
from typing import Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .constants import KEY_SIZE, NONCE_SIZE
from .errors import AuthenticationFailedError, CryptoError, DecodeError, ErrorCode
from .keys import derive_message_key, dh, generate_dh, split_message_key

logger = logging.getLogger(__name__)


def _nonce(nonce_material: bytes) -> bytes:
    if len(nonce_material) < NONCE_SIZE:
        raise CryptoError(
            ErrorCode.E105_INVALID_KEY,
            f"Nonce material must be at least {NONCE_SIZE} bytes",
            {"length": len(nonce_material)},
        )
    return nonce_material[:NONCE_SIZE]


def encrypt(nonce_material: bytes, key: bytes, plaintext: bytes) -> bytes:
    """
    Encrypt with AES-256-GCM.

    Args:
        nonce_material: derived bytes; the first 12 are the GCM nonce
        key: 32-byte encryption key
        plaintext: data to encrypt

    Returns:
        ciphertext with the 16-byte tag appended
    """
    aesgcm = AESGCM(key)
    return aesgcm.encrypt(_nonce(nonce_material), plaintext, None)


def decrypt(nonce_material: bytes, key: bytes, ciphertext: bytes) -> bytes:
    """
    Decrypt and verify an AES-256-GCM ciphertext.

    Raises:
        AuthenticationFailedError: tag does not verify (tampered data or
            wrong key); no plaintext is returned in that case
    """
    aesgcm = AESGCM(key)
    try:
        return aesgcm.decrypt(_nonce(nonce_material), ciphertext, None)
    except InvalidTag as e:
        raise AuthenticationFailedError(
            "Decryption failed: message was tampered with or the key is wrong"
        ) from e


def seal(shared_secret: bytes, plaintext: bytes) -> bytes:
    """Derive message key material from a shared secret and encrypt."""
    key, nonce_material = split_message_key(derive_message_key(shared_secret))
    return encrypt(nonce_material, key, plaintext)


def open_sealed(shared_secret: bytes, ciphertext: bytes) -> bytes:
    """Derive message key material from a shared secret and decrypt."""
    key, nonce_material = split_message_key(derive_message_key(shared_secret))
    return decrypt(nonce_material, key, ciphertext)


def split_ephemeral(payload: bytes) -> Tuple[bytes, bytes]:
    """Split an ephemeral payload into (ephemeral_public, ciphertext)."""
    if len(payload) < KEY_SIZE:
        raise DecodeError(
            f"Ephemeral payload must start with a {KEY_SIZE}-byte public point",
            {"length": len(payload)},
        )
    return payload[:KEY_SIZE], payload[KEY_SIZE:]


def ephemeral_seal(public_point: bytes, plaintext: bytes) -> bytes:
    """
    Encrypt to a long-term public point with a throw-away key pair.

    The sender is not authenticated: anyone who knows the recipient's
    public point can produce such a message. The throw-away scalar is
    discarded on return.

    Returns:
        ephemeral_public || ciphertext
    """
    ephemeral_public, ephemeral_private = generate_dh()
    ciphertext = seal(dh(ephemeral_private, public_point), plaintext)
    return ephemeral_public + ciphertext


def ephemeral_open(private_scalar: bytes, payload: bytes) -> bytes:
    """Decrypt a payload produced by ephemeral_seal."""
    ephemeral_public, ciphertext = split_ephemeral(payload)
    return open_sealed(dh(private_scalar, ephemeral_public), ciphertext)


def encode(payload: bytes) -> str:
    """Standard base64 text form used on the command line."""
    return base64.b64encode(payload).decode("ascii")


def decode(text: str) -> bytes:
    """
    Decode standard base64.

    Raises:
        DecodeError: input is not valid base64
    """
    try:
        return base64.b64decode(text.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 input: {e}") from e
