"""
pspk - Command operations.

PspkClient ties the identity store, the directory and the crypto
modules together, one method per command. Every method that acts as an
identity takes its name explicitly; choosing a default name is left to
the caller (the CLI reads it from the configuration).
"""

import logging
from typing import List, Sequence

from . import cipher, keys
from .directory import Directory
from .group import (
    GroupSession,
    create_base,
    group_ephemeral_open,
    group_ephemeral_seal,
    group_open,
    group_seal,
)
from .identity import IdentityStore

logger = logging.getLogger(__name__)


class PspkClient:
    """Pairwise and group messaging over a public key directory."""

    def __init__(self, directory: Directory, store: IdentityStore):
        self.directory = directory
        self.store = store

    # Pairwise

    def publish(self, name: str) -> str:
        """
        Generate a key pair for name, publish the public point and store
        both locally.

        Returns:
            fingerprint of the published public point
        """
        if self.store.exists(name):
            logger.warning(f"Replacing the existing key pair for '{name}'")

        public_point, private_scalar = self.store.generate()
        # Local files are untouched until the directory accepts the new point
        self.directory.publish(name, public_point)
        self.store.persist(name, private_scalar)
        self.store.persist_public(name, public_point)

        fingerprint = self.store.load(name).fingerprint
        logger.info(f"Published key for '{name}' ({fingerprint[:16]})")
        return fingerprint

    def _pairwise_secret(self, name: str, peer: str) -> bytes:
        private_scalar = self.store.load_private(name)
        return keys.dh(private_scalar, self.directory.load(peer))

    def secret(self, name: str, peer: str) -> bytes:
        """Compute and store the shared secret between name and peer."""
        shared = self._pairwise_secret(name, peer)
        self.store.save_peer_secret(name, peer, shared)
        return shared

    def encrypt(self, name: str, peer: str, message: str) -> str:
        shared = self._pairwise_secret(name, peer)
        return cipher.encode(cipher.seal(shared, message.encode("utf-8")))

    def decrypt(self, name: str, peer: str, text: str) -> str:
        shared = self._pairwise_secret(name, peer)
        return cipher.open_sealed(shared, cipher.decode(text)).decode("utf-8", errors="replace")

    def ephemeral_encrypt(self, peer: str, message: str) -> str:
        """Encrypt to peer's published key; needs no local identity."""
        public_point = self.directory.load(peer)
        return cipher.encode(cipher.ephemeral_seal(public_point, message.encode("utf-8")))

    def ephemeral_decrypt(self, name: str, text: str) -> str:
        private_scalar = self.store.load_private(name)
        return cipher.ephemeral_open(private_scalar, cipher.decode(text)).decode("utf-8", errors="replace")

    # Group key agreement

    def group(self, group: str) -> bytes:
        return create_base(self.directory, group)

    def _session(self, name: str, group: str) -> GroupSession:
        return GroupSession(self.directory, name, self.store.load_private(name), group)

    def start_group(self, name: str, group: str, peers: Sequence[str]) -> List[str]:
        return self._session(name, group).start(peers)

    def finish_group(self, name: str, group: str, peers: Sequence[str]) -> List[str]:
        return self._session(name, group).finish(peers)

    def secret_group(self, name: str, group: str, peers: Sequence[str]) -> bytes:
        """Resolve and store the group secret for name."""
        secret = self._session(name, group).resolve(peers)
        self.store.save_group_secret(name, group, secret)
        return secret

    # Group messages

    def encrypt_group(self, name: str, group: str, message: str) -> str:
        group_secret = self.store.load_group_secret(name, group)
        return cipher.encode(group_seal(self.directory, group_secret, group, message.encode("utf-8")))

    def decrypt_group(self, name: str, group: str, text: str) -> str:
        group_secret = self.store.load_group_secret(name, group)
        plaintext = group_open(self.directory, group_secret, group, cipher.decode(text))
        return plaintext.decode("utf-8", errors="replace")

    def ephemeral_encrypt_group(self, name: str, group: str, message: str) -> str:
        group_secret = self.store.load_group_secret(name, group)
        return cipher.encode(group_ephemeral_seal(group_secret, message.encode("utf-8")))

    def ephemeral_decrypt_group(self, name: str, group: str, text: str) -> str:
        group_secret = self.store.load_group_secret(name, group)
        return group_ephemeral_open(group_secret, cipher.decode(text)).decode("utf-8", errors="replace")
