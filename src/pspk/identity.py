"""
pspk - Identity store.

Keeps each named identity's key material under its own directory:

    <data_dir>/<name>/pub.bin             32-byte public point
    <data_dir>/<name>/key.bin             32-byte private scalar
    <data_dir>/<name>/<peer>.secret.bin   pairwise shared secret
    <data_dir>/<name>/<group>.secret      resolved group secret

Scalars and secrets are written and read as opaque bytes and are never
logged.
"""

import contextlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

from . import keys
from .constants import (
    GROUP_SECRET_SUFFIX,
    PEER_SECRET_SUFFIX,
    PRIVATE_KEY_FILENAME,
    PUBLIC_KEY_FILENAME,
)
from .errors import ErrorCode, IdentityError, IdentityNotFoundError, StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """A named key pair loaded from local storage."""

    name: str
    private_scalar: bytes
    public_point: bytes

    @property
    def fingerprint(self) -> str:
        return keys.generate_fingerprint(self.public_point)

    def __repr__(self) -> str:
        return f"Identity(name={self.name!r}, fingerprint={self.fingerprint[:16]})"


def _check_name(name: str, kind: str = "name") -> str:
    """Reject names that would leave the identity directory."""
    if not name or name in (".", "..") or "/" in name or "\\" in name or "\x00" in name:
        raise IdentityError(
            ErrorCode.E302_INVALID_NAME,
            f"Invalid {kind}: {name!r}",
            {kind: name},
        )
    return name


class IdentityStore:
    """Reads and writes key material for named identities."""

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir).expanduser()

    def identity_dir(self, name: str) -> Path:
        return self.data_dir / _check_name(name)

    @staticmethod
    def generate() -> Tuple[bytes, bytes]:
        """Generate a fresh key pair: (public_point, private_scalar)."""
        return keys.generate_dh()

    def exists(self, name: str) -> bool:
        """Check whether a private key exists for name."""
        return (self.identity_dir(name) / PRIVATE_KEY_FILENAME).exists()

    def persist(self, name: str, private_scalar: bytes) -> None:
        """Write the private scalar for name, replacing any previous one."""
        self._write(name, PRIVATE_KEY_FILENAME, private_scalar)

    def persist_public(self, name: str, public_point: bytes) -> None:
        """Write the public point for name, replacing any previous one."""
        self._write(name, PUBLIC_KEY_FILENAME, public_point)

    def load_private(self, name: str) -> bytes:
        """
        Read the private scalar for name.

        Raises:
            IdentityNotFoundError: no key pair has been generated for name
        """
        return self._read(name, PRIVATE_KEY_FILENAME, f"No private key for '{name}', run publish first")

    def load_public(self, name: str) -> bytes:
        """Read the locally stored public point for name."""
        return self._read(name, PUBLIC_KEY_FILENAME, f"No public key for '{name}', run publish first")

    def load(self, name: str) -> Identity:
        """Load the full identity for name.

        The public point is recomputed from the scalar when pub.bin is
        missing.
        """
        private_scalar = self.load_private(name)
        try:
            public_point = self.load_public(name)
        except IdentityNotFoundError:
            public_point = keys.public_from_private(private_scalar)
        return Identity(name, private_scalar, public_point)

    def save_peer_secret(self, name: str, peer: str, secret: bytes) -> None:
        self._write(name, _check_name(peer, "peer") + PEER_SECRET_SUFFIX, secret)

    def load_peer_secret(self, name: str, peer: str) -> bytes:
        return self._read(
            name,
            _check_name(peer, "peer") + PEER_SECRET_SUFFIX,
            f"No shared secret between '{name}' and '{peer}'",
        )

    def save_group_secret(self, name: str, group: str, secret: bytes) -> None:
        self._write(name, _check_name(group, "group") + GROUP_SECRET_SUFFIX, secret)

    def load_group_secret(self, name: str, group: str) -> bytes:
        """
        Read the resolved secret of a group.

        Raises:
            IdentityNotFoundError: secret-group has not been run for group
        """
        return self._read(
            name,
            _check_name(group, "group") + GROUP_SECRET_SUFFIX,
            f"No secret for group '{group}', run secret-group first",
        )

    def _write(self, name: str, filename: str, data: bytes) -> None:
        directory = self.identity_dir(name)
        path = directory / filename
        temp_path = directory / (filename + ".tmp")
        try:
            directory.mkdir(parents=True, exist_ok=True)
            # Owner-only from creation
            fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            # Rename temp file to actual file (atomic on POSIX systems)
            os.replace(temp_path, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                temp_path.unlink(missing_ok=True)
            logger.error(f"Failed to write {path}: {e}")
            raise StorageError(message=f"Failed to write {path}: {e}", details={"path": str(path)}) from e
        logger.debug(f"Wrote {path}")

    def _read(self, name: str, filename: str, missing_message: str) -> bytes:
        path = self.identity_dir(name) / filename
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError as e:
            logger.debug(f"Key material does not exist: {path}")
            raise IdentityNotFoundError(missing_message, {"name": name, "path": str(path)}) from e
        except OSError as e:
            logger.error(f"Failed to read {path}: {e}")
            raise StorageError(message=f"Failed to read {path}: {e}", details={"path": str(path)}) from e
