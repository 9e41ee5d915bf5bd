"""
pspk - Named public keys, pairwise and group secrets, encrypted messages.

Parties publish X25519 public keys under human-chosen names to an
untrusted directory, derive shared secrets with each other, agree on
group secrets through published intermediate keys, and use those
secrets to encrypt short messages with AES-256-GCM.

License: MIT
"""

__version__ = "0.3.0"
__license__ = "MIT"

from .constants import APP_NAME, VERSION
from .errors import (
    AuthenticationFailedError,
    ConfigError,
    ConfigMissingError,
    CryptoError,
    DecodeError,
    DirectoryError,
    DirectoryNotFoundError,
    ErrorCode,
    GroupError,
    IdentityError,
    IdentityNotFoundError,
    InvalidPointError,
    PspkError,
    StorageError,
)

__all__ = [
    "APP_NAME",
    "VERSION",
    "AuthenticationFailedError",
    "ConfigError",
    "ConfigMissingError",
    "CryptoError",
    "DecodeError",
    "DirectoryError",
    "DirectoryNotFoundError",
    "ErrorCode",
    "GroupError",
    "IdentityError",
    "IdentityNotFoundError",
    "InvalidPointError",
    "PspkError",
    "StorageError",
    "__license__",
    "__version__",
]
