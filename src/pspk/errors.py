"""
pspk - Custom Exception Classes and Error Codes

This module defines all custom exceptions and error codes used throughout
pspk. Each error has a unique code for logging and for the CLI's
error output.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Enumeration of all pspk error codes."""

    # Storage Errors (E001-E099)
    E004_STORAGE_FAILED = "E004"

    # Crypto Errors (E100-E199)
    E100_CRYPTO_ERROR = "E100"
    E102_AUTHENTICATION_FAILED = "E102"
    E103_INVALID_POINT = "E103"
    E104_DECODE_ERROR = "E104"
    E105_INVALID_KEY = "E105"

    # Directory Errors (E200-E299)
    E200_DIRECTORY_ERROR = "E200"
    E201_DIRECTORY_NOT_FOUND = "E201"
    E202_PUBLISH_FAILED = "E202"
    E203_LOAD_FAILED = "E203"

    # Identity Errors (E300-E399)
    E300_IDENTITY_ERROR = "E300"
    E301_IDENTITY_NOT_FOUND = "E301"
    E302_INVALID_NAME = "E302"

    # Group Errors (E500-E599)
    E500_GROUP_ERROR = "E500"
    E501_INVALID_GROUP = "E501"
    E502_SELF_IN_PEERS = "E502"

    # Config Errors (E700-E799)
    E700_CONFIG_ERROR = "E700"
    E701_CONFIG_MISSING = "E701"
    E702_CONFIG_SAVE_FAILED = "E702"
    E703_CONFIG_INVALID_VALUE = "E703"
    E704_CONFIG_PARSE_ERROR = "E704"


class PspkError(Exception):
    """Base exception class for all pspk errors.

    All custom exceptions in pspk inherit from this class.

    Attributes:
        code: Error code from ErrorCode enum
        message: Human-readable error message
        details: Additional error details (optional)
    """

    def __init__(self, code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {"code": self.code.value, "message": self.message, "details": self.details}


class StorageError(PspkError):
    """Exception raised when local key material cannot be read or written."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.E004_STORAGE_FAILED,
        message: str = "Local storage operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code, message, details)


class CryptoError(PspkError):
    """Exception raised for cryptographic operation failures.

    This includes key agreement, key derivation, encryption and decryption.
    """

    def __init__(
        self,
        code: ErrorCode = ErrorCode.E100_CRYPTO_ERROR,
        message: str = "Cryptographic operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code, message, details)


class InvalidPointError(CryptoError):
    """A public value is not usable as an X25519 point.

    Raised for wrong-length input and for low-order points, whose
    shared secret degenerates to all zeros.
    """

    def __init__(self, message: str = "Invalid public point", details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.E103_INVALID_POINT, message, details)


class DecodeError(CryptoError):
    """Malformed base64 input or a payload too short to carry its header."""

    def __init__(self, message: str = "Malformed input", details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.E104_DECODE_ERROR, message, details)


class AuthenticationFailedError(CryptoError):
    """AEAD tag verification failed (tampered data or wrong key)."""

    def __init__(self, message: str = "Message authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.E102_AUTHENTICATION_FAILED, message, details)


class DirectoryError(PspkError):
    """Exception raised for directory (bulletin board) failures.

    This includes transport errors and unexpected responses.
    """

    def __init__(
        self,
        code: ErrorCode = ErrorCode.E200_DIRECTORY_ERROR,
        message: str = "Directory operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code, message, details)


class DirectoryNotFoundError(DirectoryError):
    """Requested name is absent from the directory."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            ErrorCode.E201_DIRECTORY_NOT_FOUND,
            f"No entry published under '{name}'",
            {"name": name},
        )


class IdentityError(PspkError):
    """Exception raised for identity management failures."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.E300_IDENTITY_ERROR,
        message: str = "Identity operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code, message, details)


class IdentityNotFoundError(IdentityError):
    """No local key material exists for the requested name."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.E301_IDENTITY_NOT_FOUND, message, details)


class GroupError(PspkError):
    """Exception raised for invalid group protocol input."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.E500_GROUP_ERROR,
        message: str = "Group operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code, message, details)


class ConfigError(PspkError):
    """Exception raised for configuration failures.

    This includes loading, parsing and saving configuration files.
    """

    def __init__(
        self,
        code: ErrorCode = ErrorCode.E700_CONFIG_ERROR,
        message: str = "Configuration operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code, message, details)


class ConfigMissingError(ConfigError):
    """No active identity name was supplied and none is configured."""

    def __init__(self, message: str = "empty current name, set to config or use --name"):
        super().__init__(ErrorCode.E701_CONFIG_MISSING, message)
