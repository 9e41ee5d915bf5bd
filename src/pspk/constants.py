"""
pspk - Global Constants and Configuration Values

This module defines all constants used throughout pspk.
Sizes, derivation labels, file names and default locations are
centralized here.
"""

# Version Information
VERSION = "0.3.0"
APP_NAME = "pspk"

# Directory (bulletin board) defaults
DEFAULT_BASE_URL = "https://pspk.now.sh"
DIRECTORY_TIMEOUT = 30  # seconds

# Cryptography Constants
KEY_SIZE = 32  # X25519 scalars and points
NONCE_SIZE = 12  # 96 bits for AES-256-GCM
MESSAGE_KEY_SIZE = 96  # HKDF output length
MESSAGE_KEY_ENCRYPTION_SLICE = slice(0, 32)
MESSAGE_KEY_NONCE_OFFSET = 64
MESSAGE_KEY_INFO = b"pspk-message-key"

# Local key material
PUBLIC_KEY_FILENAME = "pub.bin"
PRIVATE_KEY_FILENAME = "key.bin"
PEER_SECRET_SUFFIX = ".secret.bin"
GROUP_SECRET_SUFFIX = ".secret"

# File Paths
DEFAULT_DATA_DIR = "~/.local/share/pspk"
DEFAULT_CONFIG_DIR = "~/.config/pspk"
CONFIG_FILENAME = "config.toml"

# Logging Configuration
DEFAULT_LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
