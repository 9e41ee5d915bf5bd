"""
pspk - Configuration Management

This module handles loading, merging, and managing configuration from
a TOML file and environment variables. The configuration holds the
current identity name, the directory URL and the local data directory.
"""

import copy
import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from .constants import (
    CONFIG_FILENAME,
    DEFAULT_BASE_URL,
    DEFAULT_CONFIG_DIR,
    DEFAULT_DATA_DIR,
    DEFAULT_LOG_LEVEL,
    DIRECTORY_TIMEOUT,
)
from .errors import ConfigError, ConfigMissingError, ErrorCode

logger = logging.getLogger(__name__)

# Default configuration dictionary
DEFAULT_CONFIG: Dict[str, Any] = {
    "identity": {
        "current_name": "",
    },
    "directory": {
        "base_url": DEFAULT_BASE_URL,
        "timeout": DIRECTORY_TIMEOUT,
    },
    "storage": {
        "data_dir": DEFAULT_DATA_DIR,
    },
    "logging": {
        "level": DEFAULT_LOG_LEVEL,
    },
}


class Config:
    """Configuration manager for pspk.

    Loads configuration from a TOML file, merges it with defaults,
    and applies environment variable overrides.

    Attributes:
        config_path: Path to the configuration file
        data: Configuration dictionary
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to configuration file (optional)
                If not provided, uses default location
        """
        if config_path is None:
            config_path = Path(DEFAULT_CONFIG_DIR).expanduser() / CONFIG_FILENAME

        self.config_path = Path(config_path)
        self.data = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file and merge with defaults.

        Raises:
            ConfigError: If the configuration file cannot be parsed
        """
        config = copy.deepcopy(DEFAULT_CONFIG)

        if self.config_path.exists():
            try:
                with open(self.config_path, "rb") as f:
                    file_config = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                raise ConfigError(
                    ErrorCode.E704_CONFIG_PARSE_ERROR,
                    f"Failed to parse configuration file: {e}",
                    {"path": str(self.config_path), "error": str(e)},
                ) from e

            config = self._merge_config(config, file_config)
            logger.debug(f"Loaded configuration from {self.config_path}")

        return self._apply_env_overrides(config)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge override config into base config."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration.

        Environment variables follow the pattern: PSPK_SECTION_KEY
        For example: PSPK_DIRECTORY_BASE_URL=http://localhost:8080
        """
        result = copy.deepcopy(config)

        for section, settings in config.items():
            if not isinstance(settings, dict):
                continue

            for key in settings:
                env_var = f"PSPK_{section.upper()}_{key.upper()}"
                env_value = os.environ.get(env_var)

                if env_value is not None:
                    original_type = type(settings[key])
                    try:
                        if original_type == bool:
                            result[section][key] = env_value.lower() in ("true", "1", "yes")
                        elif original_type == int:
                            result[section][key] = int(env_value)
                        elif original_type == float:
                            result[section][key] = float(env_value)
                        else:
                            result[section][key] = env_value
                    except ValueError:
                        logger.warning(f"Ignoring {env_var}={env_value!r}: expected {original_type.__name__}")

        return result

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        return self.data.get(section, {}).get(key, default)

    def set(self, section: str, key: str, value: Any) -> None:
        """Set a configuration value."""
        if section not in self.data:
            self.data[section] = {}

        self.data[section][key] = value

    @property
    def current_name(self) -> str:
        return self.get("identity", "current_name", "") or ""

    @current_name.setter
    def current_name(self, name: str) -> None:
        self.set("identity", "current_name", name)

    def resolve_name(self, explicit: Optional[str] = None) -> str:
        """Return the explicit identity name or the configured current one.

        Raises:
            ConfigMissingError: neither is set
        """
        if explicit:
            return explicit
        if self.current_name:
            return self.current_name
        raise ConfigMissingError()

    @property
    def data_dir(self) -> Path:
        return Path(self.get("storage", "data_dir", DEFAULT_DATA_DIR)).expanduser()

    def save(self) -> None:
        """Save current configuration to file.

        Raises:
            ConfigError: If saving fails
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.config_path, "w", encoding="utf-8") as f:
                self._write_toml(f, self.data)

        except OSError as e:
            raise ConfigError(
                ErrorCode.E702_CONFIG_SAVE_FAILED,
                f"Failed to save configuration: {e}",
                {"path": str(self.config_path), "error": str(e)},
            ) from e
        logger.info(f"Configuration saved to {self.config_path}")

    def _write_toml(self, file, data: Dict[str, Any]) -> None:
        """Write configuration data as TOML format."""
        for section, settings in data.items():
            if isinstance(settings, dict):
                file.write(f"[{section}]\n")
                for key, value in settings.items():
                    if isinstance(value, bool):
                        file.write(f"{key} = {str(value).lower()}\n")
                    elif isinstance(value, (int, float)):
                        file.write(f"{key} = {value}\n")
                    elif isinstance(value, str):
                        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
                        file.write(f'{key} = "{escaped}"\n')
                file.write("\n")
