"""
Configuration management for FileLog.

Handles loading and merging configuration from:
- Default configuration file (config/default.yaml)
- An optional override file
- Environment variables
"""

import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "default.yaml"

# Environment variable -> (dotted key, converter)
ENV_OVERRIDES: Dict[str, tuple[str, Callable[[str], Any]]] = {
    "DATA_DIR": ("storage.data_dir", str),
    "LOG_FILE": ("storage.log_file", str),
    "OFFSET_FILE": ("storage.offset_file", str),
    "FSYNC_ON_APPEND": ("storage.fsync_on_append", lambda v: v.lower() in ("1", "true", "yes")),
    "BATCH_SIZE": ("producer.batch_size", int),
    "PRODUCER_INTERVAL_MS": ("producer.interval_ms", int),
    "CONSUMER_INTERVAL_MS": ("consumer.interval_ms", int),
    "AUTO_OFFSET_RESET": ("consumer.auto_offset_reset", str),
    "LOG_LEVEL": ("logging.level", str),
    "LOG_FORMAT": ("logging.format", str),
}


class ConfigError(Exception):
    """Raised when a configuration file cannot be loaded."""
    pass


class Config:
    """Configuration manager for FileLog."""

    def __init__(self, config_file: Optional[str] = None, load_defaults: bool = True):
        """
        Initialize configuration.

        Args:
            config_file: Path to an override configuration file
            load_defaults: Whether to load config/default.yaml first
        """
        self._config: Dict[str, Any] = {}

        if load_defaults and DEFAULT_CONFIG_PATH.exists():
            self._load_config_file(str(DEFAULT_CONFIG_PATH))

        if config_file:
            self._load_config_file(config_file)

        self._apply_env_overrides()

    def _load_config_file(self, config_file: str) -> None:
        """
        Load configuration from YAML file.

        Args:
            config_file: Path to YAML configuration file

        Raises:
            ConfigError: If the file is missing or not a YAML mapping
        """
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"Cannot read config file {config_file}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

        if file_config is None:
            return
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_file} must contain a mapping")

        self._config = self._deep_merge(self._config, file_config)

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        for env_name, (key, convert) in ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw:
                self.set(key, convert(raw))

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., "producer.batch_size")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value: Any = self._config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key: Configuration key in dot notation
            value: Value to set
        """
        keys = key.split(".")
        config = self._config
        for k in keys[:-1]:
            if not isinstance(config.get(k), dict):
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Get entire configuration as dictionary."""
        return self._config.copy()


_config: Optional[Config] = None


def get_config(config_file: Optional[str] = None) -> Config:
    """
    Get global configuration instance.

    Args:
        config_file: Optional configuration file path

    Returns:
        Configuration instance
    """
    global _config
    if _config is None:
        _config = Config(config_file)
    return _config


def reset_config() -> None:
    """Reset global configuration (mainly for testing)."""
    global _config
    _config = None
