"""
Configuration Module for the Invoice Scan Pipeline.

Centralized configuration backed by ``settings.yaml``. Every tunable
constant of the pipeline (quality thresholds, preprocessing tiers,
recognition retry thresholds, placeholder confidences, scoring weights,
logging) is read from here through dot-notation keys.

The settings file is resolved in this order:
    1. Path passed to load_config() (the CLI's --config option)
    2. The INVOICE_SCAN_CONFIG environment variable
    3. config/settings.yaml next to this module

Usage:
    from config import get_config

    threshold = get_config("recognition.retry.min_text_length", 50)
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_ENV_VAR = "INVOICE_SCAN_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "settings.yaml"


class ConfigurationManager:
    """
    Process-wide settings store.

    Attributes:
        config_path (Path): Settings file the values were loaded from.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("recognition.retry.min_text_length")
        50
    """

    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        """Singleton: the first construction decides the settings file."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        if self._initialized:
            return

        self.config_path = self._resolve_config_path(config_path)
        self._load_config()
        self._initialized = True

    @staticmethod
    def _resolve_config_path(config_path: Optional[str]) -> Path:
        if config_path is not None:
            return Path(config_path)
        if os.environ.get(CONFIG_ENV_VAR):
            return Path(os.environ[CONFIG_ENV_VAR])
        return DEFAULT_CONFIG_PATH

    def _load_config(self) -> None:
        """
        Load configuration from the YAML file.

        Raises:
            FileNotFoundError: If the settings file doesn't exist.
            yaml.YAMLError: If the settings file is invalid.
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            self._config = yaml.safe_load(f) or {}

        self._resolve_log_path()

    def _resolve_log_path(self) -> None:
        """Make a relative ``logging.file.path`` relative to the project root."""
        project_root = Path(__file__).parent.parent

        log_file = self._config.get('logging', {}).get('file', {})
        path = log_file.get('path')
        if path and not Path(path).is_absolute():
            log_file['path'] = str(project_root / path)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a value by dot-notation key.

        Args:
            key: Key such as "quality.weights.sharpness".
            default: Returned when any part of the key is missing.
        """
        value = self._config
        try:
            for part in key.split('.'):
                value = value[part]
        except (KeyError, TypeError):
            return default
        return value

    def get_all(self) -> Dict[str, Any]:
        return self._config.copy()

    def reload(self) -> None:
        self._load_config()

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton so the next construction reloads settings."""
        cls._instance = None


def load_config(config_path: Optional[str] = None) -> ConfigurationManager:
    """
    (Re)load settings, optionally from a specific file.

    Components read their settings when constructed, so call this before
    building a ScanPipeline.
    """
    ConfigurationManager.reset()
    return ConfigurationManager(config_path)


def get_config(key: str, default: Any = None) -> Any:
    """Shortcut for ``ConfigurationManager().get(key, default)``."""
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config', 'load_config', 'CONFIG_ENV_VAR']
