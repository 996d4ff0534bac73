"""
================================================================================
Configuration Loader
================================================================================

YAML-based configuration store with environment variable override support.

Features:
    - Loaded once per process, read-only afterwards
    - Environment variable override (BASEURL overrides baseUrl,
      REPORTING_SCREENSHOTS overrides reporting.screenshots)
    - Flat ("reporting.screenshots: all") or nested YAML keys
    - Documented defaults for every key the harness reads

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger

from .exceptions import HarnessError


# Default configuration file path (overridable with UI_CONFIG_PATH)
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"

# Fallback values for keys missing from both the file and the environment
DEFAULTS: Dict[str, Any] = {
    "browser": "chrome",
    "headless": False,
    "baseUrl": "https://the-internet.herokuapp.com/",
    "author": os.getenv("USER", os.getenv("USERNAME", "automation")),
    "env": "QA",
    "reporting.screenshots": "failed",
    "screenshot.fullpage": False,
    "explicitWait": 5000,
    "artifacts.root": "reports",
    "viewport.width": 1440,
    "viewport.height": 900,
    "session.single_use_overrides": False,
    "logging.level": "INFO",
    "logging.file": None,
}

_MISSING = object()


class ConfigurationError(HarnessError):
    """Raised when configuration loading or access fails."""
    pass


class ConfigLoader:
    """
    Process-wide, read-only configuration store.

    Lookup order (highest to lowest priority):
        1. Environment variables (BROWSER, HEADLESS, BASEURL, ...)
        2. YAML configuration file (flat dotted key, then nested path)
        3. DEFAULTS
        4. The ``default`` argument of ``get``

    Usage:
        >>> config = ConfigLoader()
        >>> config.get("browser")
        'chrome'
        >>> config.get_bool("headless")
        False
    """

    _instance: Optional["ConfigLoader"] = None

    def __new__(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        """
        Singleton pattern - return existing instance if available.

        The store is loaded exactly once per process, before any session
        starts, so all worker threads observe the same values.
        """
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """
        Initialize configuration loader.

        Args:
            config_path: Path to YAML configuration file.
                        Uses UI_CONFIG_PATH or DEFAULT_CONFIG_PATH if not specified.
        """
        if getattr(self, "_initialized", False):
            return

        env_path = os.environ.get("UI_CONFIG_PATH")
        self._config_path = Path(config_path or env_path or DEFAULT_CONFIG_PATH)
        self._config: Dict[str, Any] = self._load_config()
        self._initialized = True

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self._config_path.exists():
            logger.warning(
                f"Configuration file not found: {self._config_path}. "
                f"Using defaults and environment variables only."
            )
            return {}

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {e}"
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration root must be a mapping: {self._config_path}"
            )

        logger.debug(f"Loaded configuration from: {self._config_path}")
        return data

    @property
    def path(self) -> Path:
        """Path of the loaded configuration file."""
        return self._config_path

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Args:
            key: Key name (e.g., "baseUrl", "reporting.screenshots")
            default: Value returned when the key is absent everywhere,
                     including DEFAULTS

        Returns:
            Configuration value or default
        """
        reference = DEFAULTS.get(key, default)

        # Check environment variable first
        env_key = key.upper().replace(".", "_")
        env_value = os.environ.get(env_key)
        if env_value is not None:
            return self._convert_type(env_value, reference)

        value = self._lookup(key)
        if value is not _MISSING:
            return value

        if key in DEFAULTS:
            return DEFAULTS[key]
        return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get a value coerced to bool ("true", "1", "yes", "on" are truthy)."""
        value = self.get(key, default)
        if isinstance(value, bool):
            return value
        if value is None:
            return default
        return str(value).strip().lower() in ("true", "1", "yes", "on")

    def get_int(self, key: str, default: int = 0) -> int:
        """Get a value coerced to int."""
        value = self.get(key, default)
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Configuration value for '{key}' is not an integer: {value!r}"
            ) from e

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get entire configuration section.

        Returns a copy so callers cannot mutate the shared store.
        """
        value = self._config.get(section, {})
        return copy.deepcopy(value) if isinstance(value, dict) else {}

    def as_dict(self) -> Dict[str, Any]:
        """Snapshot of every known key with its effective value."""
        keys = set(DEFAULTS) | set(self._flatten(self._config))
        return {key: self.get(key) for key in sorted(keys)}

    def _lookup(self, key: str) -> Any:
        """Find key in the YAML data, flat form first then nested."""
        if key in self._config:
            return self._config[key]

        value: Any = self._config
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return _MISSING
        return value

    @classmethod
    def _flatten(cls, data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
        flat: Dict[str, Any] = {}
        for key, value in data.items():
            full_key = f"{prefix}{key}"
            if isinstance(value, dict):
                flat.update(cls._flatten(value, f"{full_key}."))
            else:
                flat[full_key] = value
        return flat

    def _convert_type(self, value: str, reference: Any) -> Any:
        """
        Convert string value to match reference type.

        Used for environment variables which are always strings.
        """
        if reference is None:
            return value

        if isinstance(reference, bool):
            return value.lower() in ("true", "1", "yes", "on")
        if isinstance(reference, int):
            try:
                return int(value)
            except ValueError:
                return value
        if isinstance(reference, float):
            try:
                return float(value)
            except ValueError:
                return value

        return value

    @classmethod
    def reset(cls) -> None:
        """
        Reset singleton instance.

        Useful for testing when configuration needs to be reloaded
        with different settings.
        """
        cls._instance = None


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "DEFAULTS",
]
