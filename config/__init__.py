"""
Configuration Module for the Invoice Detail Client.

Settings live in ``config/settings.yaml``: service endpoint and
credentials, the active field allow-list, output switches, concurrency
and logging. Command-line flags override individual keys through
``ConfigurationManager.set``.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml


class ConfigurationManager:
    """
    Centralized configuration for the invoice detail client.

    Attributes:
        config_path (Path): Path to the configuration file.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("service.base_url")
        >>> config.get("output.csv.enabled")
    """

    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        """Singleton: one configuration per process."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_path: Optional path to configuration file.
                        Defaults to config/settings.yaml.
        """
        if self._initialized:
            return

        if config_path is None:
            self.config_path = Path(__file__).parent / "settings.yaml"
        else:
            self.config_path = Path(config_path)

        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """
        Load configuration from YAML file.

        Raises:
            FileNotFoundError: If configuration file doesn't exist.
            yaml.YAMLError: If configuration file is invalid.
        """
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}"
            )

        with open(self.config_path, 'r', encoding='utf-8') as f:
            self._config = yaml.safe_load(f) or {}

        self._resolve_paths()

    def _resolve_paths(self) -> None:
        """Resolve relative entries of the ``paths`` section against the project root."""
        project_root = Path(__file__).parent.parent

        for key, value in (self._config.get('paths') or {}).items():
            if value and not Path(value).is_absolute():
                self._config['paths'][key] = str(project_root / value)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., "service.timeout").
            default: Default value if key doesn't exist.

        Returns:
            Configuration value or default.

        Example:
            >>> config.get("service.timeout")
            120
            >>> config.get("nonexistent.key", "default_value")
            "default_value"
        """
        value = self._config

        try:
            for k in key.split('.'):
                value = value[k]
        except (KeyError, TypeError):
            return default
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        """
        Override a configuration value using dot notation.

        Intermediate sections are created when missing.

        Example:
            >>> config.set("output.pdf.enabled", True)
        """
        keys = key.split('.')
        section = self._config
        for k in keys[:-1]:
            if not isinstance(section.get(k), dict):
                section[k] = {}
            section = section[k]
        section[keys[-1]] = value

    def get_all(self) -> Dict[str, Any]:
        """Get a copy of the complete configuration dictionary."""
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from file, discarding overrides."""
        self._load_config()

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton instance so the next access reloads from disk."""
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """
    Convenience function to get configuration values.

    Args:
        key: Configuration key in dot notation.
        default: Default value if key doesn't exist.

    Returns:
        Configuration value or default.
    """
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config']
