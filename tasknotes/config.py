"""
Configuration management for tasknotes.

This module handles loading and accessing configuration values from config.yaml.
Conversion defaults, the collaborative document layout and logging settings
live here so behaviour can change without touching code.
"""

import yaml
import os
from pathlib import Path
from typing import Any, Dict, Optional
import logging


DEFAULT_CONFIG_PATH = "config.yaml"
CONFIG_PATH_ENV = "TASKNOTES_CONFIG"


class ConfigManager:
    """
    Manages configuration loading and access for tasknotes.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file. Defaults to
                $TASKNOTES_CONFIG, then config.yaml in the working directory.
        """
        self.config_path = Path(config_path or os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH))
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        defaults = self._get_default_config()
        if not self.config_path.exists():
            logging.debug(f"Configuration file not found: {self.config_path}, using defaults")
            self._config = defaults
            return

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}

            self._config = self._merge(defaults, loaded)
            logging.info(f"Configuration loaded from {self.config_path}")

        except (yaml.YAMLError, OSError) as e:
            logging.error(f"Failed to load configuration: {e}")
            # Fall back to default configuration
            self._config = defaults

    @classmethod
    def _merge(cls, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively overlay values from a loaded file onto the defaults."""
        result = dict(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(result.get(key), dict):
                result[key] = cls._merge(result[key], value)
            else:
                result[key] = value
        return result

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values as fallback."""
        return {
            "conversion": {
                "html_to_markdown": {
                    "gfm": True,
                    "br": "\n",
                    "heading_style": "atx",
                    "bullet": "-"
                },
                "markdown_to_html": {
                    "gfm": True,
                    "breaks": True,
                    "sanitize": True
                }
            },
            "collab": {
                "fragment_name": "default"
            },
            "notes": {
                "editor_version": 3
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "paths": {
                "log_file": None
            }
        }

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key_path: Dot-separated path to the configuration value (e.g., "notes.editor_version")
            default: Default value if key is not found

        Returns:
            The configuration value

        Examples:
            config.get("collab.fragment_name")  # Returns "default"
            config.get("conversion.markdown_to_html.breaks")  # Returns True
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get an entire configuration section.

        Args:
            section: Name of the configuration section

        Returns:
            Dictionary containing the section configuration
        """
        return self._config.get(section, {})

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    # Convenience properties for commonly used values

    @property
    def html_to_markdown_options(self) -> Dict[str, Any]:
        """Get default HTML to Markdown conversion options."""
        return self.get("conversion.html_to_markdown", {})

    @property
    def markdown_to_html_options(self) -> Dict[str, Any]:
        """Get default Markdown to HTML conversion options."""
        return self.get("conversion.markdown_to_html", {})

    @property
    def fragment_name(self) -> str:
        """Get the name of the collaborative document's root fragment."""
        return self.get("collab.fragment_name", "default")

    @property
    def editor_version(self) -> int:
        """Get the editor version sent with notes updates."""
        return self.get("notes.editor_version", 3)

    @property
    def log_level(self) -> str:
        """Get logging level name."""
        return self.get("logging.level", "INFO")

    @property
    def log_filename(self) -> Optional[str]:
        """Get log file name, or None to log to the console only."""
        return self.get("paths.log_file")


# Global configuration instance
config = ConfigManager()


def get_config() -> ConfigManager:
    """
    Get the global configuration instance.

    Returns:
        The global ConfigManager instance
    """
    return config
