"""Configuration management for SQL Schema Compare."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from sql_schema_compare.utils.logger import get_logger

logger = get_logger(__name__)


class Config:
    """Application configuration management using JSON."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file. If None, uses default location.
        """
        if config_path is None:
            # Default to config directory in project root
            self.config_path = Path(__file__).parent.parent.parent / "config" / "settings.json"
        else:
            self.config_path = Path(config_path)

        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file or create with defaults."""
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    loaded = json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Error loading config {self.config_path}: {e}. Using defaults.")
                self._config = self._get_defaults()
                return
            # Sections missing from the file fall back to their defaults
            self._config = self._get_defaults()
            for section, values in loaded.items():
                if isinstance(values, dict) and isinstance(self._config.get(section), dict):
                    self._config[section].update(values)
                else:
                    self._config[section] = values
        else:
            # Create config file with defaults
            self._config = self._get_defaults()
            self._save_config()

    def _save_config(self) -> None:
        """Save current configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2)

    def _get_defaults(self) -> Dict[str, Any]:
        """Get default configuration values."""
        return {
            "app": {
                "name": "SQL Schema Compare",
                "version": "1.0.0",
            },
            "scripting": {
                "use_schema_name": True,
                "order_column_alphabetically": False,
                "ignore_reference_table_column_order": False,
                "ignore_collate": False,
            },
            "comparison": {
                "report_format": "html",
            },
            "deployment": {
                "include_drop_phase": True,
                "include_type_phase": True,
                "include_table_phase": True,
                "include_constraint_phase": True,
                "include_foreign_key_phase": True,
                "include_programmability_phase": True,
            },
            "logging": {
                "level": "INFO",
                "log_dir": "logs",
            },
        }

    def get(self, section: str, key: Optional[str] = None, default: Any = None) -> Any:
        """Get configuration value.

        Args:
            section: Configuration section name
            key: Optional key within section. If None, returns entire section.
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        if section not in self._config:
            return default

        if key is None:
            return self._config[section]

        return self._config[section].get(key, default)

    def set(self, section: str, key: str, value: Any) -> None:
        """Set configuration value.

        Args:
            section: Configuration section name
            key: Key within section
            value: Value to set
        """
        if section not in self._config:
            self._config[section] = {}

        self._config[section][key] = value
        self._save_config()

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get entire configuration section.

        Args:
            section: Section name

        Returns:
            Section dictionary or empty dict if not found
        """
        return self._config.get(section, {})

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()
