"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from http_content.exceptions import ConfigurationError
from http_content.models.config import ContentConfig, coerce_lifetime

log = logging.getLogger(__name__)


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    def default_settings(self) -> dict[str, Any]:
        """Default values for a fresh config living next to the INI file."""
        defaults = ContentConfig(cache_dir=self.config_file_path.parent / "cache")
        return defaults.model_dump()

    def load_config(self, cli_options: dict[str, Any] | None = None) -> ContentConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        A missing file is not an error: defaults are written to disk first.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated ContentConfig object.

        Raises:
            ConfigurationError: If the config file is unreadable or validation fails.
        """
        if not self.config_file_path.is_file():
            log.info(
                f"[yellow]No configuration found, creating defaults at "
                f"'{self.config_file_path}'.[/yellow]"
            )
            self.save_config({})

        try:
            self._parser.read(self.config_file_path, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigurationError(f"Error parsing configuration file: {e}") from e

        if self._migrate_if_needed():
            log.info(
                "[yellow]Configuration file was updated with new default values."
                "[/yellow]"
            )

        config_from_file = self._get_config_as_dict()
        if cli_options:
            config_from_file.update(cli_options)

        try:
            return ContentConfig(**config_from_file)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_config(self, settings: dict[str, Any]) -> None:
        """
        Writes a complete configuration file, filling gaps with defaults.

        Args:
            settings: A dictionary of settings to save.
        """
        config = configparser.ConfigParser(interpolation=None)
        config["DEFAULT"] = {}
        defaults = self.default_settings()

        for key in sorted(ContentConfig.get_ini_keys()):
            value = settings.get(key, defaults.get(key))
            if isinstance(value, bool):
                config["DEFAULT"][key] = "true" if value else "false"
            elif value is None:
                config["DEFAULT"][key] = ""
            else:
                config["DEFAULT"][key] = str(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def update(self, **changes: Any) -> ContentConfig:
        """Loads the file, applies changes, validates and saves the result."""
        config = self.load_config()
        data = config.model_dump()
        data.update(changes)
        try:
            updated = ContentConfig(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e
        self.save_config(updated.model_dump())
        return updated

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        data: dict[str, Any] = {
            "cache_dir": section.get("cache_dir"),
            "realm": section.get("realm", "client"),
            "lifetime_hours": coerce_lifetime(section.get("lifetime_hours", "24")),
            "autoremove": section.getboolean("autoremove", True),
            "fetch_timeout": section.get("fetch_timeout", "120"),
        }
        if game_dir := section.get("game_dir", "").strip():
            data["game_dir"] = game_dir
        return data

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = self.default_settings()
        config_section = self._parser["DEFAULT"]
        needs_saving = False

        for key in ContentConfig.get_ini_keys():
            if key in config_section:
                continue
            default_value = defaults.get(key)
            if isinstance(default_value, bool):
                config_section[key] = "true" if default_value else "false"
            elif default_value is None:
                config_section[key] = ""
            else:
                config_section[key] = str(default_value)
            needs_saving = True
            log.debug(
                f"Migrating config: added missing key '{key}' with "
                f"value '{config_section[key]}'."
            )

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving
