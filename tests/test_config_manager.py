"""Tests for the INI configuration file handling."""

import configparser

import pytest

from http_content.exceptions import ConfigurationError
from http_content.storage.config_manager import ConfigManager


@pytest.fixture
def config_file(tmp_path):
    return tmp_path / "http-content" / "config.ini"


def _read_ini(path):
    parser = configparser.ConfigParser(interpolation=None)
    parser.read(path, encoding="utf-8")
    return parser["DEFAULT"]


class TestConfigManager:
    def test_creates_defaults(self, config_file):
        config = ConfigManager(config_file).load_config()

        assert config_file.is_file()
        assert config.cache_dir == config_file.parent / "cache"
        assert config.lifetime_hours == 24
        assert config.game_dir is None
        assert _read_ini(config_file)["autoremove"] == "true"

    def test_migrates_missing_keys(self, config_file):
        config_file.parent.mkdir(parents=True)
        config_file.write_text("[DEFAULT]\nlifetime_hours = 5\n", encoding="utf-8")

        config = ConfigManager(config_file).load_config()

        assert config.lifetime_hours == 5
        section = _read_ini(config_file)
        assert section["lifetime_hours"] == "5"
        assert "fetch_timeout" in section
        assert "cache_dir" in section

    def test_cli_options_override_file(self, config_file):
        config = ConfigManager(config_file).load_config({"realm": "server"})
        assert config.realm == "server"
        assert _read_ini(config_file)["realm"] == "client"

    def test_update_persists(self, config_file):
        manager = ConfigManager(config_file)
        updated = manager.update(lifetime_hours=48, autoremove=False)

        assert updated.lifetime_hours == 48
        reloaded = ConfigManager(config_file).load_config()
        assert reloaded.lifetime_hours == 48
        assert reloaded.autoremove is False

    def test_invalid_value(self, config_file):
        config_file.parent.mkdir(parents=True)
        config_file.write_text("[DEFAULT]\nrealm = moon\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            ConfigManager(config_file).load_config()

    def test_invalid_update_is_not_saved(self, config_file):
        manager = ConfigManager(config_file)
        manager.load_config()
        with pytest.raises(ConfigurationError):
            manager.update(fetch_timeout=0)
        assert _read_ini(config_file)["fetch_timeout"] == "120.0"

    @pytest.mark.parametrize("raw", ["forever", "-3", ""])
    def test_unparseable_lifetime_falls_back_to_one_hour(self, config_file, raw):
        config_file.parent.mkdir(parents=True)
        config_file.write_text(f"[DEFAULT]\nlifetime_hours = {raw}\n", encoding="utf-8")

        config = ConfigManager(config_file).load_config()

        assert config.lifetime_hours == 1
