"""Tests for configuration loading."""

import os

import pytest

from toolforge.config import LOG_LEVEL_ENV, PLUGIN_DIR_ENV, ConfigError, default_plugin_dir, load_app_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(PLUGIN_DIR_ENV, raising=False)
    monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)


class TestLoadAppConfig:
    """YAML loading, defaults and overrides."""

    def test_defaults_without_file(self):
        cfg = load_app_config()
        assert cfg.workspace == os.getcwd()
        assert cfg.plugin_dir == default_plugin_dir()
        assert cfg.server_name == "toolforge-tools"
        assert cfg.server_version == "1.0.0"
        assert cfg.log_level == "INFO"
        assert cfg.json_logs is False

    def test_default_plugin_dir_location(self):
        assert default_plugin_dir().endswith(os.path.join(".config", "toolforge", "tools"))

    def test_values_from_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            f"workspace: {tmp_path}\n"
            "plugins:\n"
            f"  dir: {tmp_path / 'plugins'}\n"
            "server:\n"
            "  name: custom\n"
            "  version: 3.0.0\n"
            "logging:\n"
            "  level: debug\n"
            "  json: true\n"
        )
        cfg = load_app_config(str(path))
        assert cfg.workspace == str(tmp_path)
        assert cfg.plugin_dir == str(tmp_path / "plugins")
        assert cfg.server_name == "custom"
        assert cfg.server_version == "3.0.0"
        assert cfg.log_level == "debug"
        assert cfg.json_logs is True

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("plugins:\n  dir: /from/file\nlogging:\n  level: INFO\n")
        monkeypatch.setenv(PLUGIN_DIR_ENV, str(tmp_path / "env-plugins"))
        monkeypatch.setenv(LOG_LEVEL_ENV, "WARNING")
        cfg = load_app_config(str(path))
        assert cfg.plugin_dir == str(tmp_path / "env-plugins")
        assert cfg.log_level == "WARNING"

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_app_config(str(path)).server_name == "toolforge-tools"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_app_config(str(tmp_path / "missing.yaml"))

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="Top-level configuration must be a mapping"):
            load_app_config(str(path))

    def test_section_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("plugins: just-a-string\n")
        with pytest.raises(ConfigError, match="'plugins' section must be a mapping"):
            load_app_config(str(path))
