"""Tests for configuration loading."""

import logging
import os

import pytest
import yaml

from fsquery.config import ConfigManager, ServerConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("FSQ_"):
            monkeypatch.delenv(key)


class TestServerConfig:
    def test_defaults(self):
        config = ServerConfig()
        assert config.max_recursive_depth == 10
        assert config.max_file_read_bytes_find == 524288
        assert config.find_timeout_ms == 60000
        assert os.path.realpath(os.path.expanduser("~")) in config.allowed_paths

    def test_allowed_paths_from_colon_string(self, tmp_path):
        config = ServerConfig(allowed_paths=f"{tmp_path}:/tmp/../tmp")
        assert config.allowed_paths == [str(tmp_path.resolve()), str(os.path.realpath("/tmp"))]

    def test_log_level_normalization(self):
        assert ServerConfig(log_level="warn").log_level == "WARNING"
        assert ServerConfig(log_level="debug").log_level == "DEBUG"
        assert ServerConfig(log_level="loud").log_level == "INFO"

    def test_unlimited_depth(self):
        assert ServerConfig(max_recursive_depth=-1).effective_max_depth == float("inf")
        assert ServerConfig(max_recursive_depth=3).effective_max_depth == 3

    def test_depth_below_unlimited_falls_back_to_default(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = ServerConfig(max_recursive_depth=-5)
        assert config.max_recursive_depth == 10
        assert "max_recursive_depth" in caplog.text


class TestConfigManager:
    def test_missing_default_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = ConfigManager().get_config()
        assert config.max_recursive_depth == 10

    def test_explicit_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigManager(str(tmp_path / "missing.yaml"))

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "fsquery.yaml"
        path.write_text(yaml.safe_dump({"max_recursive_depth": 3, "allowed_paths": [str(tmp_path)]}))
        config = ConfigManager(str(path)).get_config()
        assert config.max_recursive_depth == 3
        assert config.allowed_paths == [str(tmp_path.resolve())]

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "fsquery.yaml"
        path.write_text(yaml.safe_dump({"max_recursive_depth": 3, "log_level": "ERROR"}))
        monkeypatch.setenv("FSQ_MAX_RECURSIVE_DEPTH", "7")
        monkeypatch.setenv("FSQ_LOG_LEVEL", "debug")
        monkeypatch.setenv("FSQ_ALLOW_TILDE_EXPANSION", "false")
        monkeypatch.setenv("FSQ_ALLOWED_PATHS", str(tmp_path))
        config = ConfigManager(str(path)).get_config()
        assert config.max_recursive_depth == 7
        assert config.log_level == "DEBUG"
        assert config.allow_tilde_expansion is False
        assert config.allowed_paths == [str(tmp_path.resolve())]

    def test_invalid_int_env_is_ignored(self, tmp_path, monkeypatch, caplog):
        path = tmp_path / "fsquery.yaml"
        path.write_text(yaml.safe_dump({"find_timeout_ms": 500}))
        monkeypatch.setenv("FSQ_FIND_TIMEOUT_MS", "soon")
        with caplog.at_level(logging.WARNING):
            config = ConfigManager(str(path)).get_config()
        assert config.find_timeout_ms == 500
        assert "FSQ_FIND_TIMEOUT_MS" in caplog.text

    def test_unknown_env_keys_are_ignored(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("FSQ_NOT_A_SETTING", "1")
        assert not hasattr(ConfigManager().get_config(), "not_a_setting")

    def test_save_config_round_trips(self, tmp_path):
        path = tmp_path / "fsquery.yaml"
        path.write_text(yaml.safe_dump({"max_recursive_depth": 4}))
        manager = ConfigManager(str(path))
        manager.config.find_timeout_ms = 1234
        manager.save_config()
        assert ConfigManager(str(path)).get_config().find_timeout_ms == 1234
