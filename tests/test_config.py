"""Tests for layered configuration loading."""

import os
from pathlib import Path

import pytest

from slashbot.config import REPLAY_WINDOW_SECONDS, Config
from slashbot.exceptions import ConfigurationError


def _write(path: Path, text: str) -> None:
    path.write_text(text)


class TestConfigLoading:

    def test_defaults_without_files(self, tmp_path):
        config = Config(config_dir=tmp_path)
        assert config.env == "local"
        assert config.host == "0.0.0.0"
        assert config.port == 8080
        assert config.webhook_path == "/"
        assert config.signing_secret == ""
        assert config.reply_timeout == 10.0
        assert config.replay_window == REPLAY_WINDOW_SECONDS == 300
        assert config.logging_level == "INFO"

    def test_base_file_loaded(self, config, signing_secret):
        assert config.signing_secret == signing_secret
        assert config.reply_timeout == 2.0

    def test_env_overlay_deep_merges(self, tmp_path):
        _write(tmp_path / "base.yaml", (
            "port: 8080\n"
            "slack:\n"
            "  signing_secret: base-secret\n"
            "logging:\n"
            "  level: INFO\n"
            "  backup_count: 3\n"
        ))
        _write(tmp_path / "prod.yaml", (
            "port: 9000\n"
            "logging:\n"
            "  level: WARNING\n"
        ))
        config = Config(config_dir=tmp_path, env="prod")
        assert config.port == 9000
        assert config.signing_secret == "base-secret"
        assert config.logging_level == "WARNING"
        assert config.logging_backup_count == 3

    def test_env_name_from_environment(self, tmp_path, monkeypatch):
        _write(tmp_path / "staging.yaml", "port: 7000\n")
        monkeypatch.setenv("SLASHBOT_ENV", "staging")
        config = Config(config_dir=tmp_path)
        assert config.env == "staging"
        assert config.port == 7000

    def test_environment_variables_override_files(self, config_dir, monkeypatch):
        monkeypatch.setenv("SLASHBOT_PORT", "9999")
        monkeypatch.setenv("SLASHBOT_SLACK_SIGNING_SECRET", "from-env")
        monkeypatch.setenv("SLASHBOT_LOG_LEVEL", "DEBUG")
        config = Config(config_dir=config_dir)
        assert config.port == 9999
        assert config.signing_secret == "from-env"
        assert config.logging_level == "DEBUG"

    def test_slack_signing_secret_fallback(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SLACK_SIGNING_SECRET", "plain-env")
        assert Config(config_dir=tmp_path).signing_secret == "plain-env"

    def test_dotenv_file_loaded(self, tmp_path, monkeypatch):
        # Register the variable so monkeypatch removes it afterwards
        monkeypatch.setenv("SLASHBOT_SLACK_SIGNING_SECRET", "placeholder")
        monkeypatch.delenv("SLASHBOT_SLACK_SIGNING_SECRET")
        _write(tmp_path / ".env", "SLASHBOT_SLACK_SIGNING_SECRET=dotenv-secret\n")
        config = Config(config_dir=tmp_path)
        assert config.signing_secret == "dotenv-secret"
        assert os.environ["SLASHBOT_SLACK_SIGNING_SECRET"] == "dotenv-secret"

    def test_non_mapping_yaml_rejected(self, tmp_path):
        _write(tmp_path / "base.yaml", "- just\n- a list\n")
        with pytest.raises(ConfigurationError):
            Config(config_dir=tmp_path)

    def test_invalid_reply_timeout_falls_back(self, tmp_path):
        _write(tmp_path / "base.yaml", "reply_timeout: soon\n")
        assert Config(config_dir=tmp_path).reply_timeout == 10.0

    def test_log_dir_expands_user(self, tmp_path):
        _write(tmp_path / "base.yaml", "log_dir: ~/slashbot-logs\n")
        assert Config(config_dir=tmp_path).log_dir == Path.home() / "slashbot-logs"


class TestConfigValidate:

    def test_valid_config_passes(self, config):
        config.validate()

    def test_missing_secret_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            Config(config_dir=tmp_path).validate()
        assert exc_info.value.setting_name == "slack.signing_secret"

    @pytest.mark.parametrize("port", ["0", "70000"])
    def test_out_of_range_port_rejected(self, config_dir, monkeypatch, port):
        monkeypatch.setenv("SLASHBOT_PORT", port)
        with pytest.raises(ConfigurationError) as exc_info:
            Config(config_dir=config_dir).validate()
        assert exc_info.value.setting_name == "port"

    def test_non_numeric_port_rejected(self, config_dir, monkeypatch):
        monkeypatch.setenv("SLASHBOT_PORT", "http")
        with pytest.raises(ConfigurationError):
            Config(config_dir=config_dir).validate()

    def test_relative_webhook_path_rejected(self, config_dir, monkeypatch):
        monkeypatch.setenv("SLASHBOT_WEBHOOK_PATH", "slack")
        with pytest.raises(ConfigurationError):
            Config(config_dir=config_dir).validate()
