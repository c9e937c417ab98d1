"""Unit tests for CLI configuration and the config commands."""

import json
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from playground_cli.config import (
    DEFAULT_READY_TIMEOUT,
    ENV_VARS,
    load_config,
    save_config,
    unset_config,
)
from playground_cli.main import cli


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Drop environment overrides that would leak into the tests."""
    for env_var in ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.delenv("KUBECONFIG", raising=False)


@pytest.fixture
def config_file(tmp_path):
    """Config file path inside a temporary home."""
    path = tmp_path / ".playground" / "config.yaml"
    with patch("playground_cli.config.get_config_path", return_value=path):
        yield path


class TestLoadConfig:
    """Tests for load_config precedence."""

    def test_defaults(self, config_file):
        """Test defaults when nothing is configured."""
        config = load_config()

        assert config.kubeconfig is None
        assert config.ready_timeout == DEFAULT_READY_TIMEOUT
        assert config.get_source("ready_timeout") == "default"

    def test_file_values(self, config_file):
        """Test values from the config file are typed."""
        config_file.parent.mkdir()
        config_file.write_text("ready_timeout: '60'\ntracker_namespace: playground\n")

        config = load_config()

        assert config.ready_timeout == 60
        assert config.tracker_namespace == "playground"
        assert config.get_source("tracker_namespace") == "config file"

    def test_env_beats_file(self, config_file, monkeypatch):
        """Test that environment variables override the config file."""
        config_file.parent.mkdir()
        config_file.write_text("ready_timeout: 60\n")
        monkeypatch.setenv("PLAYGROUND_READY_TIMEOUT", "120")

        config = load_config()

        assert config.ready_timeout == 120
        assert config.get_source("ready_timeout") == "environment"

    def test_invalid_env_ignored(self, config_file, monkeypatch):
        """Test that an unparseable environment value is skipped."""
        monkeypatch.setenv("PLAYGROUND_READY_INTERVAL", "soon")

        assert load_config().get_source("ready_interval") == "default"

    def test_kubeconfig_fallback(self, config_file, monkeypatch):
        """Test that KUBECONFIG is used when nothing else sets kubeconfig."""
        monkeypatch.setenv("KUBECONFIG", "/tmp/kind.yaml")

        assert load_config().kubeconfig == "/tmp/kind.yaml"

    def test_own_kubeconfig_wins(self, config_file, monkeypatch):
        """Test that PLAYGROUND_KUBECONFIG beats KUBECONFIG."""
        monkeypatch.setenv("KUBECONFIG", "/tmp/kind.yaml")
        monkeypatch.setenv("PLAYGROUND_KUBECONFIG", "/tmp/playground.yaml")

        assert load_config().kubeconfig == "/tmp/playground.yaml"

    def test_broken_file(self, config_file):
        """Test that an unreadable config file falls back to defaults."""
        config_file.parent.mkdir()
        config_file.write_text("ready_timeout: [unclosed\n")

        assert load_config().ready_timeout == DEFAULT_READY_TIMEOUT


class TestSaveConfig:
    """Tests for save_config and unset_config."""

    def test_save_creates_file(self, config_file):
        """Test that saving creates the config directory."""
        save_config("log_level", "debug")

        assert yaml.safe_load(config_file.read_text()) == {"log_level": "debug"}

    def test_save_keeps_other_keys(self, config_file):
        """Test that saving one key keeps the rest."""
        save_config("log_level", "debug")
        save_config("ready_timeout", 30)

        assert yaml.safe_load(config_file.read_text()) == {"log_level": "debug", "ready_timeout": 30}

    def test_unset(self, config_file):
        """Test removing a saved key."""
        save_config("log_level", "debug")

        assert unset_config("log_level") is True
        assert unset_config("log_level") is False


class TestConfigCommands:
    """Tests for playground config commands."""

    @pytest.fixture
    def runner(self):
        """Create CLI runner."""
        return CliRunner()

    def test_show(self, runner, config_file):
        """Test showing configuration with sources."""
        config_file.parent.mkdir()
        config_file.write_text("tracker_namespace: playground\n")

        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "Playground CLI Configuration" in result.output
        assert "tracker_namespace: playground" in result.output
        assert "tracker_namespace: config file" in result.output

    def test_show_json(self, runner, config_file):
        """Test JSON output."""
        result = runner.invoke(cli, ["--kubeconfig", "/tmp/kc", "config", "show", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["values"]["kubeconfig"] == "/tmp/kc"
        assert data["sources"]["kubeconfig"] == "flag"

    def test_set(self, runner, config_file):
        """Test setting a typed value."""
        result = runner.invoke(cli, ["config", "set", "ready_timeout", "90"])

        assert result.exit_code == 0
        assert yaml.safe_load(config_file.read_text()) == {"ready_timeout": 90}

    def test_set_invalid_value(self, runner, config_file):
        """Test that a value of the wrong type is rejected."""
        result = runner.invoke(cli, ["config", "set", "ready_timeout", "soon"])

        assert result.exit_code == 1
        assert not config_file.exists()

    def test_set_unknown_key(self, runner, config_file):
        """Test that unknown keys are rejected by click."""
        result = runner.invoke(cli, ["config", "set", "server", "x"])

        assert result.exit_code == 2

    def test_unset(self, runner, config_file):
        """Test unsetting a value."""
        save_config("log_level", "debug")

        result = runner.invoke(cli, ["config", "unset", "log_level"])

        assert result.exit_code == 0
        assert "log_level unset" in result.output

    def test_version(self, runner, config_file):
        """Test the version command."""
        result = runner.invoke(cli, ["version"])

        assert result.exit_code == 0
        assert result.output.startswith("playground version ")
