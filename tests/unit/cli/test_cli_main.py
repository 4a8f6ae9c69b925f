"""Tests for the ropee command line."""

from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from ropee import __version__
from ropee.cli.main import REDACTED, app, load_settings, settings_rows
from ropee.config import Settings
from ropee.exceptions import ConfigurationError

runner = CliRunner()


class TestVersion:
    """Test --version."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestServe:
    """Test the serve command."""

    def test_serve_with_overrides(self):
        with patch("uvicorn.run") as mock_run, patch(
            "ropee.cli.main.setup_logging"
        ) as mock_logging:
            result = runner.invoke(
                app,
                [
                    "serve",
                    "--listen-addr",
                    "0.0.0.0:9999",
                    "--splunk-hec-token",
                    "token-from-cli",
                    "--timeout",
                    "15",
                    "--log-file-path",
                    "-",
                    "--backend",
                    "memory",
                    "--debug",
                ],
            )

        assert result.exit_code == 0, result.output
        settings = mock_logging.call_args.args[0]
        assert settings.splunk_hec_token == "token-from-cli"
        assert settings.timeout_seconds == 15
        assert settings.backend == "memory"
        assert settings.debug is True

        mock_run.assert_called_once()
        kwargs = mock_run.call_args.kwargs
        assert kwargs["host"] == "0.0.0.0"
        assert kwargs["port"] == 9999
        assert "token-from-cli" not in result.output

    def test_serve_uses_config_file(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            yaml.safe_dump({"server": {"listen_addr": "127.0.0.1:9123"}, "logging": {"file_path": "-"}})
        )

        with patch("uvicorn.run") as mock_run, patch("ropee.cli.main.setup_logging"):
            result = runner.invoke(app, ["serve", "--config", str(config_path)])

        assert result.exit_code == 0, result.output
        assert mock_run.call_args.kwargs["port"] == 9123

    def test_serve_invalid_listen_addr(self):
        with patch("uvicorn.run") as mock_run, patch("ropee.cli.main.setup_logging"):
            result = runner.invoke(app, ["serve", "--listen-addr", "nope"])

        assert result.exit_code == 1
        mock_run.assert_not_called()


class TestConfigCommand:
    """Test the config command."""

    def test_token_redacted(self, monkeypatch):
        monkeypatch.setenv("ROPEE_SPLUNK_HEC_TOKEN", "super-secret")

        result = runner.invoke(app, ["config"])

        assert result.exit_code == 0, result.output
        assert "super-secret" not in result.output
        assert "listen_addr" in result.output

    def test_settings_rows(self):
        rows = dict(settings_rows(Settings(splunk_hec_token="abc")))
        assert rows["splunk_hec_token"] == REDACTED
        assert rows["timeout_seconds"] == "60.0"

    def test_empty_token_shown_empty(self):
        rows = dict(settings_rows(Settings()))
        assert rows["splunk_hec_token"] == ""


class TestLoadSettings:
    """Test CLI override merging."""

    def test_none_values_ignored(self):
        settings = load_settings(None, timeout_seconds=None, debug=None)
        assert settings.timeout_seconds == 60

    def test_invalid_override(self):
        with pytest.raises(ConfigurationError):
            load_settings(None, timeout_seconds=-1)
