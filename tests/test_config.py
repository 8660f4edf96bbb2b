"""
Tests for configuration management.
"""

import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from ssl_cert_notifier.config import Config, SMTPSettings, create_example_config, load_config

# Environment variables read by load_config
CONFIG_ENV_VARS = [
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASS",
    "EMAIL_FROM",
    "EMAIL_TO",
    "SLACK_WEBHOOK_URL",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Run each test without inherited monitor variables or a stray .env file."""
    for name in list(os.environ):
        if name.startswith(("URL_", "CERT_MONITOR_")) or name in CONFIG_ENV_VARS:
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestConfig:
    """Test configuration model."""

    def test_default_config(self):
        """Test default configuration values."""
        config = Config()

        assert config.endpoints == {}
        assert config.webhook_url is None
        assert config.workers == 4
        assert config.connect_timeout == 10.0
        assert config.http_timeout == 10.0
        assert config.check_time == "00:00"
        assert config.run_on_start is True
        assert config.log_level == "INFO"
        assert config.log_file == "ssl_monitor.log"

    def test_check_time_parsing(self):
        """Test daily check time parsing."""
        config = Config(check_time="7:05")

        assert config.check_time == "07:05"
        assert config.check_hour_minute == (7, 5)

    @pytest.mark.parametrize("value", ["noon", "24:00", "12:60", "1200"])
    def test_invalid_check_time(self, value):
        """Test invalid check time format."""
        with pytest.raises(ValueError):
            Config(check_time=value)

    def test_invalid_log_level(self):
        """Test invalid log level."""
        with pytest.raises(ValueError):
            Config(log_level="INVALID")

    def test_workers_validation(self):
        """Test worker pool bounds."""
        with pytest.raises(ValueError):
            Config(workers=0)

        with pytest.raises(ValueError):
            Config(workers=100)

    def test_timeout_validation(self):
        """Test timeouts must be positive."""
        with pytest.raises(ValueError):
            Config(connect_timeout=0)

    def test_blank_endpoint_rejected(self):
        """Test endpoints must have an address."""
        with pytest.raises(ValueError):
            Config(endpoints={"EMPTY": "  "})

    def test_webhook_url_validation(self):
        """Test webhook URL normalization."""
        assert Config(webhook_url="  ").webhook_url is None
        assert Config(webhook_url="https://hooks.example.com/x").webhook_url == (
            "https://hooks.example.com/x"
        )
        with pytest.raises(ValueError):
            Config(webhook_url="hooks.example.com/x")


class TestSMTPSettings:
    """Test SMTP settings."""

    def test_missing_fields(self):
        """Test required settings detection."""
        assert SMTPSettings().missing_fields() == ["host", "port", "sender", "recipient"]

        settings = SMTPSettings(host="smtp", port=25, sender="a@example.com")
        assert settings.missing_fields() == ["recipient"]

    def test_credentials_optional(self):
        """Test username and password are not required."""
        settings = SMTPSettings(host="smtp", port=25, sender="a@x", recipient="b@x")

        assert settings.missing_fields() == []


class TestLoadConfig:
    """Test configuration loading."""

    def test_load_from_file(self):
        """Test loading configuration from YAML file."""
        config_data = {
            "endpoints": {"MAIN": "https://example.com", "API": "api.example.com:8443"},
            "smtp": {"host": "smtp.example.com", "port": 587},
            "workers": 8,
            "check_time": "06:30",
        }

        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            yaml.dump(config_data, f, sort_keys=False)
            config_path = f.name

        try:
            config = load_config(config_path)

            assert list(config.endpoints) == ["MAIN", "API"]
            assert config.smtp.host == "smtp.example.com"
            assert config.smtp.port == 587
            assert config.workers == 8
            assert config.check_time == "06:30"
        finally:
            os.unlink(config_path)

    def test_load_nonexistent_file(self):
        """Test loading from nonexistent file."""
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/config.yaml")

    def test_load_nonexistent_env_file(self):
        """Test loading a missing dotenv file."""
        with pytest.raises(FileNotFoundError):
            load_config(env_file="/nonexistent/.env")

    def test_load_without_file(self):
        """Test loading without config file (defaults)."""
        config = load_config()
        assert config.workers == 4
        assert config.endpoints == {}

    def test_endpoint_environment_variables(self, monkeypatch):
        """Test URL_<label> variables become endpoints."""
        monkeypatch.setenv("URL_ZETA", "https://zeta.example.com")
        monkeypatch.setenv("URL_ALPHA", "alpha.example.com:8443")
        monkeypatch.setenv("URL_", "ignored.example.com")
        monkeypatch.setenv("NOT_URL_X", "ignored.example.com")

        config = load_config()

        assert config.endpoints == {
            "ALPHA": "alpha.example.com:8443",
            "ZETA": "https://zeta.example.com",
        }
        assert list(config.endpoints) == ["ALPHA", "ZETA"]

    def test_environment_endpoints_merge_with_file(self, tmp_path, monkeypatch):
        """Test environment endpoints override and extend file endpoints."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            yaml.dump({"endpoints": {"MAIN": "old.example.com", "API": "api.example.com"}})
        )
        monkeypatch.setenv("URL_MAIN", "new.example.com")
        monkeypatch.setenv("URL_EXTRA", "extra.example.com")

        config = load_config(str(config_path))

        assert config.endpoints["MAIN"] == "new.example.com"
        assert config.endpoints["API"] == "api.example.com"
        assert config.endpoints["EXTRA"] == "extra.example.com"

    def test_notification_environment_variables(self, monkeypatch):
        """Test SMTP and webhook variables."""
        monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
        monkeypatch.setenv("SMTP_PORT", "2525")
        monkeypatch.setenv("SMTP_USER", "monitor")
        monkeypatch.setenv("SMTP_PASS", "secret")
        monkeypatch.setenv("EMAIL_FROM", "monitor@example.com")
        monkeypatch.setenv("EMAIL_TO", "ops@example.com")
        monkeypatch.setenv("SLACK_WEBHOOK_URL", "https://hooks.example.com/x")

        config = load_config()

        assert config.smtp.host == "smtp.example.com"
        assert config.smtp.port == 2525
        assert config.smtp.username == "monitor"
        assert config.smtp.password == "secret"
        assert config.smtp.sender == "monitor@example.com"
        assert config.smtp.recipient == "ops@example.com"
        assert config.smtp.missing_fields() == []
        assert config.webhook_url == "https://hooks.example.com/x"

    def test_service_environment_variables(self, monkeypatch):
        """Test CERT_MONITOR_* overrides."""
        monkeypatch.setenv("CERT_MONITOR_WORKERS", "2")
        monkeypatch.setenv("CERT_MONITOR_CONNECT_TIMEOUT", "3.5")
        monkeypatch.setenv("CERT_MONITOR_CHECK_TIME", "01:15")
        monkeypatch.setenv("CERT_MONITOR_RUN_ON_START", "false")
        monkeypatch.setenv("CERT_MONITOR_LOG_LEVEL", "debug")

        config = load_config()

        assert config.workers == 2
        assert config.connect_timeout == 3.5
        assert config.check_time == "01:15"
        assert config.run_on_start is False
        assert config.log_level == "DEBUG"

    def test_invalid_environment_value_ignored(self, monkeypatch):
        """Test invalid numeric values are logged and ignored."""
        monkeypatch.setenv("CERT_MONITOR_WORKERS", "many")

        with patch("logging.warning") as mock_warning:
            config = load_config()

        assert config.workers == 4
        mock_warning.assert_called_once()

    def test_smtp_environment_merges_with_file(self, tmp_path, monkeypatch):
        """Test SMTP variables override individual file settings."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            yaml.dump({"smtp": {"host": "file.example.com", "port": 25, "sender": "a@x"}})
        )
        monkeypatch.setenv("SMTP_HOST", "env.example.com")

        config = load_config(str(config_path))

        assert config.smtp.host == "env.example.com"
        assert config.smtp.port == 25
        assert config.smtp.sender == "a@x"

    def test_dotenv_file(self, tmp_path, monkeypatch):
        """Test loading variables from a dotenv file."""
        env_path = tmp_path / "monitor.env"
        env_path.write_text(
            "URL_SITE=https://site.example.com\n"
            "SLACK_WEBHOOK_URL=https://hooks.example.com/y\n"
        )
        # load_dotenv writes into os.environ; let monkeypatch restore it
        monkeypatch.setenv("URL_SITE", "")
        monkeypatch.delenv("URL_SITE")
        monkeypatch.setenv("SLACK_WEBHOOK_URL", "")
        monkeypatch.delenv("SLACK_WEBHOOK_URL")

        config = load_config(env_file=str(env_path))

        assert config.endpoints == {"SITE": "https://site.example.com"}
        assert config.webhook_url == "https://hooks.example.com/y"

    def test_default_dotenv_file(self, tmp_path, monkeypatch):
        """Test that .env in the working directory is loaded by default."""
        (tmp_path / ".env").write_text("URL_LOCAL=local.example.com\n")
        monkeypatch.setenv("URL_LOCAL", "")
        monkeypatch.delenv("URL_LOCAL")

        config = load_config()

        assert config.endpoints == {"LOCAL": "local.example.com"}


class TestCreateExampleConfig:
    """Test example configuration creation."""

    def test_create_example_config(self, tmp_path):
        """Test creating example configuration file."""
        example_path = Path(tmp_path) / "example.yaml"
        create_example_config(str(example_path))

        assert example_path.exists()

        with open(example_path, "r") as f:
            config_data = yaml.safe_load(f)

        assert "endpoints" in config_data
        assert "smtp" in config_data
        assert "webhook_url" in config_data

        config = Config(**config_data)
        assert config.smtp.missing_fields() == []
        assert len(config.endpoints) == 2
