"""
Configuration management for SSL Certificate Notifier.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

ENDPOINT_ENV_PREFIX = "URL_"


class SMTPSettings(BaseModel):
    """Settings for the email report channel."""

    host: Optional[str] = None
    port: Optional[int] = Field(default=None, ge=1, le=65535)
    username: Optional[str] = None
    password: Optional[str] = None
    sender: Optional[str] = None
    recipient: Optional[str] = None
    # None: STARTTLS when the server advertises it
    use_tls: Optional[bool] = None
    subject: str = Field(default="SSL Certificate Monitoring Report")

    def missing_fields(self) -> List[str]:
        """Return the names of required settings that are not set."""
        required = {
            "host": self.host,
            "port": self.port,
            "sender": self.sender,
            "recipient": self.recipient,
        }
        return [name for name, value in required.items() if not value]


class Config(BaseModel):
    """Configuration model for SSL Certificate Notifier."""

    # Endpoints to inspect, label -> address
    endpoints: Dict[str, str] = Field(default_factory=dict)

    # Notification channels
    smtp: SMTPSettings = Field(default_factory=SMTPSettings)
    webhook_url: Optional[str] = None

    # Check settings
    workers: int = Field(default=4, ge=1, le=32)
    connect_timeout: float = Field(default=10.0, gt=0)
    http_timeout: float = Field(default=10.0, gt=0)
    check_time: str = Field(default="00:00")
    run_on_start: bool = Field(default=True)

    # Logging
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default="ssl_monitor.log")

    @field_validator("endpoints")
    @classmethod
    def validate_endpoints(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Reject blank labels or addresses."""
        validated = {}
        for label, address in v.items():
            label = str(label).strip()
            address = str(address).strip() if address is not None else ""
            if not label:
                raise ValueError("Endpoint label cannot be empty")
            if not address:
                raise ValueError(f"Endpoint '{label}' has no address")
            validated[label] = address
        return validated

    @field_validator("webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank URLs as unset and require an http(s) scheme."""
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not re.match(r"^https?://", v, re.IGNORECASE):
            raise ValueError("webhook_url must start with http:// or https://")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("check_time")
    @classmethod
    def validate_check_time(cls, v: str) -> str:
        """Validate daily check time format (e.g., '00:00', '13:30')."""
        match = re.match(r"^(\d{1,2}):(\d{2})$", v.strip())
        if not match:
            raise ValueError("check_time must be in format 'HH:MM'")
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > 23 or minute > 59:
            raise ValueError(f"check_time out of range: {v}")
        return f"{hour:02d}:{minute:02d}"

    @property
    def check_hour_minute(self) -> tuple[int, int]:
        """Get the daily check time as (hour, minute)."""
        hour, minute = self.check_time.split(":")
        return int(hour), int(minute)


def load_config(config_path: Optional[str] = None, env_file: Optional[str] = None) -> Config:
    """
    Load configuration from file, dotenv file and environment variables.

    Args:
        config_path: Path to YAML configuration file
        env_file: Path to dotenv file; ``.env`` in the working directory is
            loaded when present and no path is given

    Returns:
        Config object
    """
    config_data: Dict[str, Any] = {}

    # Load from file if provided
    if config_path:
        config_file = Path(config_path)
        if config_file.exists():
            with open(config_file, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}
        else:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

    if env_file:
        if not Path(env_file).exists():
            raise FileNotFoundError(f"Environment file not found: {env_file}")
        load_dotenv(env_file)
    elif Path(".env").exists():
        load_dotenv(".env")

    # Override with environment variables
    env_overrides = _get_env_overrides()
    smtp_overrides = env_overrides.pop("smtp", {})
    config_data.update(env_overrides)
    if smtp_overrides:
        smtp_data = dict(config_data.get("smtp") or {})
        smtp_data.update(smtp_overrides)
        config_data["smtp"] = smtp_data

    endpoints = dict(config_data.get("endpoints") or {})
    endpoints.update(_get_env_endpoints())
    config_data["endpoints"] = endpoints

    return Config(**config_data)


def _to_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def _get_env_overrides() -> dict:
    """Get configuration overrides from environment variables."""
    env_mapping: Dict[str, tuple[str, Callable[[str], Any]]] = {
        "CERT_MONITOR_WORKERS": ("workers", int),
        "CERT_MONITOR_CONNECT_TIMEOUT": ("connect_timeout", float),
        "CERT_MONITOR_HTTP_TIMEOUT": ("http_timeout", float),
        "CERT_MONITOR_CHECK_TIME": ("check_time", str),
        "CERT_MONITOR_RUN_ON_START": ("run_on_start", _to_bool),
        "CERT_MONITOR_LOG_LEVEL": ("log_level", str),
        "CERT_MONITOR_LOG_FILE": ("log_file", str),
        "SLACK_WEBHOOK_URL": ("webhook_url", str),
    }
    smtp_mapping: Dict[str, tuple[str, Callable[[str], Any]]] = {
        "SMTP_HOST": ("host", str),
        "SMTP_PORT": ("port", int),
        "SMTP_USER": ("username", str),
        "SMTP_PASS": ("password", str),
        "EMAIL_FROM": ("sender", str),
        "EMAIL_TO": ("recipient", str),
        "CERT_MONITOR_SMTP_USE_TLS": ("use_tls", _to_bool),
        "CERT_MONITOR_EMAIL_SUBJECT": ("subject", str),
    }

    overrides: Dict[str, Any] = {}
    smtp: Dict[str, Any] = {}
    for mapping, target in ((env_mapping, overrides), (smtp_mapping, smtp)):
        for env_var, (config_key, converter) in mapping.items():
            value = os.getenv(env_var)
            if value is None or value == "":
                continue
            try:
                target[config_key] = converter(value)
            except (ValueError, TypeError) as e:
                logging.warning(f"Invalid value for {env_var}: {value} - {e}")

    if smtp:
        overrides["smtp"] = smtp
    return overrides


def _get_env_endpoints() -> Dict[str, str]:
    """Collect ``URL_<label>`` variables, sorted by label."""
    endpoints = {}
    for name in sorted(os.environ):
        if name.startswith(ENDPOINT_ENV_PREFIX) and len(name) > len(ENDPOINT_ENV_PREFIX):
            value = os.environ[name].strip()
            if value:
                endpoints[name[len(ENDPOINT_ENV_PREFIX) :]] = value
            else:
                logging.warning(f"Ignoring empty endpoint variable {name}")
    return endpoints


def create_example_config(output_path: str = "config.example.yaml") -> None:
    """Create an example configuration file."""
    example_config = {
        "endpoints": {
            "MAIN_SITE": "https://example.com",
            "API": "api.example.com:8443",
        },
        "smtp": {
            "host": "smtp.example.com",
            "port": 587,
            "username": "monitor@example.com",
            "password": "change-me",
            "sender": "monitor@example.com",
            "recipient": "ops@example.com",
        },
        "webhook_url": "https://hooks.slack.com/services/T000/B000/XXXX",
        "workers": 4,
        "connect_timeout": 10.0,
        "http_timeout": 10.0,
        "check_time": "00:00",
        "run_on_start": True,
        "log_level": "INFO",
        "log_file": "ssl_monitor.log",
    }

    with open(output_path, "w", encoding="utf-8") as f:
        yaml.dump(example_config, f, default_flow_style=False, sort_keys=False)
