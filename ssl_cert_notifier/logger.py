"""
Standardized logging configuration for SSL Certificate Notifier.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path

from ssl_cert_notifier.config import Config

# Extra fields copied into structured log lines when present
STRUCTURED_FIELDS = (
    "label",
    "address",
    "common_name",
    "days_remaining",
    "channel",
    "error_type",
    "endpoint_count",
    "certificates_total",
    "certificates_expiring",
    "failures",
    "cycle_duration",
)


class CustomFormatter(logging.Formatter):
    """Custom formatter with colored output for console."""

    # Color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",  # Reset
    }

    def __init__(self, use_color: bool = True) -> None:
        self.use_color = use_color
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with optional colors."""
        if self.use_color and record.levelname in self.COLORS:
            color = self.COLORS[record.levelname]
            reset = self.COLORS["RESET"]
            level_name = f"{color}{record.levelname:<8}{reset}"
        else:
            level_name = f"{record.levelname:<8}"

        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        message = record.getMessage()

        if record.exc_info:
            if not message.endswith("\n"):
                message += "\n"
            message += self.formatException(record.exc_info)

        return f"{timestamp} | {level_name} | {record.name:<28} | {message}"


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for name in STRUCTURED_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(config: Config) -> None:
    """
    Setup logging configuration.

    Raises OSError when the log file cannot be opened.

    Args:
        config: Configuration object
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.log_level))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, config.log_level))

    # Use colored formatter for console if output is a TTY
    use_color = hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
    console_handler.setFormatter(CustomFormatter(use_color=use_color))
    root_logger.addHandler(console_handler)

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Rotating file handler (10MB max, 5 backups)
        file_handler = logging.handlers.RotatingFileHandler(
            config.log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        file_handler.setLevel(getattr(logging, config.log_level))
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    app_logger = logging.getLogger("ssl_cert_notifier")
    app_logger.info(f"Logging initialized - Level: {config.log_level}")

    if config.log_file:
        app_logger.info(f"Log file: {config.log_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return logging.getLogger(f"ssl_cert_notifier.{name}")


# Logging helpers for check cycle events
def log_cycle_start(logger: logging.Logger, endpoint_count: int) -> None:
    """Log check cycle start."""
    logger.info(
        f"Starting certificate check - Endpoints: {endpoint_count}",
        extra={"endpoint_count": endpoint_count},
    )


def log_cycle_complete(
    logger: logging.Logger, duration: float, total: int, expiring: int, failures: int
) -> None:
    """Log check cycle completion."""
    logger.info(
        f"Certificate check completed - Duration: {duration:.2f}s, "
        f"Certificates: {total}, Expiring: {expiring}, Failures: {failures}",
        extra={
            "cycle_duration": duration,
            "certificates_total": total,
            "certificates_expiring": expiring,
            "failures": failures,
        },
    )


def log_certificate_checked(
    logger: logging.Logger, label: str, address: str, common_name: str, days_remaining: int
) -> None:
    """Log a successful endpoint inspection."""
    logger.info(
        f"{label} ({address}): Expires in {days_remaining} days",
        extra={
            "label": label,
            "address": address,
            "common_name": common_name,
            "days_remaining": days_remaining,
        },
    )


def log_inspection_error(
    logger: logging.Logger, label: str, address: str, error: BaseException
) -> None:
    """Log a failed endpoint inspection."""
    cause = getattr(error, "cause", None) or error
    logger.error(
        f"Error checking {label} ({address}): {cause}",
        extra={"label": label, "address": address, "error_type": type(cause).__name__},
    )


def log_dispatch_sent(logger: logging.Logger, channel: str) -> None:
    """Log a delivered notification."""
    logger.info(f"{channel} notification sent successfully", extra={"channel": channel})


def log_dispatch_skipped(logger: logging.Logger, channel: str, reason: str) -> None:
    """Log a notification skipped because of missing configuration."""
    logger.warning(
        f"{channel} notification skipped: {reason}",
        extra={"channel": channel, "error_type": "ConfigurationMissing"},
    )


def log_dispatch_failed(logger: logging.Logger, channel: str, error: BaseException) -> None:
    """Log a failed notification delivery."""
    logger.error(
        f"{channel} notification failed: {error}",
        extra={"channel": channel, "error_type": type(error).__name__},
    )
