"""
Error types for SSL Certificate Notifier.
"""

from typing import Iterable, Optional


class CertMonitorError(Exception):
    """Base class for all SSL Certificate Notifier errors."""


class ConfigurationMissing(CertMonitorError):
    """A notification channel is missing required settings."""

    def __init__(self, channel: str, missing_fields: Iterable[str]):
        self.channel = channel
        self.missing_fields = list(missing_fields)
        super().__init__(
            f"{channel} configuration missing: {', '.join(self.missing_fields) or 'unknown'}"
        )


class InspectionError(CertMonitorError):
    """Connecting to an endpoint or reading its certificate failed."""

    def __init__(self, label: str, address: str, cause: Optional[BaseException] = None):
        self.label = label
        self.address = address
        self.cause = cause
        super().__init__(f"{label} ({address}): {cause}")


class NoCertificateError(InspectionError):
    """The TLS handshake succeeded but the peer presented no certificate."""

    def __init__(self, label: str, address: str):
        super().__init__(label, address, "no certificates found")


class DispatchError(CertMonitorError):
    """Delivering a notification failed."""

    def __init__(self, channel: str, reason: str):
        self.channel = channel
        self.reason = reason
        super().__init__(f"{channel} delivery failed: {reason}")
