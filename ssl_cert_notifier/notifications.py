"""
Notification channels for SSL Certificate Notifier.

Both channels make a single delivery attempt. Missing configuration and
delivery failures are logged and reported through the return value; they
never propagate to the check cycle.
"""

import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from datetime import datetime
from email.message import EmailMessage
from typing import Any, Callable, List, Optional, Sequence

import httpx

from ssl_cert_notifier.config import SMTPSettings
from ssl_cert_notifier.exceptions import ConfigurationMissing, DispatchError
from ssl_cert_notifier.logger import (
    get_logger,
    log_dispatch_failed,
    log_dispatch_sent,
    log_dispatch_skipped,
)
from ssl_cert_notifier.models import CertificateRecord
from ssl_cert_notifier.templates import build_alert_payload, render_email_report


class Notifier(ABC):
    """Shared delivery policy for notification channels."""

    channel = "notification"

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger(f"notify.{self.channel.lower()}")

    @abstractmethod
    def missing_settings(self) -> List[str]:
        """Return the names of required settings that are not configured."""

    def _dispatch(self, deliver: Callable[[], None]) -> bool:
        missing = self.missing_settings()
        if missing:
            log_dispatch_skipped(
                self.logger, self.channel, str(ConfigurationMissing(self.channel, missing))
            )
            return False

        try:
            deliver()
        except DispatchError as e:
            log_dispatch_failed(self.logger, self.channel, e)
            return False
        except Exception as e:
            # Unexpected rendering or transport errors never leave the channel
            log_dispatch_failed(self.logger, self.channel, DispatchError(self.channel, str(e)))
            return False

        log_dispatch_sent(self.logger, self.channel)
        return True


class ReportNotifier(Notifier):
    """Channel receiving the full report of every inspected certificate."""

    @abstractmethod
    def send_report(
        self, all_certs: Sequence[CertificateRecord], expiring: Sequence[CertificateRecord]
    ) -> bool:
        """Send the report; returns True when delivered."""


class AlertNotifier(Notifier):
    """Channel receiving alerts for expiring certificates only."""

    @abstractmethod
    def send_alert(self, expiring: Sequence[CertificateRecord]) -> bool:
        """Send the alert; returns True when delivered."""


class EmailReportNotifier(ReportNotifier):
    """Delivers the HTML report over SMTP."""

    channel = "Email"

    def __init__(
        self,
        settings: SMTPSettings,
        timeout: float = 10.0,
        smtp_factory: Callable[..., Any] = smtplib.SMTP,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(logger)
        self.settings = settings
        self.timeout = timeout
        self.smtp_factory = smtp_factory
        self.clock = clock or datetime.now

    def missing_settings(self) -> List[str]:
        return self.settings.missing_fields()

    def build_message(
        self, all_certs: Sequence[CertificateRecord], expiring: Sequence[CertificateRecord]
    ) -> EmailMessage:
        """Build the report email."""
        message = EmailMessage()
        message["From"] = self.settings.sender
        message["To"] = self.settings.recipient
        message["Subject"] = self.settings.subject
        message.set_content(
            render_email_report(all_certs, expiring, self.clock()), subtype="html", charset="utf-8"
        )
        return message

    def send_report(
        self, all_certs: Sequence[CertificateRecord], expiring: Sequence[CertificateRecord]
    ) -> bool:
        return self._dispatch(lambda: self._send(all_certs, expiring))

    def _send(
        self, all_certs: Sequence[CertificateRecord], expiring: Sequence[CertificateRecord]
    ) -> None:
        settings = self.settings
        try:
            message = self.build_message(all_certs, expiring)
        except ValueError as e:
            raise DispatchError(self.channel, f"invalid message: {e}") from e

        try:
            with self.smtp_factory(settings.host, settings.port, timeout=self.timeout) as smtp:
                smtp.ehlo()
                use_tls = settings.use_tls
                if use_tls is None:
                    use_tls = smtp.has_extn("starttls")
                if use_tls:
                    smtp.starttls(context=ssl.create_default_context())
                    smtp.ehlo()
                if settings.username:
                    smtp.login(settings.username, settings.password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise DispatchError(self.channel, str(e)) from e


class WebhookAlertNotifier(AlertNotifier):
    """Posts expiring-certificate alerts to a chat webhook."""

    channel = "Slack"

    def __init__(
        self,
        url: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(logger)
        self.url = url
        self.timeout = timeout
        self.transport = transport

    def missing_settings(self) -> List[str]:
        return [] if self.url else ["webhook_url"]

    def send_alert(self, expiring: Sequence[CertificateRecord]) -> bool:
        return self._dispatch(lambda: self._post(build_alert_payload(expiring)))

    def _post(self, payload: dict) -> None:
        assert self.url is not None
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.url, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DispatchError(self.channel, str(e)) from e

        if not response.is_success:
            raise DispatchError(self.channel, f"status {response.status_code}")
