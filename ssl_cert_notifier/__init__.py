"""
SSL Certificate Notifier

Periodically inspects the TLS certificates of configured endpoints and
reports their remaining validity by email and chat webhook.
"""

__version__ = "1.0.0"
__author__ = "SSL Certificate Notifier Team"
__description__ = "TLS endpoint certificate expiry monitoring with email and webhook notifications"

from ssl_cert_notifier.checker import CertificateChecker
from ssl_cert_notifier.config import Config
from ssl_cert_notifier.inspector import CertificateInspector

__all__ = [
    "Config",
    "CertificateChecker",
    "CertificateInspector",
]
