"""
Data models for SSL Certificate Notifier.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from ssl_cert_notifier.severity import SeverityBand, classify, is_expiring


@dataclass(frozen=True)
class CertificateRecord:
    """Certificate details for one successfully inspected endpoint."""

    label: str
    host_port: str
    common_name: str
    expiry: datetime
    days_remaining: int

    @property
    def severity(self) -> SeverityBand:
        return classify(self.days_remaining)

    @property
    def is_expiring(self) -> bool:
        return is_expiring(self.days_remaining)


@dataclass
class CheckResult:
    """Outcome of one check cycle."""

    all: List[CertificateRecord] = field(default_factory=list)
    expiring: List[CertificateRecord] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    started_at: float = 0.0
    duration: float = 0.0

    def add(self, record: CertificateRecord) -> None:
        """Accumulate a record, keeping ``expiring`` a filtered view of ``all``."""
        self.all.append(record)
        if record.is_expiring:
            self.expiring.append(record)
