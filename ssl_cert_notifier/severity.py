"""
Severity classification for certificate expiry.
"""

from enum import Enum
from typing import Dict, Iterable, Protocol

# Certificates at or below this many days are reported on the alert channel
EXPIRING_THRESHOLD_DAYS = 14

CRITICAL_MAX_DAYS = 7
WARNING_MAX_DAYS = EXPIRING_THRESHOLD_DAYS
CAUTION_MAX_DAYS = 30


class SeverityBand(Enum):
    """Remaining-validity bands, most urgent first."""

    CRITICAL = "critical"
    WARNING = "warning"
    CAUTION = "caution"
    OK = "ok"

    @property
    def title(self) -> str:
        return _TITLES[self]

    @property
    def color(self) -> str:
        return _COLORS[self]

    @property
    def emoji(self) -> str:
        return _EMOJI[self]


_TITLES = {
    SeverityBand.CRITICAL: f"Critical (≤{CRITICAL_MAX_DAYS} days)",
    SeverityBand.WARNING: f"Warning ({CRITICAL_MAX_DAYS + 1}-{WARNING_MAX_DAYS} days)",
    SeverityBand.CAUTION: f"Caution ({WARNING_MAX_DAYS + 1}-{CAUTION_MAX_DAYS} days)",
    SeverityBand.OK: f"OK (>{CAUTION_MAX_DAYS} days)",
}

_COLORS = {
    SeverityBand.CRITICAL: "#dc3545",
    SeverityBand.WARNING: "#ffc107",
    SeverityBand.CAUTION: "#ff9800",
    SeverityBand.OK: "#28a745",
}

_EMOJI = {
    SeverityBand.CRITICAL: ":red_circle:",
    SeverityBand.WARNING: ":warning:",
    SeverityBand.CAUTION: ":large_orange_diamond:",
    SeverityBand.OK: ":white_check_mark:",
}


class _HasDaysRemaining(Protocol):
    days_remaining: int


def classify(days_remaining: int) -> SeverityBand:
    """
    Map a day countdown to its severity band.

    Expired certificates (negative countdown) are CRITICAL.

    Args:
        days_remaining: Whole days until expiry

    Returns:
        Severity band
    """
    if days_remaining <= CRITICAL_MAX_DAYS:
        return SeverityBand.CRITICAL
    if days_remaining <= WARNING_MAX_DAYS:
        return SeverityBand.WARNING
    if days_remaining <= CAUTION_MAX_DAYS:
        return SeverityBand.CAUTION
    return SeverityBand.OK


def is_expiring(days_remaining: int) -> bool:
    """Check whether a countdown qualifies for the alert channel."""
    return days_remaining <= EXPIRING_THRESHOLD_DAYS


def count_by_band(records: Iterable[_HasDaysRemaining]) -> Dict[SeverityBand, int]:
    """Count records per band; every band is present in the result."""
    counts = {band: 0 for band in SeverityBand}
    for record in records:
        counts[classify(record.days_remaining)] += 1
    return counts
