"""
Test helpers for SSL Certificate Notifier.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from ssl_cert_notifier.models import CertificateRecord

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def generate_test_certificate(
    cn: Optional[str] = "test.example.com",
    not_after: Optional[datetime] = None,
    san: Optional[str] = None,
) -> bytes:
    """Generate a self-signed X.509 certificate in DER form."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

    attributes = [x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Test Org")]
    if cn:
        attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, cn))
    subject = issuer = x509.Name(attributes)

    not_after = not_after or FIXED_NOW + timedelta(days=365)
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_after - timedelta(days=400))
        .not_valid_after(not_after)
    )
    if san:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(san)]), critical=False
        )

    cert = builder.sign(private_key, hashes.SHA256())
    return cert.public_bytes(serialization.Encoding.DER)


def make_record(label: str, days_remaining: int, host: Optional[str] = None) -> CertificateRecord:
    """Build a certificate record expiring ``days_remaining`` days after FIXED_NOW."""
    host = host or f"{label.lower()}.example.com"
    return CertificateRecord(
        label=label,
        host_port=f"{host}:443",
        common_name=host,
        expiry=FIXED_NOW + timedelta(days=days_remaining, hours=1),
        days_remaining=days_remaining,
    )

