"""
TLS certificate inspection for SSL Certificate Notifier.
"""

import re
import socket
import ssl
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Tuple

from cryptography import x509

from ssl_cert_notifier.exceptions import InspectionError, NoCertificateError
from ssl_cert_notifier.logger import get_logger
from ssl_cert_notifier.models import CertificateRecord

DEFAULT_PORT = 443

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_address(address: str) -> str:
    """
    Normalize an endpoint address to ``host:port``.

    Strips a leading ``https://`` or ``http://`` and any URL path, query or
    fragment, and
    appends the default TLS port when none is given.

    Args:
        address: Endpoint address as configured

    Returns:
        Normalized ``host:port`` string
    """
    address = address.strip()
    for scheme in ("https://", "http://"):
        if address.lower().startswith(scheme):
            address = address[len(scheme) :]
            break

    address = re.split(r"[/?#]", address, maxsplit=1)[0]

    if address.startswith("["):
        # Bracketed IPv6 literal
        if address.endswith("]"):
            return f"{address}:{DEFAULT_PORT}"
        return address

    if ":" not in address:
        return f"{address}:{DEFAULT_PORT}"
    return address


def split_host_port(host_port: str) -> Tuple[str, int]:
    """Split ``host:port`` (or ``[v6]:port``) into host and integer port."""
    host, sep, port = host_port.rpartition(":")
    if not sep or not host:
        raise ValueError(f"Missing port in address: {host_port}")
    host = host.strip("[]")
    port_number = int(port)
    if not 1 <= port_number <= 65535:
        raise ValueError(f"Port out of range: {port_number}")
    return host, port_number


def days_until(expiry: datetime, now: datetime) -> int:
    """Whole days from ``now`` until ``expiry``, rounded down."""
    return (expiry - now) // timedelta(hours=24)


class CertificateInspector:
    """
    Retrieves the leaf certificate presented by a TLS endpoint.

    Holds no per-inspection state, so one instance can serve concurrent
    inspections from a worker pool.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        clock: Optional[Clock] = None,
        ssl_context: Optional[ssl.SSLContext] = None,
    ):
        self.timeout = timeout
        self.clock = clock or utc_now
        self.ssl_context = ssl_context or ssl.create_default_context()
        self.logger = get_logger("inspector")

    def inspect(self, label: str, address: str) -> CertificateRecord:
        """
        Inspect the certificate of a single endpoint.

        Args:
            label: Endpoint label from configuration
            address: Endpoint address (URL or host with optional port)

        Returns:
            Certificate record for the endpoint

        Raises:
            NoCertificateError: The peer presented no certificate
            InspectionError: Connection, handshake, verification or parsing failed
        """
        host_port = normalize_address(address)
        try:
            host, port = split_host_port(host_port)
        except ValueError as e:
            raise InspectionError(label, host_port, e) from e

        der_cert = self._fetch_leaf_certificate(label, host_port, host, port)
        if not der_cert:
            raise NoCertificateError(label, host_port)

        try:
            cert = x509.load_der_x509_certificate(der_cert)
            expiry = cert.not_valid_after_utc
        except ValueError as e:
            raise InspectionError(label, host_port, e) from e

        record = CertificateRecord(
            label=label,
            host_port=host_port,
            common_name=self._get_common_name(cert),
            expiry=expiry,
            days_remaining=days_until(expiry, self.clock()),
        )
        self.logger.debug(f"Certificate parsed for {label}: CN={record.common_name}")
        return record

    def _fetch_leaf_certificate(
        self, label: str, host_port: str, host: str, port: int
    ) -> Optional[bytes]:
        """Perform the handshake and return the peer certificate in DER form."""
        try:
            with socket.create_connection((host, port), timeout=self.timeout) as sock:
                with self.ssl_context.wrap_socket(sock, server_hostname=host) as tls_sock:
                    return tls_sock.getpeercert(binary_form=True)
        except (OSError, ValueError) as e:
            # ssl.SSLError and socket.timeout are OSError subclasses
            raise InspectionError(label, host_port, e) from e

    def _get_common_name(self, cert: x509.Certificate) -> str:
        """Extract common name, falling back to the first DNS SAN."""
        try:
            cn_attrs = cert.subject.get_attributes_for_oid(x509.NameOID.COMMON_NAME)
            if cn_attrs:
                value = cn_attrs[0].value
                return value if isinstance(value, str) else value.decode("utf-8")
        except ValueError as e:
            self.logger.debug(f"Could not extract common name from certificate: {e}")

        try:
            san_ext = cert.extensions.get_extension_for_oid(
                x509.ExtensionOID.SUBJECT_ALTERNATIVE_NAME
            )
            dns_names = san_ext.value.get_values_for_type(x509.DNSName)
            if dns_names:
                return dns_names[0]
        except (x509.ExtensionNotFound, ValueError):
            pass
        return "unknown"
