"""
Self-signed TLS certificate lifecycle.

The relay presents a prime256v1 certificate whose CN is the masquerade
domain.  An existing pair is reused as long as it parses, the key matches
the certificate, and the certificate has not expired; otherwise a fresh
pair valid for 365 days replaces both files.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from .core.fs import atomic_write
from .errors import CertificateError

logger = logging.getLogger("tuicnode.certs")

VALIDITY = timedelta(days=365)


@dataclass(frozen=True)
class Certificate:
    cert_pem:    bytes
    key_pem:     bytes
    common_name: str
    not_after:   datetime
    generated:   bool = False


def _common_name(cert: x509.Certificate) -> str:
    attrs = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    return str(attrs[0].value) if attrs else ""


def _public_der(key) -> bytes:
    return key.public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def load_certificate(cert_path: str, key_path: str) -> Certificate | None:
    """Return the stored pair, or ``None`` if either file is missing or unusable."""
    try:
        with open(cert_path, "rb") as f:
            cert_pem = f.read()
        with open(key_path, "rb") as f:
            key_pem = f.read()
        cert = x509.load_pem_x509_certificate(cert_pem)
        key = serialization.load_pem_private_key(key_pem, password=None)
    except (OSError, ValueError, TypeError, UnsupportedAlgorithm) as e:
        logger.debug("Stored certificate unusable: %s", e)
        return None
    if _public_der(key.public_key()) != _public_der(cert.public_key()):
        logger.debug("Stored private key does not match certificate")
        return None
    return Certificate(
        cert_pem=cert_pem,
        key_pem=key_pem,
        common_name=_common_name(cert),
        not_after=cert.not_valid_after_utc,
    )


def generate_certificate(common_name: str, now: datetime | None = None) -> Certificate:
    """Create a self-signed SECP256R1 key pair valid from *now* for 365 days."""
    now = now or datetime.now(tz=timezone.utc)
    private_key = ec.generate_private_key(ec.SECP256R1())
    subject = issuer = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + VALIDITY)
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()), critical=False)
    ).sign(private_key=private_key, algorithm=hashes.SHA256())
    key_pem = private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    return Certificate(
        cert_pem=cert.public_bytes(serialization.Encoding.PEM),
        key_pem=key_pem,
        common_name=common_name,
        not_after=cert.not_valid_after_utc,
        generated=True,
    )


def ensure_certificate(
    cert_path:   str,
    key_path:    str,
    common_name: str,
    now:         datetime | None = None,
) -> Certificate:
    """
    Make sure a valid cert/key pair exists at the given paths.

    Reuses the stored pair without touching the filesystem when it is still
    valid at *now*, even if its CN differs from *common_name*.

    :raises CertificateError: If generation or writing fails.
    """
    now = now or datetime.now(tz=timezone.utc)
    existing = load_certificate(cert_path, key_path)
    if existing is not None and existing.not_after > now:
        logger.info("Certificate valid until %s, reusing", existing.not_after.isoformat())
        return existing

    if existing is None:
        logger.info("No usable certificate, generating one for CN=%s", common_name)
    else:
        logger.info("Certificate expired at %s, regenerating", existing.not_after.isoformat())

    try:
        cert = generate_certificate(common_name, now)
        atomic_write(key_path, cert.key_pem, mode=0o600)
        atomic_write(cert_path, cert.cert_pem, mode=0o644)
    except Exception as e:
        raise CertificateError(f"Certificate generation failed: {e}") from e
    return cert
