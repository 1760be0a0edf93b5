"""
Certificate Authority value type.

A CA is an X.509 certificate plus, for CAs that can sign, the matching
private key. Instances are immutable: rotating a CA means building a new
one, never mutating an existing one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from cryptography.x509.oid import NameOID

PrivateKey = Union[
    ec.EllipticCurvePrivateKey,
    rsa.RSAPrivateKey,
    ed25519.Ed25519PrivateKey,
]


@dataclass(frozen=True, eq=False)
class CertificateAuthority:
    """An immutable CA: certificate and optional private key.

    Attributes:
        certificate: The CA certificate.
        private_key: The CA signing key, or None for trust-only CAs.
    """

    certificate: x509.Certificate
    private_key: Optional[PrivateKey] = None

    @property
    def not_before(self) -> datetime:
        return self.certificate.not_valid_before_utc

    @property
    def not_after(self) -> datetime:
        return self.certificate.not_valid_after_utc

    @property
    def common_name(self) -> str:
        attrs = self.certificate.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
        return str(attrs[0].value) if attrs else ""

    @property
    def has_private_key(self) -> bool:
        return self.private_key is not None

    @property
    def fingerprint(self) -> str:
        """Hex SHA-256 fingerprint of the certificate."""
        return self.certificate.fingerprint(hashes.SHA256()).hex()

    @property
    def cert_pem(self) -> bytes:
        return self.certificate.public_bytes(serialization.Encoding.PEM)

    @property
    def key_pem(self) -> Optional[bytes]:
        if self.private_key is None:
            return None
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )

    def is_valid_at(self, at: datetime) -> bool:
        """Return True if ``at`` falls inside the certificate validity window."""
        return self.not_before <= at <= self.not_after

    def key_matches_certificate(self) -> bool:
        """Return True if the private key belongs to the certificate."""
        if self.private_key is None:
            return False
        fmt = serialization.PublicFormat.SubjectPublicKeyInfo
        enc = serialization.Encoding.DER
        return self.private_key.public_key().public_bytes(enc, fmt) == (
            self.certificate.public_key().public_bytes(enc, fmt)
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CertificateAuthority):
            return NotImplemented
        return (
            self.fingerprint == other.fingerprint
            and self.has_private_key == other.has_private_key
        )

    def __hash__(self) -> int:
        return hash((self.fingerprint, self.has_private_key))

    def __repr__(self) -> str:
        return (
            f"CertificateAuthority(cn={self.common_name!r}, "
            f"not_after={self.not_after.isoformat()}, "
            f"has_private_key={self.has_private_key})"
        )


def new_self_signed_ca(
    common_name: str,
    organizational_unit: Optional[str] = None,
    validity: timedelta = timedelta(days=365),
    private_key: Optional[PrivateKey] = None,
    now: Optional[datetime] = None,
) -> CertificateAuthority:
    """Generate a self-signed CA.

    Uses an ECDSA P-256 key unless ``private_key`` is supplied.

    Args:
        common_name: Subject CN of the CA certificate.
        organizational_unit: Optional subject OU.
        validity: How long the certificate is valid from ``now``.
        private_key: Existing key to self-sign with.
        now: Start of the validity window (defaults to the current UTC time).

    Returns:
        A new CertificateAuthority holding the certificate and key.
    """
    if private_key is None:
        private_key = ec.generate_private_key(ec.SECP256R1())
    now = now or datetime.now(timezone.utc)

    attributes = [x509.NameAttribute(NameOID.COMMON_NAME, common_name)]
    if organizational_unit:
        attributes.append(
            x509.NameAttribute(NameOID.ORGANIZATIONAL_UNIT_NAME, organizational_unit)
        )
    subject = issuer = x509.Name(attributes)

    public_key = private_key.public_key()
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + validity)
        .add_extension(
            x509.BasicConstraints(ca=True, path_length=None),
            critical=True,
        )
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                key_cert_sign=True,
                crl_sign=True,
                key_encipherment=False,
                content_commitment=False,
                data_encipherment=False,
                key_agreement=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(
            x509.SubjectKeyIdentifier.from_public_key(public_key),
            critical=False,
        )
    )

    # Ed25519 doesn't use a hash algorithm
    algorithm = None if isinstance(private_key, ed25519.Ed25519PrivateKey) else hashes.SHA256()
    certificate = builder.sign(private_key, algorithm)

    return CertificateAuthority(certificate=certificate, private_key=private_key)
