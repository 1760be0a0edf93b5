"""
PEM parsing and CA secret validation.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from transportca.certificates.ca import CertificateAuthority, PrivateKey
from transportca.constants import CA_CERT_FILE_NAME, CA_KEY_FILE_NAME
from transportca.exceptions import CAValidationError
from transportca.models import Secret

logger = logging.getLogger(__name__)


def parse_pem_certs(data: bytes) -> list[x509.Certificate]:
    """Parse every PEM certificate in ``data``.

    Raises:
        ValueError: If the data holds no parseable certificate.
    """
    return x509.load_pem_x509_certificates(data)


def parse_pem_private_key(data: bytes) -> PrivateKey:
    """Parse an unencrypted PEM private key.

    Raises:
        ValueError: If the key cannot be parsed or uses an unsupported algorithm.
    """
    key = serialization.load_pem_private_key(data, password=None)
    if not isinstance(
        key, (ec.EllipticCurvePrivateKey, rsa.RSAPrivateKey, ed25519.Ed25519PrivateKey)
    ):
        raise ValueError(f"unsupported private key type {type(key).__name__}")
    return key


def _is_ca_certificate(cert: x509.Certificate) -> bool:
    try:
        constraints = cert.extensions.get_extension_for_class(x509.BasicConstraints)
    except x509.ExtensionNotFound:
        return False
    return constraints.value.ca


def parse_custom_ca_secret(
    secret: Secret,
    now: Optional[datetime] = None,
) -> CertificateAuthority:
    """Parse and validate a user-provided CA secret.

    ``ca.crt`` must contain exactly one CA certificate that is valid at
    ``now``. ``ca.key`` is optional; without it the result is a trust-only CA.

    Raises:
        CAValidationError: With a message naming the secret and the problem.
    """
    ref = f"{secret.namespace}/{secret.name}"
    now = now or datetime.now(timezone.utc)

    cert_bytes = secret.data.get(CA_CERT_FILE_NAME)
    if not cert_bytes:
        raise CAValidationError(f"can't find {CA_CERT_FILE_NAME} in secret {ref}")

    try:
        certs = parse_pem_certs(cert_bytes)
    except ValueError as exc:
        raise CAValidationError(
            f"can't parse {CA_CERT_FILE_NAME} in secret {ref}: {exc}"
        ) from exc
    if len(certs) != 1:
        raise CAValidationError(
            f"only one certificate is expected in {CA_CERT_FILE_NAME} of secret {ref}, "
            f"got {len(certs)}"
        )
    cert = certs[0]

    if not _is_ca_certificate(cert):
        raise CAValidationError(f"certificate in secret {ref} is not a CA certificate")

    private_key = None
    key_bytes = secret.data.get(CA_KEY_FILE_NAME)
    if key_bytes:
        try:
            private_key = parse_pem_private_key(key_bytes)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise CAValidationError(
                f"can't parse {CA_KEY_FILE_NAME} in secret {ref}: {exc}"
            ) from exc

    ca = CertificateAuthority(certificate=cert, private_key=private_key)

    if not ca.is_valid_at(now):
        raise CAValidationError(
            f"CA certificate in secret {ref} is not valid at {now.isoformat()} "
            f"(valid from {ca.not_before.isoformat()} to {ca.not_after.isoformat()})"
        )
    if private_key is not None and not ca.key_matches_certificate():
        raise CAValidationError(
            f"private key in secret {ref} does not match the CA certificate"
        )
    return ca


def build_ca_from_secret(secret: Secret) -> Optional[CertificateAuthority]:
    """Rebuild an operator-managed CA from its internal secret.

    Returns None when the secret content is missing or unreadable; the caller
    then generates a fresh CA.
    """
    cert_bytes = secret.data.get(CA_CERT_FILE_NAME)
    key_bytes = secret.data.get(CA_KEY_FILE_NAME)
    if not cert_bytes or not key_bytes:
        return None
    try:
        certs = parse_pem_certs(cert_bytes)
        private_key = parse_pem_private_key(key_bytes)
    except (ValueError, TypeError, UnsupportedAlgorithm):
        logger.info(
            "Cannot parse CA from secret %s/%s, a new CA will be generated",
            secret.namespace, secret.name,
        )
        return None
    if len(certs) != 1:
        return None
    return CertificateAuthority(certificate=certs[0], private_key=private_key)


def internal_secret_data(ca: CertificateAuthority) -> dict[str, bytes]:
    """Secret data layout for an operator-managed CA."""
    data = {CA_CERT_FILE_NAME: ca.cert_pem}
    if ca.key_pem is not None:
        data[CA_KEY_FILE_NAME] = ca.key_pem
    return data
