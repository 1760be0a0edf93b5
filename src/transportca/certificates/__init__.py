"""
Certificate building blocks.

CA value type, rotation parameters, secret parsing, the self-signed CA
provisioner, and the dynamic watch registry.
"""

from .ca import CertificateAuthority, new_self_signed_ca
from .rotation import RotationParams, can_reuse_ca
from .parsing import (
    build_ca_from_secret,
    internal_secret_data,
    parse_custom_ca_secret,
    parse_pem_certs,
    parse_pem_private_key,
)
from .watches import (
    DynamicWatches,
    NamedWatch,
    WatchRegistry,
    reconcile_custom_cert_watch,
)

__all__ = [
    "CertificateAuthority",
    "new_self_signed_ca",
    "RotationParams",
    "can_reuse_ca",
    "build_ca_from_secret",
    "internal_secret_data",
    "parse_custom_ca_secret",
    "parse_pem_certs",
    "parse_pem_private_key",
    "DynamicWatches",
    "NamedWatch",
    "WatchRegistry",
    "reconcile_custom_cert_watch",
]
