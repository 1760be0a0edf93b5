"""
transportca - Transport CA lifecycle for clustered systems

Decides on every reconciliation pass which Certificate Authority secures
node-to-node transport traffic: a user-supplied custom CA, a CA shared
across clusters, or an operator-managed self-signed CA.

Version: 1.0.0
"""

__version__ = "1.0.0"

from .certificates import (
    CertificateAuthority,
    DynamicWatches,
    NamedWatch,
    RotationParams,
    WatchRegistry,
    new_self_signed_ca,
    parse_custom_ca_secret,
    reconcile_custom_cert_watch,
)
from .context import ReconcileContext
from .driver import Driver
from .events import EventRecorder, EventSeverity, InMemoryEventRecorder
from .models import Cluster, ClusterIdentity, Secret, SecretReference
from .storage import MemorySecretStore, RedisSecretStore, SecretStore, StorageConfig
from .transport import (
    AuthoritativeCA,
    CASource,
    CustomCAResolver,
    TransportCAReconciler,
    collect_stale_self_signed,
)

# Exceptions
from .exceptions import (
    TransportCAError,
    TransientError,
    StoreUnavailableError,
    DeadlineExceededError,
    SecretNotFoundError,
    ConfigurationError,
    CustomCASecretNotFoundError,
    CAValidationError,
    WatchError,
    NamingError,
    OwnershipConflictError,
)

__all__ = [
    "__version__",

    # CA building blocks
    "CertificateAuthority",
    "new_self_signed_ca",
    "parse_custom_ca_secret",
    "RotationParams",
    "DynamicWatches",
    "NamedWatch",
    "WatchRegistry",
    "reconcile_custom_cert_watch",

    # Reconciliation
    "ReconcileContext",
    "Driver",
    "AuthoritativeCA",
    "CASource",
    "CustomCAResolver",
    "TransportCAReconciler",
    "collect_stale_self_signed",

    # Models and collaborators
    "Cluster",
    "ClusterIdentity",
    "Secret",
    "SecretReference",
    "EventRecorder",
    "EventSeverity",
    "InMemoryEventRecorder",
    "SecretStore",
    "StorageConfig",
    "MemorySecretStore",
    "RedisSecretStore",

    # Exceptions
    "TransportCAError",
    "TransientError",
    "StoreUnavailableError",
    "DeadlineExceededError",
    "SecretNotFoundError",
    "ConfigurationError",
    "CustomCASecretNotFoundError",
    "CAValidationError",
    "WatchError",
    "NamingError",
    "OwnershipConflictError",
]
