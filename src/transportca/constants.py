"""Shared constants for transportca."""

from datetime import timedelta

# Secret data keys holding the CA material
CA_CERT_FILE_NAME = "ca.crt"
CA_KEY_FILE_NAME = "ca.key"

# Name suffixes
DEFAULT_CLUSTER_SUFFIX = "ts"
TRANSPORT_CA_TYPE = "transport"
CA_INTERNAL_SUFFIX = "ca-internal"
CUSTOM_TRANSPORT_CERTS_SUFFIX = "custom-transport-certs"
MAX_NAME_LENGTH = 63
TRUNCATED_NAME_HASH_LENGTH = 8

# X.509 upper bound for CN and OU attributes
MAX_SUBJECT_ATTRIBUTE_LENGTH = 64

# Labels stamped on operator-managed secrets
LABEL_CLUSTER_NAME = "transportca.io/cluster-name"
LABEL_CA_TYPE = "transportca.io/ca-type"

# Rotation defaults
DEFAULT_CA_VALIDITY = timedelta(days=365)
DEFAULT_ROTATE_BEFORE = timedelta(hours=24)

# Store operation bound applied when the caller sets no deadline
DEFAULT_OPERATION_TIMEOUT_SECONDS = 30
