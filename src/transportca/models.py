"""
Cluster and secret models.

Value objects passed between the reconciler and its collaborators:
cluster identities, custom CA references, the desired-state view of a
cluster, and the secrets persisted in the store.
"""

from __future__ import annotations

import base64
import json
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from transportca.exceptions import StoreUnavailableError


class ClusterIdentity(BaseModel):
    """Stable (namespace, name) pair identifying a cluster or a secret."""

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class SecretReference(BaseModel):
    """Reference to a user-managed secret in the cluster's namespace."""

    model_config = ConfigDict(frozen=True)

    secret_name: str = Field(..., min_length=1, description="Name of the referenced secret")


class Cluster(BaseModel):
    """Desired state of a cluster, as far as transport CA selection is concerned.

    Attributes:
        namespace: Namespace the cluster lives in.
        name: Cluster name.
        transport_ca: Optional reference to a secret holding a custom CA.
    """

    namespace: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    transport_ca: Optional[SecretReference] = Field(
        default=None, description="Custom transport CA secret"
    )

    @property
    def identity(self) -> ClusterIdentity:
        return ClusterIdentity(namespace=self.namespace, name=self.name)


class Secret(BaseModel):
    """A named bag of bytes in the secret store."""

    namespace: str
    name: str
    labels: dict[str, str] = Field(default_factory=dict)
    data: dict[str, bytes] = Field(default_factory=dict)
    owner: Optional[ClusterIdentity] = None

    @property
    def identity(self) -> ClusterIdentity:
        return ClusterIdentity(namespace=self.namespace, name=self.name)

    def to_payload(self) -> str:
        """Serialize to JSON, base64-encoding the data values."""
        return json.dumps(
            {
                "namespace": self.namespace,
                "name": self.name,
                "labels": self.labels,
                "data": {k: base64.b64encode(v).decode() for k, v in self.data.items()},
                "owner": self.owner.model_dump() if self.owner else None,
            },
            sort_keys=True,
        )

    @classmethod
    def from_payload(cls, payload: str) -> "Secret":
        """Inverse of ``to_payload``.

        Raises:
            StoreUnavailableError: If the stored document is corrupt.
        """
        try:
            raw = json.loads(payload)
            raw["data"] = {
                k: base64.b64decode(v, validate=True) for k, v in (raw.get("data") or {}).items()
            }
            return cls.model_validate(raw)
        except (ValueError, TypeError, AttributeError) as exc:
            raise StoreUnavailableError(f"corrupt secret payload: {exc}") from exc
