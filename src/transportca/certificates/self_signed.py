"""
Self-Signed CA Provisioner

Reconciles the operator-managed self-signed CA of a cluster: the CA stored
in the cluster's internal CA secret is reused while it is within its
rotation window, and replaced by a freshly generated CA otherwise.
"""

from __future__ import annotations

import logging

from transportca.certificates.ca import CertificateAuthority, new_self_signed_ca
from transportca.certificates.parsing import build_ca_from_secret, internal_secret_data
from transportca.certificates.rotation import RotationParams, can_reuse_ca
from transportca.constants import (
    CA_INTERNAL_SUFFIX,
    LABEL_CA_TYPE,
    LABEL_CLUSTER_NAME,
    MAX_SUBJECT_ATTRIBUTE_LENGTH,
    TRANSPORT_CA_TYPE,
)
from transportca.context import ReconcileContext
from transportca.driver import Driver
from transportca.events import EVENT_REASON_UNEXPECTED, EventSeverity
from transportca.exceptions import OwnershipConflictError, SecretNotFoundError
from transportca.models import ClusterIdentity, Secret
from transportca.naming import CLUSTER_NAMER, Namer

logger = logging.getLogger(__name__)

_SUBJECT_NAMER = Namer(default_suffixes=(), max_length=MAX_SUBJECT_ATTRIBUTE_LENGTH)


def ca_internal_secret_name(namer: Namer, owner_name: str, ca_type: str) -> str:
    """Name of the secret holding an operator-managed CA."""
    return namer.suffix(owner_name, ca_type, CA_INTERNAL_SUFFIX)


def expected_ca_common_name(owner_name: str, ca_type: str) -> str:
    """Subject CN of an operator-managed CA, ``<owner>-<ca type>``.

    Long owner names are shortened the same way as resource names so the CN
    stays within the X.509 attribute limit.
    """
    return _SUBJECT_NAMER.suffix(owner_name, ca_type)


def ca_organizational_unit(owner_name: str) -> str:
    return _SUBJECT_NAMER.suffix(owner_name)


class SelfSignedCAProvisioner:
    """Obtains or creates the self-signed CA owned by a cluster.

    Args:
        driver: Store and clock used by the pass.
        namer: Derives the internal CA secret name.
        ca_type: Purpose of the CA, part of its secret name and subject.
    """

    def __init__(
        self,
        driver: Driver,
        namer: Namer = CLUSTER_NAMER,
        ca_type: str = TRANSPORT_CA_TYPE,
    ) -> None:
        self.driver = driver
        self.namer = namer
        self.ca_type = ca_type

    def secret_name(self, owner: ClusterIdentity) -> str:
        return ca_internal_secret_name(self.namer, owner.name, self.ca_type)

    def _expected_labels(self, owner: ClusterIdentity, labels: dict[str, str]) -> dict[str, str]:
        return {**labels, LABEL_CLUSTER_NAME: owner.name, LABEL_CA_TYPE: self.ca_type}

    async def reconcile_ca_for_owner(
        self,
        ctx: ReconcileContext,
        owner: ClusterIdentity,
        labels: dict[str, str],
        rotation: RotationParams,
    ) -> CertificateAuthority:
        """Return the cluster's self-signed CA, generating it when needed.

        Raises:
            TransientError: If the store fails or the deadline passes.
            OwnershipConflictError: If the secret belongs to another cluster.
        """
        name = self.secret_name(owner)
        expected_labels = self._expected_labels(owner, labels)

        try:
            secret = await ctx.bounded(
                self.driver.store.get(owner.namespace, name),
                f"get secret {owner.namespace}/{name}",
            )
        except SecretNotFoundError:
            logger.info(
                "No internal %s CA found for %s, creating a new one", self.ca_type, owner
            )
            return await self._renew_ca(ctx, owner, name, expected_labels, rotation)

        if secret.owner is not None and secret.owner != owner:
            message = (
                f"secret {owner.namespace}/{name} holding the {self.ca_type} CA "
                f"is owned by {secret.owner}, not {owner}"
            )
            self.driver.recorder.emit(
                owner, EventSeverity.WARNING, EVENT_REASON_UNEXPECTED, message,
                timestamp=self.driver.clock(),
            )
            raise OwnershipConflictError(message)

        ca = build_ca_from_secret(secret)
        now = self.driver.clock()
        expected_cn = expected_ca_common_name(owner.name, self.ca_type)
        if ca is None or not can_reuse_ca(ca, expected_cn, rotation, now):
            logger.info(
                "Cannot reuse existing %s CA for %s, creating a new one", self.ca_type, owner
            )
            return await self._renew_ca(ctx, owner, name, expected_labels, rotation)

        await self._update_metadata_if_needed(ctx, secret, owner, expected_labels)
        logger.debug("Reusing %s CA for %s valid until %s", self.ca_type, owner, ca.not_after)
        return ca

    async def _update_metadata_if_needed(
        self,
        ctx: ReconcileContext,
        secret: Secret,
        owner: ClusterIdentity,
        expected_labels: dict[str, str],
    ) -> None:
        labels_ok = all(secret.labels.get(k) == v for k, v in expected_labels.items())
        if labels_ok and secret.owner == owner:
            return
        updated = secret.model_copy(
            update={"labels": {**secret.labels, **expected_labels}, "owner": owner}
        )
        await ctx.bounded(
            self.driver.store.put(updated),
            f"update secret {secret.namespace}/{secret.name}",
        )
        logger.info("Updated metadata of secret %s/%s", secret.namespace, secret.name)

    async def _renew_ca(
        self,
        ctx: ReconcileContext,
        owner: ClusterIdentity,
        name: str,
        labels: dict[str, str],
        rotation: RotationParams,
    ) -> CertificateAuthority:
        ca = new_self_signed_ca(
            common_name=expected_ca_common_name(owner.name, self.ca_type),
            organizational_unit=ca_organizational_unit(owner.name),
            validity=rotation.validity,
            now=self.driver.clock(),
        )
        secret = Secret(
            namespace=owner.namespace,
            name=name,
            labels=labels,
            data=internal_secret_data(ca),
            owner=owner,
        )
        await ctx.bounded(
            self.driver.store.put(secret),
            f"write secret {owner.namespace}/{name}",
        )
        self.driver.metrics.record_ca_generated()
        logger.info(
            "Generated new %s CA for %s valid until %s",
            self.ca_type, owner, ca.not_after.isoformat(),
        )
        return ca
