"""
Transport CA selection.

Decides, on every reconciliation pass, which CA secures node-to-node
transport traffic of a cluster:

1. a custom CA referenced by the user (highest precedence),
2. a shared CA supplied by the caller,
3. the operator-managed self-signed CA.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from transportca.certificates.ca import CertificateAuthority
from transportca.certificates.parsing import parse_custom_ca_secret
from transportca.certificates.rotation import RotationParams
from transportca.certificates.self_signed import (
    SelfSignedCAProvisioner,
    ca_internal_secret_name,
)
from transportca.certificates.watches import reconcile_custom_cert_watch
from transportca.constants import CUSTOM_TRANSPORT_CERTS_SUFFIX, TRANSPORT_CA_TYPE
from transportca.context import ReconcileContext
from transportca.driver import Driver
from transportca.events import (
    EVENT_REASON_UNEXPECTED,
    EVENT_REASON_VALIDATION,
    EventSeverity,
)
from transportca.exceptions import (
    CAValidationError,
    CustomCASecretNotFoundError,
    SecretNotFoundError,
    TransportCAError,
)
from transportca.models import Cluster, ClusterIdentity, Secret, SecretReference
from transportca.naming import CLUSTER_NAMER, Namer

logger = logging.getLogger(__name__)


class CASource(str, enum.Enum):
    """Where the authoritative CA of a pass comes from."""

    CUSTOM = "custom"
    SHARED = "shared"
    SELF_SIGNED = "self_signed"


@dataclass(frozen=True)
class AuthoritativeCA:
    """The single CA in effect for a reconciliation pass."""

    source: CASource
    ca: CertificateAuthority


def custom_transport_certs_watch_key(owner: ClusterIdentity, namer: Namer = CLUSTER_NAMER) -> str:
    """Watch key for the custom transport CA secret of ``owner``."""
    return f"{owner.namespace}/{namer.suffix(owner.name, CUSTOM_TRANSPORT_CERTS_SUFFIX)}"


class CustomCAResolver:
    """Looks up and validates the custom CA a cluster references.

    User-caused problems (dangling reference, invalid contents) are recorded
    as Warning events on the cluster before being raised. Store failures
    propagate without an event.
    """

    def __init__(self, driver: Driver) -> None:
        self.driver = driver

    async def get_secret(
        self,
        ctx: ReconcileContext,
        owner: ClusterIdentity,
        reference: Optional[SecretReference],
    ) -> Optional[Secret]:
        if reference is None:
            return None
        try:
            return await ctx.bounded(
                self.driver.store.get(owner.namespace, reference.secret_name),
                f"get secret {owner.namespace}/{reference.secret_name}",
            )
        except SecretNotFoundError as exc:
            err = CustomCASecretNotFoundError(
                f"custom transport CA secret {owner.namespace}/{reference.secret_name} "
                f"referenced by {owner} not found"
            )
            self.driver.recorder.emit(
                owner, EventSeverity.WARNING, EVENT_REASON_UNEXPECTED, str(err),
                timestamp=self.driver.clock(),
            )
            raise err from exc

    def parse(self, owner: ClusterIdentity, secret: Secret) -> CertificateAuthority:
        try:
            return parse_custom_ca_secret(secret, now=self.driver.clock())
        except CAValidationError as exc:
            self.driver.recorder.emit(
                owner, EventSeverity.WARNING, EVENT_REASON_VALIDATION, str(exc),
                timestamp=self.driver.clock(),
            )
            raise

    async def resolve(
        self,
        ctx: ReconcileContext,
        owner: ClusterIdentity,
        reference: Optional[SecretReference],
    ) -> Optional[CertificateAuthority]:
        """Return the referenced custom CA, or None when there is no reference.

        Raises:
            CustomCASecretNotFoundError: The referenced secret does not exist.
            CAValidationError: The secret is not a valid CA.
            TransientError: The store failed or the deadline passed.
        """
        secret = await self.get_secret(ctx, owner, reference)
        if secret is None:
            return None
        return self.parse(owner, secret)


async def collect_stale_self_signed(
    ctx: ReconcileContext,
    driver: Driver,
    owner: ClusterIdentity,
    namer: Namer = CLUSTER_NAMER,
    ca_type: str = TRANSPORT_CA_TYPE,
) -> None:
    """Delete the self-signed CA secret left over once a custom CA is in use.

    Best effort. A missing secret counts as success and a secret owned by
    another cluster is left alone. Other failures are logged and counted but
    never raised.
    """
    name = ca_internal_secret_name(namer, owner.name, ca_type)
    try:
        secret = await ctx.bounded(
            driver.store.get(owner.namespace, name),
            f"get secret {owner.namespace}/{name}",
        )
        if secret.owner is not None and secret.owner != owner:
            logger.warning(
                "Not garbage collecting secret %s/%s owned by %s instead of %s",
                owner.namespace, name, secret.owner, owner,
            )
            return
        await ctx.bounded(
            driver.store.delete(owner.namespace, name),
            f"delete secret {owner.namespace}/{name}",
        )
    except SecretNotFoundError:
        return
    except Exception as exc:
        driver.metrics.record_gc_failure()
        logger.warning(
            "Failed to garbage collect self-signed %s CA secret %s/%s, non-critical, continuing: %s",
            ca_type, owner.namespace, name, exc,
        )
        return
    logger.info("Garbage collected self-signed %s CA secret %s/%s", ca_type, owner.namespace, name)


class TransportCAReconciler:
    """Selects the authoritative transport CA of a cluster.

    Args:
        driver: Collaborators used by each pass.
        namer: Derives secret names and watch keys.
    """

    def __init__(self, driver: Driver, namer: Namer = CLUSTER_NAMER) -> None:
        self.driver = driver
        self.namer = namer
        self.resolver = CustomCAResolver(driver)
        self.provisioner = SelfSignedCAProvisioner(driver, namer, TRANSPORT_CA_TYPE)

    async def reconcile_or_retrieve_ca(
        self,
        ctx: ReconcileContext,
        cluster: Cluster,
        labels: dict[str, str],
        global_ca: Optional[CertificateAuthority],
        rotation: RotationParams,
    ) -> AuthoritativeCA:
        """Run one pass and return the authoritative transport CA.

        Args:
            ctx: Deadline of the pass.
            cluster: Desired state of the cluster.
            labels: Labels to stamp on operator-managed secrets.
            global_ca: Shared CA supplied by the caller, if any.
            rotation: Validity and renewal window of the self-signed CA.

        Raises:
            TransportCAError: The pass must be retried; the previously
                persisted CA is left in place.
        """
        try:
            result = await self._select(ctx, cluster, labels, global_ca, rotation)
        except TransportCAError as exc:
            self.driver.metrics.record_error(exc)
            raise
        self.driver.metrics.record_reconcile(result.source.value)
        return result

    async def _select(
        self,
        ctx: ReconcileContext,
        cluster: Cluster,
        labels: dict[str, str],
        global_ca: Optional[CertificateAuthority],
        rotation: RotationParams,
    ) -> AuthoritativeCA:
        owner = cluster.identity

        # Re-reconcile when the custom secret changes, and drop the watch once
        # the user goes back to operator generated certificates.
        reconcile_custom_cert_watch(
            self.driver.watches,
            custom_transport_certs_watch_key(owner, self.namer),
            owner,
            cluster.transport_ca,
        )

        custom_ca = await self.resolver.resolve(ctx, owner, cluster.transport_ca)
        if custom_ca is None:
            if global_ca is not None:
                return AuthoritativeCA(source=CASource.SHARED, ca=global_ca)
            ca = await self.provisioner.reconcile_ca_for_owner(ctx, owner, labels, rotation)
            return AuthoritativeCA(source=CASource.SELF_SIGNED, ca=ca)

        await collect_stale_self_signed(ctx, self.driver, owner, self.namer, TRANSPORT_CA_TYPE)
        return AuthoritativeCA(source=CASource.CUSTOM, ca=custom_ca)
