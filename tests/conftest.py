"""Shared fixtures for transportca tests."""

from datetime import datetime, timedelta, timezone

import pytest

from transportca.certificates.ca import CertificateAuthority, new_self_signed_ca
from transportca.certificates.parsing import internal_secret_data
from transportca.context import ReconcileContext
from transportca.driver import Driver
from transportca.models import Cluster, Secret, SecretReference
from transportca.storage import MemorySecretStore


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def make_ca(
    name: str = "custom-root",
    validity: timedelta = timedelta(days=365),
    now: datetime | None = None,
) -> CertificateAuthority:
    return new_self_signed_ca(common_name=name, validity=validity, now=now)


def make_ca_secret(
    ca: CertificateAuthority,
    name: str = "custom-ca",
    namespace: str = "default",
    with_key: bool = True,
) -> Secret:
    data = internal_secret_data(ca)
    if not with_key:
        data.pop("ca.key")
    return Secret(namespace=namespace, name=name, data=data)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
async def store():
    """Connected in-memory secret store."""
    s = MemorySecretStore()
    await s.connect()
    yield s
    await s.disconnect()


@pytest.fixture
def driver(store) -> Driver:
    return Driver(store=store)


@pytest.fixture
def ctx() -> ReconcileContext:
    return ReconcileContext.with_timeout(10)


@pytest.fixture
def cluster() -> Cluster:
    return Cluster(namespace="default", name="prod")


@pytest.fixture
def custom_cluster() -> Cluster:
    return Cluster(
        namespace="default",
        name="prod",
        transport_ca=SecretReference(secret_name="custom-ca"),
    )
