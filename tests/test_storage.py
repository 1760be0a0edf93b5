"""
Tests for the secret stores.

Redis tests use fakeredis for in-memory Redis emulation; no live Redis
server is required.
"""

import json

import fakeredis
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from transportca.exceptions import SecretNotFoundError, StoreUnavailableError
from transportca.models import ClusterIdentity, Secret
from transportca.storage import (
    MemorySecretStore,
    RedisSecretStore,
    StorageConfig,
    create_secret_store,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _secret(name: str = "prod-ts-transport-ca-internal", namespace: str = "default") -> Secret:
    return Secret(
        namespace=namespace,
        name=name,
        labels={"transportca.io/cluster-name": "prod"},
        data={"ca.crt": b"-----BEGIN CERTIFICATE-----\n", "ca.key": b"\x00\xffkey"},
        owner=ClusterIdentity(namespace=namespace, name="prod"),
    )


async def _redis_store(prefix: str = "transportca:secret") -> RedisSecretStore:
    store = RedisSecretStore(
        StorageConfig(backend="redis", key_prefix=prefix),
        client=fakeredis.aioredis.FakeRedis(decode_responses=True),
    )
    await store.connect()
    return store


class _DownClient:
    """Client whose every call fails like an unreachable Redis."""

    async def ping(self):
        raise RedisConnectionError("connection refused")

    async def get(self, key):
        raise RedisConnectionError("connection refused")

    async def set(self, key, value):
        raise RedisConnectionError("connection refused")

    async def delete(self, key):
        raise RedisConnectionError("connection refused")


# ---------------------------------------------------------------------------
# Secret payloads
# ---------------------------------------------------------------------------

class TestSecretPayload:

    def test_binary_data_survives(self) -> None:
        secret = _secret()

        assert Secret.from_payload(secret.to_payload()) == secret

    @pytest.mark.parametrize("payload", ["", "{", "null", "[1]"])
    def test_corrupt_payload_is_store_error(self, payload) -> None:
        with pytest.raises(StoreUnavailableError):
            Secret.from_payload(payload)

    def test_payload_is_base64_json(self) -> None:
        raw = json.loads(_secret().to_payload())

        assert raw["data"]["ca.key"] == "AP9rZXk="


# ---------------------------------------------------------------------------
# MemorySecretStore
# ---------------------------------------------------------------------------

class TestMemorySecretStore:

    @pytest.mark.asyncio
    async def test_put_and_get(self) -> None:
        store = MemorySecretStore()
        await store.connect()

        await store.put(_secret())

        assert await store.get("default", "prod-ts-transport-ca-internal") == _secret()
        assert await store.health_check() is True

    @pytest.mark.asyncio
    async def test_get_missing(self) -> None:
        store = MemorySecretStore()

        with pytest.raises(SecretNotFoundError):
            await store.get("default", "missing")

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        store = MemorySecretStore()
        await store.put(_secret())

        await store.delete("default", "prod-ts-transport-ca-internal")

        with pytest.raises(SecretNotFoundError):
            await store.delete("default", "prod-ts-transport-ca-internal")

    @pytest.mark.asyncio
    async def test_returns_copies(self) -> None:
        store = MemorySecretStore()
        await store.put(_secret())

        fetched = await store.get("default", "prod-ts-transport-ca-internal")
        fetched.labels["mutated"] = "yes"

        stored = await store.get("default", "prod-ts-transport-ca-internal")
        assert "mutated" not in stored.labels

    @pytest.mark.asyncio
    async def test_list_by_namespace(self) -> None:
        store = MemorySecretStore()
        await store.put(_secret("b"))
        await store.put(_secret("a"))
        await store.put(_secret("c", namespace="other"))

        names = [s.name for s in await store.list_secrets("default")]

        assert names == ["a", "b"]

    @pytest.mark.asyncio
    async def test_file_backed_store_persists(self, tmp_path) -> None:
        path = str(tmp_path / "secrets.json")
        first = MemorySecretStore(StorageConfig(path=path))
        await first.connect()
        await first.put(_secret())

        second = MemorySecretStore(StorageConfig(path=path))
        await second.connect()

        assert await second.get("default", "prod-ts-transport-ca-internal") == _secret()

    @pytest.mark.asyncio
    async def test_corrupt_backing_file(self, tmp_path) -> None:
        path = tmp_path / "secrets.json"
        path.write_text("{not json")
        store = MemorySecretStore(StorageConfig(path=str(path)))

        with pytest.raises(StoreUnavailableError):
            await store.connect()

    @pytest.mark.asyncio
    async def test_corrupt_entry_in_backing_file(self, tmp_path) -> None:
        path = tmp_path / "secrets.json"
        path.write_text(json.dumps(["{", _secret().to_payload()]))
        store = MemorySecretStore(StorageConfig(path=str(path)))

        with pytest.raises(StoreUnavailableError, match="corrupt secret payload"):
            await store.connect()

    @pytest.mark.asyncio
    async def test_backing_file_must_hold_a_list(self, tmp_path) -> None:
        path = tmp_path / "secrets.json"
        path.write_text("42")
        store = MemorySecretStore(StorageConfig(path=str(path)))

        with pytest.raises(StoreUnavailableError):
            await store.connect()

    @pytest.mark.asyncio
    async def test_failed_put_leaves_store_unchanged(self, tmp_path) -> None:
        store = MemorySecretStore(StorageConfig(path=str(tmp_path / "missing" / "secrets.json")))
        await store.connect()

        with pytest.raises(StoreUnavailableError):
            await store.put(_secret())

        with pytest.raises(SecretNotFoundError):
            await store.get("default", "prod-ts-transport-ca-internal")

    @pytest.mark.asyncio
    async def test_failed_delete_leaves_store_unchanged(self, tmp_path) -> None:
        path = tmp_path / "secrets.json"
        store = MemorySecretStore(StorageConfig(path=str(path)))
        await store.connect()
        await store.put(_secret())
        store.config.path = str(tmp_path / "missing" / "secrets.json")

        with pytest.raises(StoreUnavailableError):
            await store.delete("default", "prod-ts-transport-ca-internal")

        assert await store.get("default", "prod-ts-transport-ca-internal") == _secret()
        reloaded = MemorySecretStore(StorageConfig(path=str(path)))
        await reloaded.connect()
        assert await reloaded.get("default", "prod-ts-transport-ca-internal") == _secret()

    @pytest.mark.asyncio
    async def test_disconnect(self) -> None:
        store = MemorySecretStore()
        await store.connect()

        await store.disconnect()

        assert await store.health_check() is False


# ---------------------------------------------------------------------------
# RedisSecretStore
# ---------------------------------------------------------------------------

class TestRedisSecretStore:

    @pytest.mark.asyncio
    async def test_put_and_get(self) -> None:
        store = await _redis_store()

        await store.put(_secret())

        assert await store.get("default", "prod-ts-transport-ca-internal") == _secret()
        assert await store.health_check() is True

    @pytest.mark.asyncio
    async def test_key_layout(self) -> None:
        store = await _redis_store(prefix="tca")

        await store.put(_secret())

        raw = await store._client.get("tca:default:prod-ts-transport-ca-internal")
        assert Secret.from_payload(raw) == _secret()

    @pytest.mark.asyncio
    async def test_get_missing(self) -> None:
        store = await _redis_store()

        with pytest.raises(SecretNotFoundError):
            await store.get("default", "missing")

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        store = await _redis_store()
        await store.put(_secret())

        await store.delete("default", "prod-ts-transport-ca-internal")

        with pytest.raises(SecretNotFoundError):
            await store.delete("default", "prod-ts-transport-ca-internal")

    @pytest.mark.asyncio
    async def test_list_by_namespace(self) -> None:
        store = await _redis_store()
        await store.put(_secret("b"))
        await store.put(_secret("a"))
        await store.put(_secret("c", namespace="other"))

        names = [s.name for s in await store.list_secrets("default")]

        assert names == ["a", "b"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        ["{", "[]", "42", json.dumps({"namespace": "default"}), json.dumps({"data": {"ca.crt": "!!"}})],
    )
    async def test_corrupt_value(self, payload) -> None:
        store = await _redis_store()
        await store._client.set("transportca:secret:default:custom-ca", payload)

        with pytest.raises(StoreUnavailableError, match="corrupt secret payload"):
            await store.get("default", "custom-ca")

    @pytest.mark.asyncio
    async def test_unreachable_redis(self) -> None:
        store = RedisSecretStore(StorageConfig(backend="redis"), client=_DownClient())

        with pytest.raises(StoreUnavailableError):
            await store.connect()
        with pytest.raises(StoreUnavailableError):
            await store.get("default", "x")
        with pytest.raises(StoreUnavailableError):
            await store.put(_secret())
        with pytest.raises(StoreUnavailableError):
            await store.delete("default", "x")
        assert await store.health_check() is False


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

class TestCreateSecretStore:

    def test_memory(self) -> None:
        assert isinstance(create_secret_store(StorageConfig()), MemorySecretStore)

    def test_redis(self) -> None:
        assert isinstance(create_secret_store(StorageConfig(backend="redis")), RedisSecretStore)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_secret_store(StorageConfig(backend="etcd"))
