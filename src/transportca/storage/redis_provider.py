"""
Redis Secret Store.

Production backend storing each secret as a JSON document under
``<key_prefix>:<namespace>:<name>``.
"""

from typing import Any, Optional
import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from transportca.exceptions import SecretNotFoundError, StoreUnavailableError
from transportca.models import Secret

from .provider import SecretStore, StorageConfig

logger = logging.getLogger(__name__)


class RedisSecretStore(SecretStore):
    """
    Redis secret store.

    Features:
    - Connection pooling
    - Backend failures mapped to StoreUnavailableError

    Args:
        config: Storage configuration.
        client: Pre-built ``redis.asyncio`` compatible client (used in tests).
    """

    def __init__(self, config: StorageConfig, client: Optional[Any] = None):
        """Initialize Redis storage."""
        super().__init__(config)
        self._client = client
        self._pool = None

    async def connect(self) -> None:
        """Establish connection to Redis."""
        if self._client is None:
            self._pool = aioredis.ConnectionPool(
                host=self.config.redis_host,
                port=self.config.redis_port,
                db=self.config.redis_db,
                password=self.config.redis_password,
                ssl=self.config.redis_ssl,
                max_connections=self.config.pool_size,
                socket_timeout=self.config.timeout_seconds,
                socket_connect_timeout=self.config.timeout_seconds,
                decode_responses=True,
            )
            self._client = aioredis.Redis(connection_pool=self._pool)

        try:
            await self._client.ping()
        except RedisError as exc:
            raise StoreUnavailableError(f"cannot connect to Redis: {exc}") from exc

    async def disconnect(self) -> None:
        """Close connection to Redis."""
        if self._client is not None:
            await self._client.aclose()
        if self._pool is not None:
            await self._pool.disconnect()

    async def health_check(self) -> bool:
        """Check if Redis is healthy."""
        try:
            if self._client is not None:
                await self._client.ping()
                return True
        except RedisError:
            logger.debug("Redis health check failed", exc_info=True)
        return False

    def _key(self, namespace: str, name: str) -> str:
        return f"{self.config.key_prefix}:{namespace}:{name}"

    async def get(self, namespace: str, name: str) -> Secret:
        try:
            payload = await self._client.get(self._key(namespace, name))
        except RedisError as exc:
            raise StoreUnavailableError(f"Redis get {namespace}/{name} failed: {exc}") from exc
        if payload is None:
            raise SecretNotFoundError(namespace, name)
        if isinstance(payload, bytes):
            payload = payload.decode()
        return Secret.from_payload(payload)

    async def put(self, secret: Secret) -> None:
        try:
            await self._client.set(self._key(secret.namespace, secret.name), secret.to_payload())
        except RedisError as exc:
            raise StoreUnavailableError(
                f"Redis set {secret.namespace}/{secret.name} failed: {exc}"
            ) from exc

    async def delete(self, namespace: str, name: str) -> None:
        try:
            removed = await self._client.delete(self._key(namespace, name))
        except RedisError as exc:
            raise StoreUnavailableError(
                f"Redis delete {namespace}/{name} failed: {exc}"
            ) from exc
        if removed == 0:
            raise SecretNotFoundError(namespace, name)

    async def list_secrets(self, namespace: str) -> list[Secret]:
        pattern = f"{self.config.key_prefix}:{namespace}:*"
        try:
            keys = sorted([key async for key in self._client.scan_iter(match=pattern)])
            payloads = await self._client.mget(keys) if keys else []
        except RedisError as exc:
            raise StoreUnavailableError(f"Redis scan of {namespace} failed: {exc}") from exc
        secrets = []
        for payload in payloads:
            if payload is None:
                continue
            if isinstance(payload, bytes):
                payload = payload.decode()
            secrets.append(Secret.from_payload(payload))
        return secrets
