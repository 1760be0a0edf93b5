"""
Secret stores for transportca.

Provides the abstract store interface and its in-memory and Redis backends.
"""

from .provider import SecretStore, StorageConfig
from .memory_provider import MemorySecretStore
from .redis_provider import RedisSecretStore


def create_secret_store(config: StorageConfig) -> SecretStore:
    """Build the secret store selected by ``config.backend``."""
    if config.backend == "memory":
        return MemorySecretStore(config)
    if config.backend == "redis":
        return RedisSecretStore(config)
    raise ValueError(f"Unknown storage backend: {config.backend}")


__all__ = [
    "SecretStore",
    "StorageConfig",
    "MemorySecretStore",
    "RedisSecretStore",
    "create_secret_store",
]
