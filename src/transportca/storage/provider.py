"""
Abstract Secret Store Interface.

Defines the contract that all secret store backends must implement.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, Field

from transportca.models import Secret


class StorageConfig(BaseModel):
    """Configuration for the secret store."""

    backend: str = Field(default="memory", description="Storage backend type (memory or redis)")
    path: Optional[str] = Field(
        default=None, description="JSON file backing the memory store, None for volatile"
    )
    timeout_seconds: int = Field(default=30, ge=1, le=300, description="Operation timeout")
    key_prefix: str = Field(default="transportca:secret", description="Redis key prefix")

    # Redis-specific
    redis_host: Optional[str] = Field(default="localhost")
    redis_port: int = Field(default=6379, ge=1, le=65535)
    redis_db: int = Field(default=0, ge=0)
    redis_password: Optional[str] = None
    redis_ssl: bool = False
    pool_size: int = Field(default=10, ge=1, le=100, description="Connection pool size")


class SecretStore(ABC):
    """
    Abstract secret store.

    Backends raise SecretNotFoundError for missing secrets and
    StoreUnavailableError when the backend itself fails.
    """

    def __init__(self, config: StorageConfig):
        """Initialize the store with configuration."""
        self.config = config

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to the backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the backend."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the backend is healthy."""

    @abstractmethod
    async def get(self, namespace: str, name: str) -> Secret:
        """Get a secret.

        Raises:
            SecretNotFoundError: If the secret does not exist.
        """

    @abstractmethod
    async def put(self, secret: Secret) -> None:
        """Create or replace a secret."""

    @abstractmethod
    async def delete(self, namespace: str, name: str) -> None:
        """Delete a secret.

        Raises:
            SecretNotFoundError: If the secret does not exist.
        """

    @abstractmethod
    async def list_secrets(self, namespace: str) -> list[Secret]:
        """List the secrets of a namespace."""
