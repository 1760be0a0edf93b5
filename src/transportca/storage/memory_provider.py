"""
In-Memory Secret Store.

Dictionary-backed store for development and testing, optionally persisted
to a JSON file so that CLI invocations share state.
"""

import json
import logging
from pathlib import Path

from transportca.exceptions import SecretNotFoundError, StoreUnavailableError
from transportca.models import Secret

from .provider import SecretStore, StorageConfig

logger = logging.getLogger(__name__)


class MemorySecretStore(SecretStore):
    """
    In-memory secret store.

    Data is lost on restart unless ``config.path`` points to a JSON file,
    in which case every mutation is written through to it.
    """

    def __init__(self, config: StorageConfig | None = None):
        """Initialize in-memory storage."""
        super().__init__(config or StorageConfig())
        self._secrets: dict[tuple[str, str], Secret] = {}
        self._connected = False

    async def connect(self) -> None:
        """Load the backing file, if any."""
        path = self.config.path
        if path and Path(path).exists():
            try:
                raw = json.loads(Path(path).read_text())
            except (OSError, ValueError) as exc:
                raise StoreUnavailableError(f"cannot read secret store {path}: {exc}") from exc
            if not isinstance(raw, list):
                raise StoreUnavailableError(f"secret store {path} is not a list of secrets")
            self._secrets = {}
            for payload in raw:
                secret = Secret.from_payload(payload)
                self._secrets[(secret.namespace, secret.name)] = secret
            logger.debug("Loaded %d secrets from %s", len(self._secrets), path)
        self._connected = True

    async def disconnect(self) -> None:
        """Close connection (no-op for memory)."""
        self._connected = False

    async def health_check(self) -> bool:
        """Check if storage is healthy."""
        return self._connected

    async def get(self, namespace: str, name: str) -> Secret:
        secret = self._secrets.get((namespace, name))
        if secret is None:
            raise SecretNotFoundError(namespace, name)
        return secret.model_copy(deep=True)

    async def put(self, secret: Secret) -> None:
        updated = dict(self._secrets)
        updated[(secret.namespace, secret.name)] = secret.model_copy(deep=True)
        self._persist(updated)
        self._secrets = updated

    async def delete(self, namespace: str, name: str) -> None:
        if (namespace, name) not in self._secrets:
            raise SecretNotFoundError(namespace, name)
        updated = dict(self._secrets)
        del updated[(namespace, name)]
        self._persist(updated)
        self._secrets = updated

    async def list_secrets(self, namespace: str) -> list[Secret]:
        return [
            s.model_copy(deep=True)
            for (ns, _), s in sorted(self._secrets.items())
            if ns == namespace
        ]

    def _persist(self, secrets: dict[tuple[str, str], Secret]) -> None:
        """Write ``secrets`` to the backing file, if one is configured.

        Called before the in-memory table is swapped, so a failed write
        leaves both unchanged.
        """
        path = self.config.path
        if not path:
            return
        data = [s.to_payload() for _, s in sorted(secrets.items())]
        try:
            Path(path).write_text(json.dumps(data, indent=2))
        except OSError as exc:
            raise StoreUnavailableError(f"cannot write secret store {path}: {exc}") from exc
        logger.debug("Persisted %d secrets to %s", len(data), path)
