"""
Dynamic Watches

Process-wide registry of named watches. A watch ties a key to an owner
cluster and a watched secret; when the secret changes, the owner is
re-queued for reconciliation.
"""

from __future__ import annotations

import abc
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from transportca.exceptions import WatchError
from transportca.models import ClusterIdentity, SecretReference

logger = logging.getLogger(__name__)

RequeueHandler = Callable[[ClusterIdentity], None]


@dataclass(frozen=True)
class NamedWatch:
    """A single watch registration.

    Attributes:
        key: Unique registration key (owner and purpose).
        owner: Cluster re-queued when the target changes.
        target: Watched secret.
    """

    key: str
    owner: ClusterIdentity
    target: ClusterIdentity


class DynamicWatches(abc.ABC):
    """Interface of the dynamic watch service."""

    @abc.abstractmethod
    def register(self, watch: NamedWatch) -> bool:
        """Install or replace the watch under ``watch.key``.

        Returns:
            True if the registry changed, False if an identical watch existed.

        Raises:
            WatchError: If the watch cannot be installed.
        """

    @abc.abstractmethod
    def unregister(self, key: str) -> bool:
        """Remove the watch under ``key``.

        Returns:
            True if a watch was removed, False if none existed.

        Raises:
            WatchError: If the watch cannot be removed.
        """


class WatchRegistry(DynamicWatches):
    """In-process keyed table of watches guarded by a single lock.

    ``register`` and ``unregister`` are the only mutation points; each is
    atomic for its key, so concurrent passes of different clusters never
    leave duplicate or missing entries.

    Args:
        requeue: Called with each owner whose watched secret changed.
    """

    def __init__(self, requeue: Optional[RequeueHandler] = None) -> None:
        self._watches: dict[str, NamedWatch] = {}
        self._lock = threading.Lock()
        self._requeue = requeue

    def register(self, watch: NamedWatch) -> bool:
        with self._lock:
            existing = self._watches.get(watch.key)
            if existing == watch:
                return False
            self._watches[watch.key] = watch
        if existing is None:
            logger.info("Registered watch %s on secret %s", watch.key, watch.target)
        else:
            logger.info(
                "Updated watch %s from secret %s to %s",
                watch.key, existing.target, watch.target,
            )
        return True

    def unregister(self, key: str) -> bool:
        with self._lock:
            removed = self._watches.pop(key, None)
        if removed is None:
            return False
        logger.info("Removed watch %s on secret %s", key, removed.target)
        return True

    def get(self, key: str) -> Optional[NamedWatch]:
        with self._lock:
            return self._watches.get(key)

    def registrations(self) -> list[NamedWatch]:
        """Snapshot of all current watches."""
        with self._lock:
            return list(self._watches.values())

    def owners_watching(self, target: ClusterIdentity) -> list[ClusterIdentity]:
        """Owners with a watch on ``target``, without duplicates."""
        with self._lock:
            owners = [w.owner for w in self._watches.values() if w.target == target]
        return list(dict.fromkeys(owners))

    def enqueue_for(self, target: ClusterIdentity) -> list[ClusterIdentity]:
        """Re-queue every owner watching ``target``.

        Call this when the watched secret is created, updated or deleted.

        Returns:
            The owners that were re-queued.
        """
        owners = self.owners_watching(target)
        if self._requeue is not None:
            for owner in owners:
                self._requeue(owner)
        if owners:
            logger.debug("Secret %s changed, re-queued %d owner(s)", target, len(owners))
        return owners

    def __len__(self) -> int:
        with self._lock:
            return len(self._watches)


def reconcile_custom_cert_watch(
    watches: DynamicWatches,
    key: str,
    owner: ClusterIdentity,
    reference: Optional[SecretReference],
) -> None:
    """Keep the watch under ``key`` in line with the custom certificate reference.

    Installs (or retargets) a watch on the referenced secret, or removes the
    watch when the reference is gone. Safe to call on every pass.

    Raises:
        WatchError: If the watch service fails.
    """
    try:
        if reference is None:
            watches.unregister(key)
            return
        watches.register(
            NamedWatch(
                key=key,
                owner=owner,
                target=ClusterIdentity(namespace=owner.namespace, name=reference.secret_name),
            )
        )
    except WatchError:
        raise
    except Exception as exc:
        raise WatchError(f"failed to reconcile watch {key} for {owner}: {exc}") from exc
