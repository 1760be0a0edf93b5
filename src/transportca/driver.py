"""
Reconciliation driver facade.

Bundles the collaborators a reconciliation pass talks to: the secret store,
the dynamic watch service, the event recorder, metrics, and the clock.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from transportca.certificates.watches import DynamicWatches, WatchRegistry
from transportca.events import EventRecorder, InMemoryEventRecorder
from transportca.observability import MetricsCollector
from transportca.storage import MemorySecretStore, SecretStore


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Driver:
    """Collaborators of a reconciliation pass.

    Example:
        >>> driver = Driver(store=MemorySecretStore())
        >>> isinstance(driver.watches, WatchRegistry)
        True
    """

    store: SecretStore
    watches: DynamicWatches = field(default_factory=WatchRegistry)
    recorder: EventRecorder = field(default_factory=InMemoryEventRecorder)
    metrics: MetricsCollector = field(default_factory=MetricsCollector)
    clock: Callable[[], datetime] = utcnow
