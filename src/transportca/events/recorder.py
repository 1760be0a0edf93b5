"""
Event recorders.

Events are human-readable notifications attached to a cluster, used to
surface configuration problems to users. Recording is fire-and-forget: a
recorder never blocks or fails the caller.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from transportca.models import ClusterIdentity

logger = logging.getLogger(__name__)

# Standard event reasons
EVENT_REASON_UNEXPECTED = "Unexpected"
EVENT_REASON_VALIDATION = "Validation"


class EventSeverity(str, enum.Enum):
    """Event type, mirroring the Normal/Warning split of cluster events."""

    NORMAL = "Normal"
    WARNING = "Warning"


@dataclass(frozen=True)
class Event:
    """An event recorded against a cluster."""

    owner: ClusterIdentity
    severity: EventSeverity
    reason: str
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


EventHandler = Callable[[Event], None]


def _new_event(
    owner: ClusterIdentity,
    severity: EventSeverity,
    reason: str,
    message: str,
    timestamp: Optional[datetime],
) -> Event:
    if timestamp is None:
        return Event(owner=owner, severity=severity, reason=reason, message=message)
    return Event(
        owner=owner, severity=severity, reason=reason, message=message, timestamp=timestamp
    )


class EventRecorder(ABC):
    """Abstract base class for event sinks."""

    @abstractmethod
    def emit(
        self,
        owner: ClusterIdentity,
        severity: EventSeverity,
        reason: str,
        message: str,
        timestamp: Optional[datetime] = None,
    ) -> None:
        """Record an event. Must not raise or block.

        ``timestamp`` defaults to the current UTC time.
        """


class InMemoryEventRecorder(EventRecorder):
    """Synchronous recorder keeping events in memory and notifying subscribers."""

    def __init__(self) -> None:
        self._events: list[Event] = []
        self._subscribers: list[EventHandler] = []

    def emit(
        self,
        owner: ClusterIdentity,
        severity: EventSeverity,
        reason: str,
        message: str,
        timestamp: Optional[datetime] = None,
    ) -> None:
        event = _new_event(owner, severity, reason, message, timestamp)
        self._events.append(event)
        for handler in self._subscribers:
            try:
                handler(event)
            except Exception:
                logger.debug("Event handler failed", exc_info=True)

    def subscribe(self, handler: EventHandler) -> None:
        self._subscribers.append(handler)

    def unsubscribe(self, handler: EventHandler) -> None:
        self._subscribers = [h for h in self._subscribers if h is not handler]

    @property
    def events(self) -> list[Event]:
        return list(self._events)

    def events_for(self, owner: ClusterIdentity) -> list[Event]:
        return [e for e in self._events if e.owner == owner]

    def clear(self) -> None:
        self._events.clear()


class AsyncEventRecorder(EventRecorder):
    """Queue-based recorder delivering events from a background task.

    Events are dropped when the queue is full so that a slow sink never
    stalls reconciliation.
    """

    def __init__(self, sink: EventHandler, maxsize: int = 1000) -> None:
        self._sink = sink
        self._queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=maxsize)
        self._running = False
        self._consumer_task: asyncio.Task[None] | None = None
        self.dropped = 0

    def emit(
        self,
        owner: ClusterIdentity,
        severity: EventSeverity,
        reason: str,
        message: str,
        timestamp: Optional[datetime] = None,
    ) -> None:
        event = _new_event(owner, severity, reason, message, timestamp)
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.debug("Event queue full, dropping %s event for %s", reason, owner)

    async def start(self) -> None:
        """Start the background consumer task."""
        if self._running:
            return
        self._running = True
        self._consumer_task = asyncio.create_task(self._consume())

    async def stop(self) -> None:
        """Stop the consumer and deliver the events still queued."""
        self._running = False
        if self._consumer_task is not None:
            self._consumer_task.cancel()
            try:
                await self._consumer_task
            except asyncio.CancelledError:
                pass
            self._consumer_task = None
        while not self._queue.empty():
            self._deliver(self._queue.get_nowait())

    def _deliver(self, event: Event) -> None:
        try:
            self._sink(event)
        except Exception:
            logger.debug("Event sink failed", exc_info=True)

    async def _consume(self) -> None:
        while self._running:
            try:
                event = await asyncio.wait_for(self._queue.get(), timeout=0.1)
                self._deliver(event)
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break
