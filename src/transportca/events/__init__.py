"""Event recording for transportca."""

from .recorder import (
    EVENT_REASON_UNEXPECTED,
    EVENT_REASON_VALIDATION,
    AsyncEventRecorder,
    Event,
    EventHandler,
    EventRecorder,
    EventSeverity,
    InMemoryEventRecorder,
)

__all__ = [
    "Event",
    "EventHandler",
    "EventRecorder",
    "EventSeverity",
    "InMemoryEventRecorder",
    "AsyncEventRecorder",
    "EVENT_REASON_UNEXPECTED",
    "EVENT_REASON_VALIDATION",
]
