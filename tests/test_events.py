"""Tests for the event recorders."""

import asyncio
from datetime import datetime, timezone

import pytest

from transportca.events import (
    EVENT_REASON_VALIDATION,
    AsyncEventRecorder,
    Event,
    EventSeverity,
    InMemoryEventRecorder,
)
from transportca.models import ClusterIdentity

PROD = ClusterIdentity(namespace="default", name="prod")
STAGING = ClusterIdentity(namespace="default", name="staging")


class TestInMemoryEventRecorder:

    def test_records_events(self) -> None:
        recorder = InMemoryEventRecorder()

        recorder.emit(PROD, EventSeverity.WARNING, EVENT_REASON_VALIDATION, "bad CA")

        [event] = recorder.events
        assert event.owner == PROD
        assert event.severity is EventSeverity.WARNING
        assert event.reason == "Validation"
        assert event.message == "bad CA"

    def test_explicit_timestamp(self) -> None:
        recorder = InMemoryEventRecorder()
        at = datetime(2026, 1, 1, tzinfo=timezone.utc)

        recorder.emit(PROD, EventSeverity.WARNING, "Unexpected", "missing", timestamp=at)

        assert recorder.events[0].timestamp == at

    def test_events_for_owner(self) -> None:
        recorder = InMemoryEventRecorder()
        recorder.emit(PROD, EventSeverity.NORMAL, "Created", "a")
        recorder.emit(STAGING, EventSeverity.NORMAL, "Created", "b")

        assert [e.message for e in recorder.events_for(STAGING)] == ["b"]

    def test_subscribers_are_notified(self) -> None:
        recorder = InMemoryEventRecorder()
        received: list[Event] = []
        recorder.subscribe(received.append)

        recorder.emit(PROD, EventSeverity.NORMAL, "Created", "a")
        recorder.unsubscribe(received.append)
        recorder.emit(PROD, EventSeverity.NORMAL, "Created", "b")

        assert [e.message for e in received] == ["a"]

    def test_failing_subscriber_does_not_raise(self) -> None:
        recorder = InMemoryEventRecorder()

        def broken(event: Event) -> None:
            raise RuntimeError("boom")

        recorder.subscribe(broken)
        recorder.emit(PROD, EventSeverity.NORMAL, "Created", "a")

        assert len(recorder.events) == 1

    def test_clear(self) -> None:
        recorder = InMemoryEventRecorder()
        recorder.emit(PROD, EventSeverity.NORMAL, "Created", "a")

        recorder.clear()

        assert recorder.events == []


class TestAsyncEventRecorder:

    @pytest.mark.asyncio
    async def test_delivers_in_background(self) -> None:
        received: list[Event] = []
        recorder = AsyncEventRecorder(received.append)
        await recorder.start()

        recorder.emit(PROD, EventSeverity.WARNING, "Unexpected", "missing")
        for _ in range(50):
            if received:
                break
            await asyncio.sleep(0.01)
        await recorder.stop()

        assert [e.message for e in received] == ["missing"]

    @pytest.mark.asyncio
    async def test_drops_when_full(self) -> None:
        received: list[Event] = []
        recorder = AsyncEventRecorder(received.append, maxsize=2)

        for i in range(5):
            recorder.emit(PROD, EventSeverity.NORMAL, "Created", str(i))

        assert recorder.dropped == 3
        await recorder.stop()
        assert [e.message for e in received] == ["0", "1"]

    @pytest.mark.asyncio
    async def test_sink_failure_is_contained(self) -> None:
        def broken(event: Event) -> None:
            raise RuntimeError("sink down")

        recorder = AsyncEventRecorder(broken)
        recorder.emit(PROD, EventSeverity.NORMAL, "Created", "a")

        await recorder.stop()

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self) -> None:
        recorder = AsyncEventRecorder(lambda event: None)

        await recorder.start()
        await recorder.start()
        await recorder.stop()
