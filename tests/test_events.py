"""Tests for profile_sync.events module."""

import threading

from profile_sync.events import (
    CacheAction,
    CacheEvent,
    EventEmitter,
    RepairEvent,
    RepairStatus,
)
from profile_sync.types import RepairResult


class TestEventTypes:
    """Tests for event dataclasses."""

    def test_repair_event_defaults(self):
        """RepairEvent should have sensible defaults."""
        event = RepairEvent()
        assert event.uid == ""
        assert event.status is RepairStatus.STARTED
        assert event.result is None
        assert event.error is None
        assert event.timestamp > 0

    def test_repair_event_with_result(self):
        result = RepairResult(uid="u1", posts_matched=3)
        event = RepairEvent(uid="u1", status=RepairStatus.COMPLETED, result=result)
        assert event.result.posts_matched == 3

    def test_cache_event(self):
        event = CacheEvent(action=CacheAction.CLEAR, count=12)
        assert event.action is CacheAction.CLEAR
        assert event.count == 12
        assert event.uid == ""


class TestEventEmitter:
    """Tests for EventEmitter class."""

    def test_on_decorator(self):
        """@emitter.on(EventType) should register handler."""
        emitter = EventEmitter()
        received = []

        @emitter.on(RepairEvent)
        def handler(event: RepairEvent):
            received.append(event)

        emitter.emit(RepairEvent(uid="u1"))

        assert len(received) == 1
        assert received[0].uid == "u1"

    def test_on_specific_type(self):
        """Handler should only receive events of registered type."""
        emitter = EventEmitter()
        repairs = []

        emitter.add_handler(RepairEvent, repairs.append)
        emitter.emit(CacheEvent(uid="u1"))
        emitter.emit(RepairEvent(uid="u2"))

        assert [e.uid for e in repairs] == ["u2"]

    def test_on_any(self):
        """Global handlers receive every event."""
        emitter = EventEmitter()
        received = []
        emitter.on_any(received.append)

        emitter.emit(RepairEvent())
        emitter.emit(CacheEvent())

        assert len(received) == 2

    def test_handler_error_does_not_propagate(self):
        """A failing handler is logged and later handlers still run."""
        emitter = EventEmitter()
        received = []

        def broken(event):
            raise RuntimeError("handler bug")

        emitter.add_handler(RepairEvent, broken)
        emitter.add_handler(RepairEvent, received.append)

        emitter.emit(RepairEvent(uid="u1"))
        assert len(received) == 1

    def test_remove_handler(self):
        emitter = EventEmitter()
        received = []
        emitter.add_handler(RepairEvent, received.append)
        emitter.remove_handler(RepairEvent, received.append)

        emitter.emit(RepairEvent())
        assert received == []

    def test_clear_handlers(self):
        emitter = EventEmitter()
        emitter.add_handler(RepairEvent, lambda e: None)
        emitter.add_handler(CacheEvent, lambda e: None)
        emitter.on_any(lambda e: None)
        assert emitter.handler_count() == 3

        emitter.clear_handlers(CacheEvent)
        assert emitter.handler_count(CacheEvent) == 0
        assert emitter.handler_count() == 2

        emitter.clear_handlers()
        assert emitter.handler_count() == 0

    def test_handler_may_unsubscribe_during_emit(self):
        """Handlers are snapshotted, so removing during emit is safe."""
        emitter = EventEmitter()
        calls = []

        def once(event):
            calls.append(event)
            emitter.remove_handler(RepairEvent, once)

        emitter.add_handler(RepairEvent, once)
        emitter.emit(RepairEvent())
        emitter.emit(RepairEvent())

        assert len(calls) == 1

    def test_thread_safe_registration(self):
        """Concurrent registration should not lose handlers."""
        emitter = EventEmitter()

        def register():
            for _ in range(100):
                emitter.add_handler(RepairEvent, lambda e: None)

        threads = [threading.Thread(target=register) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert emitter.handler_count(RepairEvent) == 400
