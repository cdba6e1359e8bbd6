"""
Tests for the state-change event system.
"""

from core.error_handling import ErrorHandler, ErrorSeverity
from core.event_system import EventEmitter, EventType, StateChangeEvent


def test_listeners_receive_events():
    """Test that every listener gets the event with its payload."""
    emitter = EventEmitter(ErrorHandler())
    received: list[StateChangeEvent] = []
    emitter.on_state_change(received.append)

    emitter.emit(EventType.SOURCE_ADDED, source_id="base")

    assert len(received) == 1
    assert received[0].event_type == EventType.SOURCE_ADDED
    assert received[0].payload == {"source_id": "base"}


def test_unsubscribe_removes_listener():
    """Test that the returned function removes the listener."""
    emitter = EventEmitter(ErrorHandler())
    received = []
    unsubscribe = emitter.on_state_change(received.append)
    assert emitter.listener_count == 1

    unsubscribe()
    unsubscribe()
    emitter.emit(EventType.LOG_UPDATED, message="hello")

    assert emitter.listener_count == 0
    assert received == []


def test_failing_listener_is_reported_and_others_still_run():
    """Test that a raising listener does not stop the dispatch."""
    handler = ErrorHandler()
    emitter = EventEmitter(handler)
    received = []

    def broken(event: StateChangeEvent) -> None:
        raise RuntimeError("boom")

    emitter.on_state_change(broken)
    emitter.on_state_change(received.append)

    emitter.emit(EventType.PHASE_CHANGED, phase="enemy")

    assert len(received) == 1
    assert len(handler.error_history) == 1
    error = handler.error_history[0]
    assert error.severity == ErrorSeverity.MEDIUM
    assert isinstance(error.exception, RuntimeError)
    assert error.context["event"] == "phase_changed"


def test_event_string_lists_payload():
    """Test the readable form of an event."""
    event = StateChangeEvent(event_type=EventType.TARGET_CHANGED, payload={"target_id": "rat_0"})
    assert str(event) == "target_changed(target_id=rat_0)"
