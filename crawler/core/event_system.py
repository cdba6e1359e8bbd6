"""
Event system module for the rules engine.

Handles state-change notifications: the event types the stat aggregator and
the combat engine publish, the event payload model, and the emitter both use
to dispatch to their listeners.
"""

from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from core.error_handling import ERROR_HANDLER, ErrorHandler, ErrorSeverity


class EventType(Enum):
    """Enumeration of available state-change events."""

    # Published by the stat aggregator.
    SOURCE_ADDED = "source_added"
    SOURCE_REMOVED = "source_removed"
    SOURCE_UPDATED = "source_updated"
    STATS_RECALCULATED = "stats_recalculated"
    VITALS_CHANGED = "vitals_changed"

    # Published by the combat engine.
    COMBAT_STARTED = "combat_started"
    PHASE_CHANGED = "phase_changed"
    TARGET_CHANGED = "target_changed"
    DAMAGE_APPLIED = "damage_applied"
    LOG_UPDATED = "log_updated"
    REWARDS_COLLECTED = "rewards_collected"
    COMBAT_ENDED = "combat_ended"


class StateChangeEvent(BaseModel):
    """Payload delivered to state-change listeners."""

    event_type: EventType = Field(description="The type of the event.")
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Event specific data, such as the affected source id.",
    )

    def __str__(self) -> str:
        details = ", ".join(f"{k}={v}" for k, v in self.payload.items())
        return f"{self.event_type.value}({details})"


StateChangeListener = Callable[[StateChangeEvent], None]


class EventEmitter:
    """
    Keeps a list of listeners and dispatches events to them.

    A listener that raises is reported to the error handler and the dispatch
    continues with the remaining listeners.
    """

    def __init__(self, error_handler: Optional[ErrorHandler] = None) -> None:
        self._listeners: list[StateChangeListener] = []
        self._error_handler = error_handler or ERROR_HANDLER

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def on_state_change(self, handler: StateChangeListener) -> Callable[[], None]:
        """
        Registers a listener.

        Args:
            handler (StateChangeListener): Called with every emitted event.

        Returns:
            Callable[[], None]: A function that removes the listener again.

        """
        self._listeners.append(handler)

        def unsubscribe() -> None:
            if handler in self._listeners:
                self._listeners.remove(handler)

        return unsubscribe

    def emit(self, event_type: EventType, **payload: Any) -> StateChangeEvent:
        """Builds an event and delivers it to a snapshot of the listeners."""
        event = StateChangeEvent(event_type=event_type, payload=payload)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                self._error_handler.handle(
                    f"State-change listener failed on {event_type.value}",
                    ErrorSeverity.MEDIUM,
                    {"event": event_type.value, "listener": repr(listener)},
                    e,
                )
        return event
