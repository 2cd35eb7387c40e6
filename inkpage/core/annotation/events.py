"""
Event system for the annotation workflow.

Provides a decoupled way for the annotation core to notify UI components
about state changes without depending on specific UI frameworks.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events that can occur while annotating a page."""

    # Surface events
    SURFACE_INITIALIZED = "surface_initialized"
    SURFACE_DISPOSED = "surface_disposed"

    # Object events
    OBJECT_ADDED = "object_added"
    OBJECTS_REMOVED = "objects_removed"
    OBJECTS_CLEARED = "objects_cleared"
    OBJECT_UNDONE = "object_undone"
    SELECTION_CHANGED = "selection_changed"

    # Tool events
    TOOL_CHANGED = "tool_changed"

    # Persistence events
    PAGE_LOADED = "page_loaded"
    LOAD_FAILED = "load_failed"
    SAVE_STARTED = "save_started"
    SAVE_COMPLETED = "save_completed"
    SAVE_FAILED = "save_failed"
    DIRTY_CHANGED = "dirty_changed"

    # Navigation events
    NAVIGATION_STATE_CHANGED = "navigation_state_changed"
    PAGE_CHANGED = "page_changed"

    # Transient user-visible messages
    NOTICE = "notice"


@dataclass
class AnnotationEvent:
    """Event that occurs during annotation."""

    event_type: EventType
    data: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if self.data is None:
            self.data = {}


class EventEmitter:
    """
    Simple event emitter for pub/sub pattern.

    Allows components to subscribe to events without tight coupling.
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[Callable]] = {}

    def on(self, event_type: EventType, callback: Callable[[AnnotationEvent], None]):
        """Subscribe to an event type."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        self._listeners[event_type].append(callback)

    def off(self, event_type: EventType, callback: Callable[[AnnotationEvent], None]):
        """Unsubscribe from an event type."""
        if event_type in self._listeners:
            self._listeners[event_type].remove(callback)

    def emit(self, event: AnnotationEvent):
        """Emit an event to all subscribers."""
        for callback in list(self._listeners.get(event.event_type, [])):
            try:
                callback(event)
            except Exception:
                # Listener bugs must not break the drawing core
                logger.exception(f"Error in listener for {event.event_type.value}")

    def notice(self, message: str, level: str = "info", **data):
        """Emit a transient, non-blocking user notification."""
        self.emit(
            AnnotationEvent(
                EventType.NOTICE, {"message": message, "level": level, **data}
            )
        )

    def clear(self):
        """Clear all event listeners."""
        self._listeners.clear()
