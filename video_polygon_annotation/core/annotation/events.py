"""
Event system for annotation workflow.

Provides a decoupled way for the annotation core to notify UI components
about state changes without depending on specific UI frameworks.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events that can occur during annotation."""

    # Source events
    SOURCE_LOADED = "source_loaded"
    DISPLAY_RESIZED = "display_resized"

    # Capture events
    FRAME_CAPTURED = "frame_captured"
    CAPTURE_FAILED = "capture_failed"

    # Drawing events
    DRAWING_STARTED = "drawing_started"
    VERTEX_ADDED = "vertex_added"
    DRAWING_CANCELLED = "drawing_cancelled"
    DRAWING_REJECTED = "drawing_rejected"

    # Polygon events
    POLYGON_COMMITTED = "polygon_committed"
    POLYGONS_CLEARED = "polygons_cleared"

    # Export events
    EXPORTED = "exported"

    # Session events
    STATE_CHANGED = "state_changed"


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
        # Copy so listeners may unsubscribe while being notified
        for callback in list(self._listeners.get(event.event_type, [])):
            try:
                callback(event)
            except Exception:
                # Log but don't crash on listener errors
                logger.exception(
                    "Error in event listener for %s", event.event_type.value
                )

    def clear(self):
        """Clear all event listeners."""
        self._listeners.clear()
