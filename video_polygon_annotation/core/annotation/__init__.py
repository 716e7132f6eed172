"""
Core annotation module - UI-agnostic polygon annotation logic.

This module provides the base abstractions for polygon annotation on a
captured video frame that can be used with any UI framework (OpenCV
window, Web, CLI, etc).
"""

from .session import AnnotationSession, CLOSURE_THRESHOLD
from .events import AnnotationEvent, EventType, EventEmitter
from .state import AnnotationState, DrawingMode, FrameSize, Polygon, Vertex
from .render import RenderDescription
from .export import ExportSerializer, DEFAULT_EXPORT_FILENAME
from .utils import CoordinateScaler
from .dispatch import (
    EventDispatcher,
    PointerDown,
    PointerUp,
    KeyPress,
    SourceReload,
    DisplayResize,
    CaptureCompleted,
)

__all__ = [
    "AnnotationSession",
    "CLOSURE_THRESHOLD",
    "AnnotationEvent",
    "EventType",
    "EventEmitter",
    "AnnotationState",
    "DrawingMode",
    "FrameSize",
    "Polygon",
    "Vertex",
    "RenderDescription",
    "ExportSerializer",
    "DEFAULT_EXPORT_FILENAME",
    "CoordinateScaler",
    "EventDispatcher",
    "PointerDown",
    "PointerUp",
    "KeyPress",
    "SourceReload",
    "DisplayResize",
    "CaptureCompleted",
]
