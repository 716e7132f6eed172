"""
Annotation session management.

Core logic for turning pointer clicks on a captured frame into polygons.
UI-agnostic - can be used with any interface (OpenCV window, Web, CLI).
"""

import logging
from typing import Any, Dict, Optional, Tuple

from .events import AnnotationEvent, EventEmitter, EventType
from .render import RenderDescription
from .state import (
    DEFAULT_DISPLAY_SIZE,
    DEFAULT_SOURCE_SIZE,
    AnnotationState,
    DrawingMode,
    FrameSize,
    Polygon,
    Vertex,
)
from .utils import CoordinateScaler, polygon_area, should_auto_close

logger = logging.getLogger(__name__)

CLOSURE_THRESHOLD = 10.0
MIN_POLYGON_VERTICES = 3


class AnnotationSession:
    """
    Manages the state and logic of an annotation session.

    This class handles:
    - Drawing mode transitions (idle <-> drawing)
    - Vertex placement and auto-closure near the anchor vertex
    - Committing finished polygons
    - Resetting when a new source is loaded or the canvas is resized
    - Event emission for UI updates

    All mutation goes through the public transition methods; accessors
    return immutable copies. The session is not thread-safe and expects to
    be driven from a single event-dispatch path.
    """

    def __init__(
        self,
        closure_threshold: float = CLOSURE_THRESHOLD,
        clear_on_start: bool = False,
        display_size=DEFAULT_DISPLAY_SIZE,
        source_size=DEFAULT_SOURCE_SIZE,
    ):
        """
        Initialize annotation session.

        Args:
            closure_threshold: Distance to the anchor (display pixels) below
                which a click closes the polygon
            clear_on_start: Whether start_drawing() discards committed
                polygons by default
            display_size: Size of the canvas the frame is shown on
            source_size: Native size of the video
        """
        if closure_threshold <= 0:
            raise ValueError(
                f"Closure threshold must be positive, got {closure_threshold}"
            )
        self.closure_threshold = float(closure_threshold)
        self.clear_on_start = clear_on_start

        self._state = AnnotationState(
            display_size=FrameSize.from_tuple(display_size),
            source_size=FrameSize.from_tuple(source_size),
        )

        # Event emitter for UI notifications
        self.events = EventEmitter()

    @classmethod
    def from_config(cls, cfg) -> "AnnotationSession":
        return cls(
            closure_threshold=cfg.SESSION.CLOSURE_THRESHOLD,
            clear_on_start=cfg.SESSION.CLEAR_ON_START,
            display_size=(cfg.DISPLAY.WIDTH, cfg.DISPLAY.HEIGHT),
        )

    # Read-only views

    @property
    def mode(self) -> DrawingMode:
        return self._state.mode

    @property
    def is_drawing(self) -> bool:
        return self._state.is_drawing

    @property
    def current_polygon(self) -> Tuple[Vertex, ...]:
        return tuple(self._state.current_polygon)

    @property
    def committed_polygons(self) -> Tuple[Polygon, ...]:
        return tuple(self._state.committed_polygons)

    @property
    def display_size(self) -> FrameSize:
        return self._state.display_size

    @property
    def source_size(self) -> FrameSize:
        return self._state.source_size

    @property
    def source(self) -> Optional[str]:
        return self._state.source

    # Transitions

    def start_drawing(self, clear_committed: Optional[bool] = None):
        """
        Begin a new polygon, discarding any uncommitted vertices.

        Args:
            clear_committed: Also drop committed polygons. Defaults to the
                session's clear_on_start policy.
        """
        if clear_committed is None:
            clear_committed = self.clear_on_start

        discarded = len(self._state.current_polygon)
        if discarded:
            logger.debug("Discarding %d uncommitted vertices", discarded)

        if clear_committed and self._state.committed_polygons:
            self.clear_committed()

        self._state.current_polygon = []
        self._state.mode = DrawingMode.DRAWING

        self._emit(EventType.DRAWING_STARTED, {"discarded": discarded})

    def add_vertex(self, point) -> bool:
        """
        Handle a click while drawing.

        The first click places the anchor. A later click closer than the
        closure threshold to the anchor, with at least two vertices already
        placed, closes the polygon by repeating the anchor and commits it.
        Any other click appends a vertex.

        Args:
            point: Vertex or (x, y) in display space

        Returns:
            True if the state changed, False if ignored while idle
        """
        if not self.is_drawing:
            logger.debug("Ignoring vertex while idle")
            return False

        vertex = Vertex.from_tuple(point)
        current = self._state.current_polygon

        if should_auto_close(vertex, current, self.closure_threshold):
            anchor = current[0]
            self._commit(
                Polygon(vertices=tuple(current) + (anchor,)), auto_closed=True
            )
            return True

        current.append(vertex)
        self._emit(
            EventType.VERTEX_ADDED,
            {"vertex": vertex.to_tuple(), "num_vertices": len(current)},
        )
        return True

    def end_drawing(self) -> bool:
        """
        Commit the in-progress polygon as an open vertex list.

        Renderers draw the implicit closing edge. With fewer than three
        vertices nothing changes and the session stays in drawing mode.

        Returns:
            True if a polygon was committed
        """
        if not self.is_drawing:
            logger.debug("Ignoring end_drawing while idle")
            return False

        current = self._state.current_polygon
        if len(current) < MIN_POLYGON_VERTICES:
            logger.debug(
                "Not enough vertices to finish polygon (%d < %d)",
                len(current),
                MIN_POLYGON_VERTICES,
            )
            self.events.emit(
                AnnotationEvent(
                    EventType.DRAWING_REJECTED,
                    {
                        "num_vertices": len(current),
                        "min_vertices": MIN_POLYGON_VERTICES,
                    },
                )
            )
            return False

        self._commit(Polygon(vertices=tuple(current)), auto_closed=False)
        return True

    def cancel_drawing(self) -> bool:
        """
        Abandon the in-progress polygon. Committed polygons are kept.

        Returns:
            True if a drawing was cancelled
        """
        if not self.is_drawing:
            logger.debug("Ignoring cancel_drawing while idle")
            return False

        discarded = len(self._state.current_polygon)
        self._state.current_polygon = []
        self._state.mode = DrawingMode.IDLE

        self._emit(EventType.DRAWING_CANCELLED, {"discarded": discarded})
        return True

    def clear_committed(self):
        """Drop all committed polygons for a fresh annotation pass."""
        count = len(self._state.committed_polygons)
        self._state.committed_polygons = []
        self._emit(EventType.POLYGONS_CLEARED, {"num_polygons": count})

    def load_new_source(self, source_size, display_size=None, source=None):
        """
        Reset the session for a newly loaded video.

        Annotations are specific to the previous frame, so all of them are
        dropped. An in-progress drawing is cancelled first.

        Args:
            source_size: Native size of the new video
            display_size: Canvas size, unchanged if None
            source: Optional path or URL of the video
        """
        source_size = FrameSize.from_tuple(source_size)
        if display_size is None:
            display_size = self._state.display_size
        display_size = FrameSize.from_tuple(display_size)

        if self.is_drawing:
            self.cancel_drawing()

        self._state = AnnotationState(
            display_size=display_size,
            source_size=source_size,
            source=source,
        )
        logger.debug(
            "Loaded source %s (source %s, display %s)",
            source,
            source_size,
            display_size,
        )

        self._emit(
            EventType.SOURCE_LOADED,
            {
                "source": source,
                "source_size": source_size.to_tuple(),
                "display_size": display_size.to_tuple(),
            },
        )

    def resize_display(self, display_size):
        """
        Change the canvas size, keeping committed polygons on the frame.

        An in-progress drawing is cancelled first since its vertices refer
        to the old canvas.

        Args:
            display_size: New canvas size
        """
        display_size = FrameSize.from_tuple(display_size)
        old_size = self._state.display_size
        if display_size == old_size:
            return

        if self.is_drawing:
            self.cancel_drawing()

        scaler = CoordinateScaler(old_size, display_size)
        self._state.committed_polygons = [
            scaler.scale_polygon(p) for p in self._state.committed_polygons
        ]
        self._state.display_size = display_size

        self._emit(
            EventType.DISPLAY_RESIZED,
            {"old_size": old_size.to_tuple(), "new_size": display_size.to_tuple()},
        )

    # Views for renderers and exporters

    def get_render_description(self):
        """
        Get data needed for drawing the overlays.

        Returns:
            RenderDescription snapshot of the current state
        """
        return RenderDescription.from_session(self)

    def get_scaler(self) -> CoordinateScaler:
        """Scaler from display space to source space."""
        return CoordinateScaler(self._state.display_size, self._state.source_size)

    def to_dict(self) -> Dict[str, Any]:
        return self._state.to_dict()

    def _commit(self, polygon: Polygon, auto_closed: bool):
        self._state.committed_polygons.append(polygon)
        self._state.current_polygon = []
        self._state.mode = DrawingMode.IDLE

        logger.debug(
            "Committed polygon #%d with %d vertices (area %.1f px)",
            len(self._state.committed_polygons),
            len(polygon),
            polygon_area(polygon),
        )

        self._emit(
            EventType.POLYGON_COMMITTED,
            {
                "polygon": polygon.flatten(),
                "auto_closed": auto_closed,
                "index": len(self._state.committed_polygons) - 1,
            },
        )

    def _emit(self, event_type: EventType, data: Optional[Dict[str, Any]] = None):
        self.events.emit(AnnotationEvent(event_type, data))
        self.events.emit(
            AnnotationEvent(EventType.STATE_CHANGED, {"mode": self.mode.value})
        )
