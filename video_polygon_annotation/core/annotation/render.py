"""
Render descriptions derived from session state.

A renderer never reads the session directly; it receives a snapshot of
what to draw and replays it on whatever surface it owns.
"""

from dataclasses import dataclass
from typing import Tuple

from .state import DrawingMode, FrameSize, Polygon, Vertex


@dataclass(frozen=True)
class RenderDescription:
    """Everything a renderer needs to draw the annotation overlays."""

    committed: Tuple[Polygon, ...]
    current: Tuple[Vertex, ...]
    mode: DrawingMode
    display_size: FrameSize

    @classmethod
    def from_session(cls, session) -> "RenderDescription":
        return cls(
            committed=session.committed_polygons,
            current=session.current_polygon,
            mode=session.mode,
            display_size=session.display_size,
        )

    @property
    def markers(self) -> Tuple[Vertex, ...]:
        """Every vertex that gets a marker, committed first."""
        vertices = []
        for polygon in self.committed:
            vertices.extend(polygon)
        vertices.extend(self.current)
        return tuple(vertices)

    def replay(self, port):
        """
        Draw this description through a render port.

        Committed polygons are drawn closed, the in-progress one open, and
        every vertex gets a marker.
        """
        for index, polygon in enumerate(self.committed):
            port.draw_closed_polygon(polygon, index=index)
            for vertex in polygon:
                port.draw_marker(vertex.x, vertex.y, index=index)
        if self.current:
            current = Polygon(vertices=self.current)
            port.draw_open_polyline(current)
            for vertex in current:
                port.draw_marker(vertex.x, vertex.y, index=None)
