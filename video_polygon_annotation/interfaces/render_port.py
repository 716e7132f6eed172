"""
Rendering port for annotation overlays.

The session produces a RenderDescription; a RenderPort draws it on some
surface. OpenCVRenderPort draws onto a numpy canvas with cv2.
"""

import abc
from typing import List, Optional, Tuple

import numpy as np

from ..core.annotation.render import RenderDescription
from ..core.annotation.state import Polygon, Vertex
from ..core.annotation.utils import (
    draw_markers_on_image,
    draw_polygon_on_image,
    palette_colors,
)

Color = Tuple[int, int, int]


class RenderPort(abc.ABC):
    """Drawing primitives the annotation overlays need."""

    @abc.abstractmethod
    def draw_closed_polygon(self, points: Polygon, index: Optional[int] = None):
        """Draw a committed polygon including its closing edge."""

    @abc.abstractmethod
    def draw_open_polyline(self, points: Polygon):
        """Draw the in-progress polygon without a closing edge."""

    @abc.abstractmethod
    def draw_marker(self, x: float, y: float, index: Optional[int] = None):
        """Draw a vertex marker. ``index`` is None for in-progress vertices."""

    def begin_frame(self):
        """Called before a description is replayed."""

    def end_frame(self):
        """Called after a description is replayed."""

    def render(self, description: RenderDescription):
        self.begin_frame()
        description.replay(self)
        self.end_frame()


class OpenCVRenderPort(RenderPort):
    """
    Draws overlays on a copy of a background bitmap.

    Args:
        background: Display-sized BGR frame, or None for a blank canvas
        display_size: Canvas (width, height), used when background is None
        committed_color: BGR color of committed polygons
        current_color: BGR color of the in-progress polygon
        marker_radius: Vertex marker radius
        thickness: Line thickness
        palette: Matplotlib colormap giving each committed polygon its own
            color; empty to use committed_color for all
    """

    def __init__(
        self,
        background: Optional[np.ndarray] = None,
        display_size: Tuple[int, int] = (800, 600),
        committed_color: Color = (255, 0, 0),
        current_color: Color = (0, 0, 255),
        marker_radius: int = 5,
        thickness: int = 2,
        palette: str = "",
    ):
        self.display_size = tuple(display_size)
        self.committed_color = tuple(committed_color)
        self.current_color = tuple(current_color)
        self.marker_radius = marker_radius
        self.thickness = thickness
        self.palette = palette
        self._palette_colors: List[Color] = []
        self.set_background(background)
        self.canvas = self._blank()

    @classmethod
    def from_config(cls, cfg, background=None) -> "OpenCVRenderPort":
        return cls(
            background=background,
            display_size=(cfg.DISPLAY.WIDTH, cfg.DISPLAY.HEIGHT),
            committed_color=cfg.RENDER.COMMITTED_COLOR,
            current_color=cfg.RENDER.CURRENT_COLOR,
            marker_radius=cfg.RENDER.MARKER_RADIUS,
            thickness=cfg.RENDER.LINE_THICKNESS,
            palette=cfg.RENDER.PALETTE,
        )

    def set_background(self, background: Optional[np.ndarray]):
        self.background = background
        if background is not None:
            height, width = background.shape[:2]
            self.display_size = (width, height)

    def render(self, description: RenderDescription) -> np.ndarray:
        if self.palette:
            self._palette_colors = palette_colors(
                len(description.committed), self.palette
            )
        super().render(description)
        return self.canvas

    def begin_frame(self):
        self.canvas = self._blank()

    def draw_closed_polygon(self, points: Polygon, index: Optional[int] = None):
        self.canvas = draw_polygon_on_image(
            self.canvas,
            points,
            self._committed_color(index),
            closed=True,
            thickness=self.thickness,
        )

    def draw_open_polyline(self, points: Polygon):
        self.canvas = draw_polygon_on_image(
            self.canvas,
            points,
            self.current_color,
            closed=False,
            thickness=self.thickness,
        )

    def draw_marker(self, x: float, y: float, index: Optional[int] = None):
        color = self.current_color if index is None else self._committed_color(index)
        self.canvas = draw_markers_on_image(
            self.canvas, [Vertex(x, y)], color, radius=self.marker_radius
        )

    def _committed_color(self, index: Optional[int]) -> Color:
        if index is not None and index < len(self._palette_colors):
            return self._palette_colors[index]
        return self.committed_color

    def _blank(self) -> np.ndarray:
        if self.background is not None:
            return self.background.copy()
        width, height = self.display_size
        return np.zeros((height, width, 3), dtype=np.uint8)
