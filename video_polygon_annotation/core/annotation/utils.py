"""
Pure utility functions for annotation logic.

These functions have no side effects and can be tested in isolation.
"""

from typing import Iterable, List, Sequence, Tuple

import cv2
import numpy as np

from .state import FrameSize, Polygon, Vertex


def euclidean_distance(a: Vertex, b: Vertex) -> float:
    """Distance between two vertices in display pixels."""
    return a.distance_to(b)


def should_auto_close(
    point: Vertex,
    current_polygon: Sequence[Vertex],
    threshold: float,
) -> bool:
    """
    Decide whether a click closes the in-progress polygon.

    The click must land strictly within ``threshold`` of the anchor and at
    least two vertices must already exist, so a single anchor plus a nearby
    click never produces a degenerate shape.

    Args:
        point: Clicked position
        current_polygon: Vertices placed so far
        threshold: Closure distance in display pixels

    Returns:
        True if the click should close the polygon
    """
    if len(current_polygon) < 2:
        return False
    return euclidean_distance(point, current_polygon[0]) < threshold


class CoordinateScaler:
    """
    Per-axis linear mapping between two rectangular coordinate spaces.

    Axes scale independently, so a mismatch in aspect ratio produces a
    non-uniform mapping rather than a letterboxed one.
    """

    def __init__(self, from_size, to_size):
        self.from_size = FrameSize.from_tuple(from_size)
        self.to_size = FrameSize.from_tuple(to_size)
        self.scale_x = self.to_size.width / self.from_size.width
        self.scale_y = self.to_size.height / self.from_size.height

    def scale_vertex(self, vertex) -> Vertex:
        vertex = Vertex.from_tuple(vertex)
        return Vertex(x=vertex.x * self.scale_x, y=vertex.y * self.scale_y)

    def scale_polygon(self, polygon: Polygon) -> Polygon:
        return Polygon(vertices=tuple(self.scale_vertex(v) for v in polygon))

    def scale_flat(self, values: Iterable[float]) -> List[float]:
        """Scale a flat ``[x0, y0, x1, y1, ...]`` list."""
        points = np.asarray(list(values), dtype=np.float64).reshape(-1, 2)
        scaled = points * np.array([self.scale_x, self.scale_y])
        return scaled.reshape(-1).tolist()

    def inverse(self) -> "CoordinateScaler":
        return CoordinateScaler(self.to_size, self.from_size)

    def __repr__(self):
        return f"CoordinateScaler({self.from_size} -> {self.to_size})"


def scale_vertex(vertex, display_size, source_size) -> Vertex:
    """Map a display-space vertex to source space."""
    return CoordinateScaler(display_size, source_size).scale_vertex(vertex)


def polygon_to_array(polygon: Polygon) -> np.ndarray:
    """Integer (N, 1, 2) array in the layout cv2 drawing functions expect."""
    points = np.array([v.to_tuple() for v in polygon], dtype=np.float64)
    return np.round(points).astype(np.int32).reshape(-1, 1, 2)


def draw_polygon_on_image(
    image: np.ndarray,
    polygon: Polygon,
    color: Tuple[int, int, int],
    closed: bool = True,
    thickness: int = 2,
) -> np.ndarray:
    """
    Draw a polygon outline on a copy of the image.

    Args:
        image: BGR image
        polygon: Vertices in image coordinates
        color: Line color (BGR)
        closed: Whether to draw the closing edge
        thickness: Line thickness

    Returns:
        Image with polygon drawn
    """
    result = image.copy()
    if len(polygon) < 2:
        return result
    cv2.polylines(result, [polygon_to_array(polygon)], closed, color, thickness)
    return result


def draw_markers_on_image(
    image: np.ndarray,
    vertices: Iterable[Vertex],
    color: Tuple[int, int, int],
    radius: int = 5,
) -> np.ndarray:
    """
    Draw a filled marker on every vertex.

    Args:
        image: BGR image
        vertices: Marker positions
        color: Marker color (BGR)
        radius: Marker radius

    Returns:
        Image with markers drawn
    """
    result = image.copy()
    for vertex in vertices:
        center = (int(round(vertex.x)), int(round(vertex.y)))
        cv2.circle(result, center, radius, color, -1)
    return result


def palette_colors(count: int, colormap: str = "tab20") -> List[Tuple[int, int, int]]:
    """
    Distinct BGR colors sampled from a matplotlib colormap.

    Args:
        count: Number of colors
        colormap: Matplotlib colormap name

    Returns:
        List of BGR tuples
    """
    import matplotlib.pyplot as plt

    if count <= 0:
        return []

    cmap = plt.get_cmap(colormap)
    colors = []
    for idx in range(count):
        r, g, b = (np.array(cmap(idx / max(count, 1))[:3]) * 255).astype(int)
        colors.append((int(b), int(g), int(r)))
    return colors


def polygon_area(polygon: Polygon) -> float:
    """Unsigned area via the shoelace formula (closing edge implied)."""
    if len(polygon) < 3:
        return 0.0
    points = np.array([v.to_tuple() for v in polygon], dtype=np.float64)
    x, y = points[:, 0], points[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) / 2.0)


def validate_frame(pixels: np.ndarray) -> None:
    """
    Validate that a captured frame has image layout.

    Raises:
        ValueError: If frame is invalid
    """
    if pixels is None:
        raise ValueError("Frame is None")

    if not isinstance(pixels, np.ndarray):
        raise ValueError(f"Frame must be numpy array, got {type(pixels)}")

    if pixels.ndim not in (2, 3):
        raise ValueError(f"Frame must be 2D or 3D, got shape {pixels.shape}")

    if pixels.size == 0:
        raise ValueError("Frame is empty")
