"""
State management for annotation sessions.

Contains data classes representing the state of an annotation session.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class Vertex:
    """A single polygon vertex in display space."""

    x: float
    y: float

    def distance_to(self, other: "Vertex") -> float:
        """Euclidean distance to another vertex."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def to_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @classmethod
    def from_tuple(cls, point) -> "Vertex":
        if isinstance(point, Vertex):
            return point
        x, y = point
        return cls(x=float(x), y=float(y))


@dataclass(frozen=True)
class FrameSize:
    """Pixel dimensions of a frame or canvas."""

    width: int
    height: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Frame size must be positive, got {self.width}x{self.height}"
            )

    def to_tuple(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @classmethod
    def from_tuple(cls, size) -> "FrameSize":
        if isinstance(size, FrameSize):
            return size
        width, height = size
        return cls(width=int(width), height=int(height))

    def __str__(self):
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class Polygon:
    """An ordered, immutable sequence of vertices."""

    vertices: Tuple[Vertex, ...]

    @classmethod
    def from_points(cls, points: Iterable) -> "Polygon":
        return cls(vertices=tuple(Vertex.from_tuple(p) for p in points))

    @classmethod
    def from_flat(cls, values: Iterable[float]) -> "Polygon":
        """Build from a flat ``[x0, y0, x1, y1, ...]`` sequence."""
        values = list(values)
        if len(values) % 2 != 0:
            raise ValueError(f"Flat point list has odd length {len(values)}")
        return cls.from_points(zip(values[0::2], values[1::2]))

    def flatten(self) -> List[float]:
        """Return ``[x0, y0, x1, y1, ...]``."""
        flat = []
        for vertex in self.vertices:
            flat.extend((vertex.x, vertex.y))
        return flat

    def __len__(self):
        return len(self.vertices)

    def __iter__(self):
        return iter(self.vertices)

    def __getitem__(self, index):
        return self.vertices[index]


class DrawingMode(Enum):
    """Modes of the annotation state machine."""

    IDLE = "idle"
    DRAWING = "drawing"


DEFAULT_DISPLAY_SIZE = FrameSize(800, 600)
DEFAULT_SOURCE_SIZE = FrameSize(800, 600)


@dataclass
class AnnotationState:
    """
    Complete state of an annotation session for a single captured frame.

    Only AnnotationSession mutates this; everything else receives
    immutable copies through its accessors.
    """

    mode: DrawingMode = DrawingMode.IDLE
    current_polygon: List[Vertex] = field(default_factory=list)
    committed_polygons: List[Polygon] = field(default_factory=list)
    display_size: FrameSize = DEFAULT_DISPLAY_SIZE
    source_size: FrameSize = DEFAULT_SOURCE_SIZE
    source: Optional[str] = None

    @property
    def is_drawing(self) -> bool:
        return self.mode is DrawingMode.DRAWING

    def to_dict(self):
        """Convert to dictionary for serialization."""
        return {
            "mode": self.mode.value,
            "source": self.source,
            "display_size": self.display_size.to_tuple(),
            "source_size": self.source_size.to_tuple(),
            "current_polygon": [v.to_tuple() for v in self.current_polygon],
            "committed_polygons": [p.flatten() for p in self.committed_polygons],
        }
