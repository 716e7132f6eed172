"""
Export of committed polygons in source-video pixel space.
"""

import json
import logging
from gettext import gettext as _
from pathlib import Path
from typing import List, Optional, Sequence

from .state import FrameSize, Polygon
from .utils import CoordinateScaler

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_FILENAME = "polygon_points_scaled.json"


class ExportSerializer:
    """
    Turns committed display-space polygons into the export artifact.

    The artifact is a JSON array with one flat ``[x0, y0, x1, y1, ...]``
    array per polygon, in commit order, with coordinates scaled to the
    source video resolution. Serializing never touches session state.
    """

    def __init__(self, indent: Optional[int] = 2):
        self.indent = indent

    def scale_polygons(
        self,
        polygons: Sequence[Polygon],
        display_size,
        source_size,
    ) -> List[List[float]]:
        scaler = CoordinateScaler(display_size, source_size)
        return [scaler.scale_flat(polygon.flatten()) for polygon in polygons]

    def from_session(self, session) -> List[List[float]]:
        return self.scale_polygons(
            session.committed_polygons,
            session.display_size,
            session.source_size,
        )

    def dumps(self, scaled: List[List[float]]) -> str:
        return json.dumps(scaled, indent=self.indent)

    def serialize(self, session) -> str:
        return self.dumps(self.from_session(session))

    def write(self, session, path) -> Path:
        """
        Serialize the session and write it to ``path``.

        A directory path gets the default export file name appended.

        Returns:
            Path of the written file
        """
        path = Path(path)
        if path.is_dir():
            path = path / DEFAULT_EXPORT_FILENAME
        path.parent.mkdir(exist_ok=True, parents=True)
        path.write_text(self.serialize(session))
        logger.info(
            _("Exported {count} polygons to '{path}'").format(
                count=len(session.committed_polygons), path=path
            )
        )
        return path


def load_polygons(path) -> List[List[float]]:
    """Read a previously exported artifact back as flat point lists."""
    data = json.loads(Path(path).read_text())
    if not isinstance(data, list) or not all(isinstance(p, list) for p in data):
        raise ValueError(f"'{path}' is not a list of point lists")
    for polygon in data:
        if len(polygon) % 2 != 0:
            raise ValueError(f"'{path}' contains a point list of odd length")
    return data


def rescale_polygons(polygons: List[List[float]], from_size, to_size):
    """Rescale flat point lists between two frame sizes."""
    scaler = CoordinateScaler(FrameSize.from_tuple(from_size), to_size)
    return [scaler.scale_flat(polygon) for polygon in polygons]
