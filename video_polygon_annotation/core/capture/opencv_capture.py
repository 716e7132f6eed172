"""
FrameCapture backed by cv2.VideoCapture.

Accepts anything OpenCV can open: local video files or remote URLs.
"""

import logging
from gettext import gettext as _
from pathlib import Path
from typing import Optional

import cv2

from ...errors import FrameNotReady, SourceOpenError
from .base import Frame, FrameCapture

logger = logging.getLogger(__name__)


class OpenCVFrameCapture(FrameCapture):
    """Grab still frames from a video with OpenCV."""

    def __init__(self, source=None):
        super().__init__()
        self._cap: Optional[cv2.VideoCapture] = None
        if source is not None:
            self.load(source)

    def load(self, source):
        self.release()
        source = str(source) if isinstance(source, Path) else source
        logger.debug(_("Opening video source '{source}'").format(source=source))

        cap = cv2.VideoCapture(source)
        if not cap.isOpened():
            cap.release()
            raise SourceOpenError(
                _("Could not open video source '{source}'").format(source=source)
            )

        self._cap = cap
        self.source = source
        self._set_ready(True)

    def seek(self, position_ms: float):
        if self._cap is None:
            raise FrameNotReady(_("No video source loaded"))
        self._cap.set(cv2.CAP_PROP_POS_MSEC, float(position_ms))

    def capture_current_frame(self) -> Frame:
        """
        Decode the frame at the current position without advancing.

        Raises:
            FrameNotReady: If no source is open or no frame can be decoded
        """
        if self._cap is None or not self._cap.isOpened():
            raise FrameNotReady(_("No video source loaded"))

        position_ms = self._cap.get(cv2.CAP_PROP_POS_MSEC)
        ok, pixels = self._cap.read()
        if not ok or pixels is None:
            raise FrameNotReady(
                _("Video source '{source}' has no decodable frame yet").format(
                    source=self.source
                )
            )
        # read() advances; stay on the captured frame
        self._cap.set(cv2.CAP_PROP_POS_MSEC, position_ms)

        frame = Frame.from_pixels(pixels, position_ms=position_ms)
        logger.debug(
            "Captured %dx%d frame at %.0f ms", frame.width, frame.height, position_ms
        )
        return frame

    @property
    def native_size(self):
        """(width, height) reported by the container, or None if unknown."""
        if self._cap is None:
            return None
        width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        if width <= 0 or height <= 0:
            return None
        return (width, height)

    @property
    def fps(self) -> float:
        if self._cap is None:
            return 0.0
        return float(self._cap.get(cv2.CAP_PROP_FPS))

    @property
    def frame_count(self) -> int:
        if self._cap is None:
            return 0
        return int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT))

    def release(self):
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        super().release()
