"""
FrameCapture contract.
"""

import abc
from dataclasses import dataclass
from typing import Callable, List, Optional

import cv2
import numpy as np

from ..annotation.state import FrameSize
from ..annotation.utils import validate_frame


@dataclass(frozen=True)
class Frame:
    """A captured bitmap at the video's native resolution."""

    pixels: np.ndarray
    width: int
    height: int
    position_ms: float = 0.0

    @classmethod
    def from_pixels(cls, pixels: np.ndarray, position_ms: float = 0.0) -> "Frame":
        validate_frame(pixels)
        height, width = pixels.shape[:2]
        return cls(pixels=pixels, width=width, height=height, position_ms=position_ms)

    @property
    def size(self) -> FrameSize:
        return FrameSize(self.width, self.height)


class FrameCapture(abc.ABC):
    """
    Produces still frames from a media source.

    Implementations raise FrameNotReady from capture_current_frame() when
    the source has not buffered a decodable frame, instead of returning a
    blank bitmap.
    """

    def __init__(self):
        self._ready_callbacks: List[Callable[["FrameCapture"], None]] = []
        self._ready = False
        self.source: Optional[str] = None

    @abc.abstractmethod
    def load(self, source) -> None:
        """Open a new media source, dropping the previous one."""

    @abc.abstractmethod
    def capture_current_frame(self) -> Frame:
        """Capture the frame at the current position."""

    def seek(self, position_ms: float) -> None:
        """Move the current position. Sources that cannot seek ignore this."""

    def release(self) -> None:
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    def on_ready(self, callback: Callable[["FrameCapture"], None]):
        """Call ``callback`` once the source is ready (immediately if it is)."""
        self._ready_callbacks.append(callback)
        if self._ready:
            callback(self)

    def _set_ready(self, ready: bool):
        was_ready = self._ready
        self._ready = ready
        if ready and not was_ready:
            for callback in list(self._ready_callbacks):
                callback(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()


def to_display(frame: Frame, display_size) -> np.ndarray:
    """
    Resize a captured frame to the canvas size.

    Args:
        frame: Captured frame
        display_size: Target (width, height)

    Returns:
        Resized bitmap
    """
    display_size = FrameSize.from_tuple(display_size)
    if (frame.width, frame.height) == display_size.to_tuple():
        return frame.pixels.copy()
    interpolation = (
        cv2.INTER_AREA
        if display_size.width < frame.width
        else cv2.INTER_LINEAR
    )
    return cv2.resize(
        frame.pixels, display_size.to_tuple(), interpolation=interpolation
    )
