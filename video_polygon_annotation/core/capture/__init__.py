"""
Frame capture - the boundary between video playback and annotation.

The annotation core only depends on the FrameCapture contract; the OpenCV
implementation is one way to satisfy it.
"""

from .base import Frame, FrameCapture, to_display
from .coordinator import CaptureCoordinator, CaptureResult
from .opencv_capture import OpenCVFrameCapture

__all__ = [
    "Frame",
    "FrameCapture",
    "to_display",
    "CaptureCoordinator",
    "CaptureResult",
    "OpenCVFrameCapture",
]
