"""
Interfaces module - UI adapters for annotation core.

Provides adapters to connect the core annotation logic
with concrete drawing surfaces (OpenCV window, in-memory canvas).
"""

from .gui_adapter import OpenCVAnnotationAdapter
from .render_port import OpenCVRenderPort, RenderPort

__all__ = ["OpenCVAnnotationAdapter", "OpenCVRenderPort", "RenderPort"]
