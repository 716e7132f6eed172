class VideoPolygonAnnotationError(Exception):
    """Base class for errors raised by the annotation tool."""


class FrameNotReady(VideoPolygonAnnotationError):
    """The media source cannot deliver a decoded frame yet."""


class SourceOpenError(VideoPolygonAnnotationError):
    """The media source could not be opened."""
