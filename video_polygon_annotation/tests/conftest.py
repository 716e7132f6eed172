"""
Test fixtures and utilities for video polygon annotation tests.

Provides reusable fixtures for sessions, frames and frame sources that
need neither a display nor a real video file.
"""

import threading
from concurrent.futures import Executor, Future

import numpy as np
import pytest

from video_polygon_annotation.config import get_default_config
from video_polygon_annotation.core.capture import Frame, FrameCapture
from video_polygon_annotation.errors import FrameNotReady


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: workflows spanning capture, session and export"
    )


class StaticFrameCapture(FrameCapture):
    """FrameCapture returning a fixed bitmap for every source."""

    def __init__(self, pixels=None, ready=True):
        super().__init__()
        self.pixels = pixels
        self.loaded = []
        self.seeks = []
        self.captures = 0
        self._source_ready = ready

    def load(self, source):
        self.loaded.append(source)
        self.source = str(source)
        self._set_ready(self._source_ready)

    def seek(self, position_ms):
        self.seeks.append(position_ms)

    def capture_current_frame(self):
        self.captures += 1
        if not self.is_ready or self.pixels is None:
            raise FrameNotReady("source not ready")
        return Frame.from_pixels(self.pixels)


class BlockingFrameCapture(StaticFrameCapture):
    """Capture that waits until released, to observe in-flight behavior."""

    def __init__(self, pixels):
        super().__init__(pixels)
        self.started = threading.Event()
        self.release_capture = threading.Event()

    def capture_current_frame(self):
        self.started.set()
        assert self.release_capture.wait(timeout=5)
        return super().capture_current_frame()


class ImmediateExecutor(Executor):
    """Executor running every task synchronously in the caller's thread."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


@pytest.fixture
def cfg():
    return get_default_config()


@pytest.fixture
def session():
    """Session on an 800x600 canvas for a 1920x1080 video."""
    from video_polygon_annotation.core.annotation import AnnotationSession

    return AnnotationSession(display_size=(800, 600), source_size=(1920, 1080))


@pytest.fixture
def source_frame():
    """A 1920x1080 BGR frame."""
    return np.random.randint(0, 255, (1080, 1920, 3), dtype=np.uint8)


@pytest.fixture
def small_frame():
    return np.random.randint(0, 255, (90, 160, 3), dtype=np.uint8)


@pytest.fixture
def static_capture(source_frame):
    return StaticFrameCapture(source_frame)


@pytest.fixture
def immediate_executor():
    return ImmediateExecutor()


@pytest.fixture
def record_events():
    """Subscribe to event types and return the list they get appended to."""

    def _record(session, *event_types):
        received = []
        for event_type in event_types:
            session.events.on(event_type, received.append)
        return received

    return _record


@pytest.fixture
def blocking_capture(small_frame):
    capture = BlockingFrameCapture(small_frame)
    yield capture
    # Never leave a worker thread waiting
    capture.release_capture.set()


@pytest.fixture
def not_ready_capture():
    return StaticFrameCapture(pixels=None, ready=False)


@pytest.fixture
def empty_capture():
    """Opens fine but has no decoded frame until pixels are assigned."""
    return StaticFrameCapture(pixels=None)
