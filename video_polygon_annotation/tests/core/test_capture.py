"""
Tests for frame capture: the OpenCV source and the capture coordinator.

cv2.VideoCapture is mocked, so no video file or codec is required.
"""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock, patch

import cv2
import numpy as np
import pytest

from video_polygon_annotation.core.annotation import EventDispatcher, SourceReload
from video_polygon_annotation.core.capture import (
    CaptureCoordinator,
    Frame,
    OpenCVFrameCapture,
    to_display,
)
from video_polygon_annotation.errors import FrameNotReady, SourceOpenError

VIDEO_CAPTURE = "video_polygon_annotation.core.capture.opencv_capture.cv2.VideoCapture"


@pytest.fixture
def mock_video_capture(small_frame):
    """Patch cv2.VideoCapture with an opened source returning small_frame."""
    with patch(VIDEO_CAPTURE) as video_capture_cls:
        cap = video_capture_cls.return_value
        cap.isOpened.return_value = True
        cap.read.return_value = (True, small_frame)
        cap.get.return_value = 1000.0
        yield video_capture_cls


class TestOpenCVFrameCapture:
    """Test suite for OpenCVFrameCapture."""

    def test_capture_current_frame(self, mock_video_capture, small_frame):
        capture = OpenCVFrameCapture("clip.mp4")

        frame = capture.capture_current_frame()

        mock_video_capture.assert_called_once_with("clip.mp4")
        assert frame.width == 160
        assert frame.height == 90
        assert frame.position_ms == 1000.0
        assert frame.pixels is small_frame
        assert capture.source == "clip.mp4"

    def test_capture_does_not_advance(self, mock_video_capture):
        capture = OpenCVFrameCapture("clip.mp4")

        capture.capture_current_frame()

        cap = mock_video_capture.return_value
        cap.set.assert_called_with(cv2.CAP_PROP_POS_MSEC, 1000.0)

    def test_path_source(self, mock_video_capture, tmp_path):
        OpenCVFrameCapture(tmp_path / "clip.mp4")

        mock_video_capture.assert_called_once_with(str(tmp_path / "clip.mp4"))

    def test_not_ready_without_source(self):
        capture = OpenCVFrameCapture()

        assert not capture.is_ready
        with pytest.raises(FrameNotReady):
            capture.capture_current_frame()

    def test_not_ready_when_nothing_decoded(self, mock_video_capture):
        mock_video_capture.return_value.read.return_value = (False, None)
        capture = OpenCVFrameCapture("clip.mp4")

        with pytest.raises(FrameNotReady):
            capture.capture_current_frame()

    def test_open_failure(self, mock_video_capture):
        cap = mock_video_capture.return_value
        cap.isOpened.return_value = False

        with pytest.raises(SourceOpenError):
            OpenCVFrameCapture("missing.mp4")
        cap.release.assert_called_once()

    def test_seek(self, mock_video_capture):
        capture = OpenCVFrameCapture("clip.mp4")

        capture.seek(2500)

        mock_video_capture.return_value.set.assert_called_with(
            cv2.CAP_PROP_POS_MSEC, 2500.0
        )

    def test_seek_without_source(self):
        with pytest.raises(FrameNotReady):
            OpenCVFrameCapture().seek(100)

    def test_on_ready(self, mock_video_capture):
        capture = OpenCVFrameCapture()
        early = Mock()
        capture.on_ready(early)
        early.assert_not_called()

        capture.load("clip.mp4")
        early.assert_called_once_with(capture)

        # Registering on a ready source fires immediately
        late = Mock()
        capture.on_ready(late)
        late.assert_called_once_with(capture)

    def test_release(self, mock_video_capture):
        with OpenCVFrameCapture("clip.mp4") as capture:
            assert capture.is_ready

        mock_video_capture.return_value.release.assert_called_once()
        assert not capture.is_ready
        with pytest.raises(FrameNotReady):
            capture.capture_current_frame()

    def test_load_replaces_previous_source(self, mock_video_capture):
        capture = OpenCVFrameCapture("a.mp4")
        capture.load("b.mp4")

        assert capture.source == "b.mp4"
        assert mock_video_capture.call_count == 2
        mock_video_capture.return_value.release.assert_called_once()

    def test_metadata(self, mock_video_capture):
        values = {
            cv2.CAP_PROP_FRAME_WIDTH: 1920.0,
            cv2.CAP_PROP_FRAME_HEIGHT: 1080.0,
            cv2.CAP_PROP_FPS: 25.0,
            cv2.CAP_PROP_FRAME_COUNT: 250.0,
        }
        mock_video_capture.return_value.get.side_effect = values.get
        capture = OpenCVFrameCapture("clip.mp4")

        assert capture.native_size == (1920, 1080)
        assert capture.fps == 25.0
        assert capture.frame_count == 250


class TestToDisplay:
    """Tests for resizing captured frames to the canvas."""

    def test_resize(self, source_frame):
        frame = Frame.from_pixels(source_frame)

        resized = to_display(frame, (800, 600))

        assert resized.shape == (600, 800, 3)

    def test_same_size_copies(self, small_frame):
        frame = Frame.from_pixels(small_frame)

        resized = to_display(frame, (160, 90))

        np.testing.assert_array_equal(resized, small_frame)
        assert resized is not small_frame


class TestCaptureCoordinator:
    """Test suite for CaptureCoordinator."""

    def test_capture_result(self, static_capture, immediate_executor):
        static_capture.load("clip.mp4")
        coordinator = CaptureCoordinator(static_capture, executor=immediate_executor)

        result = coordinator.request_capture().result()

        assert result.frame.width == 1920
        assert result.frame.height == 1080
        assert result.generation == 0
        assert result.source == "clip.mp4"
        assert coordinator.is_current(result)

    def test_seek_before_capture(self, static_capture, immediate_executor):
        static_capture.load("clip.mp4")
        coordinator = CaptureCoordinator(static_capture, executor=immediate_executor)

        coordinator.request_capture(position_ms=1500)

        assert static_capture.seeks == [1500]

    def test_not_ready_propagates(self, not_ready_capture, immediate_executor):
        coordinator = CaptureCoordinator(
            not_ready_capture, executor=immediate_executor
        )

        future = coordinator.request_capture()

        assert isinstance(future.exception(), FrameNotReady)

    def test_on_complete(self, static_capture, immediate_executor):
        on_complete = Mock()
        coordinator = CaptureCoordinator(
            static_capture, on_complete=on_complete, executor=immediate_executor
        )

        future = coordinator.request_capture()

        on_complete.assert_called_once_with(future)

    def test_requests_coalesce_while_in_flight(self, blocking_capture):
        blocking_capture.load("clip.mp4")
        coordinator = CaptureCoordinator(blocking_capture)
        try:
            first = coordinator.request_capture()
            assert blocking_capture.started.wait(timeout=5)

            second = coordinator.request_capture()
            assert second is first
            assert coordinator.in_flight

            blocking_capture.release_capture.set()
            first.result(timeout=5)
            assert blocking_capture.captures == 1
            assert not coordinator.in_flight

            # A request after completion starts a new capture
            third = coordinator.request_capture()
            assert third is not first
            third.result(timeout=5)
            assert blocking_capture.captures == 2
        finally:
            coordinator.shutdown()

    def test_invalidate_marks_results_stale(self, static_capture):
        static_capture.load("clip.mp4")
        executor = ThreadPoolExecutor(max_workers=1)
        coordinator = CaptureCoordinator(static_capture, executor=executor)
        try:
            result = coordinator.request_capture().result(timeout=5)
            coordinator.invalidate()

            assert coordinator.generation == 1
            assert not coordinator.is_current(result)
            fresh = coordinator.request_capture().result(timeout=5)
            assert fresh.generation == 1
            assert coordinator.is_current(fresh)
        finally:
            executor.shutdown()

    def test_load_runs_on_worker(self, static_capture, immediate_executor):
        coordinator = CaptureCoordinator(static_capture, executor=immediate_executor)

        result = coordinator.request_capture(source="clip.mp4").result()

        assert static_capture.loaded == ["clip.mp4"]
        assert result.source == "clip.mp4"

    def test_request_after_invalidate_does_not_join_stale_capture(
        self, blocking_capture
    ):
        blocking_capture.load("old.mp4")
        coordinator = CaptureCoordinator(blocking_capture)
        try:
            stale = coordinator.request_capture()
            assert blocking_capture.started.wait(timeout=5)

            coordinator.invalidate()
            fresh = coordinator.request_capture()
            assert fresh is not stale

            blocking_capture.release_capture.set()
            assert not coordinator.is_current(stale.result(timeout=5))
            assert coordinator.is_current(fresh.result(timeout=5))
            assert blocking_capture.captures == 2
        finally:
            coordinator.shutdown()


class TestReloadDuringCapture:
    """A reload while a capture is running still delivers the new frame."""

    def test_new_source_frame_lands(self, blocking_capture, session):
        dispatcher = EventDispatcher(session)
        coordinator = CaptureCoordinator(
            blocking_capture, on_complete=dispatcher.post_capture
        )
        dispatcher.coordinator = coordinator
        try:
            coordinator.request_capture(source="old.mp4")
            assert blocking_capture.started.wait(timeout=5)

            # Reload while the old source is still being read
            coordinator.invalidate()
            dispatcher.post(SourceReload(source="new.mp4"))
            fresh = coordinator.request_capture(source="new.mp4")

            # The new source is only opened after the old capture finished
            assert blocking_capture.loaded == ["old.mp4"]

            blocking_capture.release_capture.set()
            fresh.result(timeout=5)
        finally:
            # Joins the worker, so every done-callback has posted its result
            coordinator.shutdown()

        dispatcher.process_pending()

        assert blocking_capture.loaded == ["old.mp4", "new.mp4"]
        assert session.source == "new.mp4"
        assert session.source_size.to_tuple() == (160, 90)
