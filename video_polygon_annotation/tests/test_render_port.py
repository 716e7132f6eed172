"""
Tests for render descriptions, render ports and the OpenCV adapter.

The adapter is exercised without opening a window: input goes through
its mouse and key handlers and the rendered canvas is inspected.
"""

import json
import logging

import cv2
import numpy as np
import pytest

from video_polygon_annotation.core.annotation import (
    AnnotationSession,
    DrawingMode,
    EventType,
)
from video_polygon_annotation.core.capture import CaptureCoordinator
from video_polygon_annotation.interfaces import (
    OpenCVAnnotationAdapter,
    OpenCVRenderPort,
    RenderPort,
)
from video_polygon_annotation.interfaces.gui_adapter import build_key_map


class RecordingRenderPort(RenderPort):
    """Render port that records the primitives it is asked to draw."""

    def __init__(self):
        self.calls = []

    def draw_closed_polygon(self, points, index=None):
        self.calls.append(("polygon", points.flatten(), index))

    def draw_open_polyline(self, points):
        self.calls.append(("polyline", points.flatten()))

    def draw_marker(self, x, y, index=None):
        self.calls.append(("marker", (x, y), index))


def annotate(session):
    session.start_drawing()
    for point in [(20, 20), (80, 20), (22, 21)]:
        session.add_vertex(point)
    session.start_drawing()
    for point in [(30, 60), (70, 60)]:
        session.add_vertex(point)


class TestRenderDescription:
    """Replaying descriptions through a port."""

    def test_replay_order(self):
        session = AnnotationSession(display_size=(100, 100))
        annotate(session)
        port = RecordingRenderPort()

        port.render(session.get_render_description())

        assert port.calls == [
            ("polygon", [20, 20, 80, 20, 20, 20], 0),
            ("marker", (20, 20), 0),
            ("marker", (80, 20), 0),
            ("marker", (20, 20), 0),
            ("polyline", [30, 60, 70, 60]),
            ("marker", (30, 60), None),
            ("marker", (70, 60), None),
        ]

    def test_empty_session(self):
        port = RecordingRenderPort()
        port.render(AnnotationSession().get_render_description())
        assert port.calls == []


class TestOpenCVRenderPort:
    """Drawing on an in-memory canvas."""

    def test_blank_canvas(self):
        port = OpenCVRenderPort(display_size=(100, 50))
        assert port.canvas.shape == (50, 100, 3)

    def test_render_colors(self):
        session = AnnotationSession(display_size=(100, 100))
        annotate(session)
        port = OpenCVRenderPort(display_size=(100, 100))

        canvas = port.render(session.get_render_description())

        # Committed polygon in blue, in-progress polyline in red (BGR)
        assert tuple(canvas[20, 50]) == (255, 0, 0)
        assert tuple(canvas[60, 50]) == (0, 0, 255)
        assert tuple(canvas[60, 30]) == (0, 0, 255)
        assert tuple(canvas[90, 90]) == (0, 0, 0)

    def test_render_on_background_keeps_it(self):
        background = np.full((100, 100, 3), 40, dtype=np.uint8)
        session = AnnotationSession(display_size=(100, 100))
        annotate(session)
        port = OpenCVRenderPort(background=background)

        canvas = port.render(session.get_render_description())

        assert tuple(canvas[90, 90]) == (40, 40, 40)
        assert background.max() == 40
        assert canvas is not background

    def test_rerender_starts_clean(self):
        session = AnnotationSession(display_size=(100, 100))
        annotate(session)
        port = OpenCVRenderPort(display_size=(100, 100))
        port.render(session.get_render_description())

        session.cancel_drawing()
        canvas = port.render(session.get_render_description())

        assert tuple(canvas[60, 50]) == (0, 0, 0)

    def test_palette(self):
        session = AnnotationSession(display_size=(100, 100))
        annotate(session)
        port = OpenCVRenderPort(display_size=(100, 100), palette="tab10")

        canvas = port.render(session.get_render_description())

        assert tuple(canvas[20, 50]) != (255, 0, 0)
        assert tuple(canvas[20, 50]) != (0, 0, 0)

    def test_from_config(self, cfg):
        cfg.RENDER.MARKER_RADIUS = 7
        port = OpenCVRenderPort.from_config(cfg)

        assert port.marker_radius == 7
        assert port.canvas.shape == (600, 800, 3)


class TestKeyMap:
    def test_default_keys(self, cfg):
        key_map = build_key_map(cfg.KEYS)

        assert key_map[ord("s")] == "start"
        assert key_map[ord("e")] == "end"
        assert key_map[13] == "end"
        assert key_map[27] == "cancel"
        assert key_map[ord("x")] == "export"
        assert key_map[ord("q")] == "quit"
        assert key_map[ord("r")] == "capture"


@pytest.fixture
def adapter(cfg, static_capture, immediate_executor, tmp_path):
    session = AnnotationSession.from_config(cfg)
    coordinator = CaptureCoordinator(static_capture, executor=immediate_executor)
    return OpenCVAnnotationAdapter(
        session,
        static_capture,
        cfg,
        output_path=tmp_path / "points.json",
        coordinator=coordinator,
    )


def click(adapter, x, y):
    adapter.on_mouse(cv2.EVENT_LBUTTONDOWN, x, y, 0, None)
    adapter.on_mouse(cv2.EVENT_LBUTTONUP, x, y, 0, None)


class TestOpenCVAnnotationAdapter:
    """Test suite for the OpenCV adapter without a window."""

    def test_open_source_captures_frame(self, adapter, static_capture):
        adapter.open_source("clip.mp4")
        canvas = adapter.step()

        assert static_capture.loaded == ["clip.mp4"]
        assert adapter.frame_ready
        assert adapter.session.source_size.to_tuple() == (1920, 1080)
        assert adapter.session.source == "clip.mp4"
        assert canvas.shape == (600, 800, 3)

    def test_clicks_ignored_before_frame(self, adapter):
        click(adapter, 10, 10)
        assert adapter.dispatcher.pending() == 1  # only the release

    def test_capture_failure_keeps_session_inert(
        self, cfg, not_ready_capture, immediate_executor, record_events, caplog
    ):
        session = AnnotationSession.from_config(cfg)
        adapter = OpenCVAnnotationAdapter(
            session,
            not_ready_capture,
            cfg,
            coordinator=CaptureCoordinator(
                not_ready_capture, executor=immediate_executor
            ),
        )
        failed = record_events(session, EventType.CAPTURE_FAILED)

        adapter.open_source("broken.mp4")
        adapter.step()

        assert not adapter.frame_ready
        assert len(failed) == 1
        assert session.mode is DrawingMode.IDLE
        assert session.committed_polygons == ()
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1

    def test_draw_and_export(self, adapter, tmp_path):
        adapter.open_source("clip.mp4")
        adapter.step()

        adapter.on_key(ord("s"))
        for x, y in [(100, 100), (400, 100), (400, 300)]:
            click(adapter, x, y)
        adapter.on_key(13)
        adapter.on_key(ord("x"))
        adapter.step()

        data = json.loads((tmp_path / "points.json").read_text())
        assert data == [pytest.approx([240, 180, 960, 180, 960, 540])]

    def test_export_event(self, adapter, record_events):
        exported = record_events(adapter.session, EventType.EXPORTED)

        path = adapter.export()

        assert exported[0].data == {"path": str(path), "num_polygons": 0}

    def test_cancel_key(self, adapter):
        adapter.open_source("clip.mp4")
        adapter.step()

        adapter.on_key(ord("s"))
        click(adapter, 100, 100)
        adapter.on_key(27)
        adapter.step()

        assert adapter.session.mode is DrawingMode.IDLE
        assert adapter.session.current_polygon == ()

    def test_no_key(self, adapter):
        adapter.on_key(255)
        adapter.on_key(-1)
        assert adapter.dispatcher.pending() == 0

    def test_quit_key(self, adapter):
        adapter.on_key(ord("q"))
        assert not adapter.should_quit
        adapter.step()
        assert adapter.should_quit

    def test_reopen_resets_annotations(self, adapter):
        adapter.open_source("clip.mp4")
        adapter.step()
        adapter.on_key(ord("s"))
        for x, y in [(100, 100), (400, 100), (400, 300)]:
            click(adapter, x, y)
        adapter.on_key(ord("e"))
        adapter.step()
        assert len(adapter.session.committed_polygons) == 1

        adapter.open_source("other.mp4")
        adapter.step()

        assert adapter.session.committed_polygons == ()
        assert adapter.session.source == "other.mp4"

    def test_rendered_overlay(self, adapter):
        adapter.open_source("clip.mp4")
        adapter.step()
        adapter.on_key(ord("s"))
        click(adapter, 100, 100)
        click(adapter, 300, 100)

        canvas = adapter.step()

        np.testing.assert_array_equal(canvas[100, 200], [0, 0, 255])

    def test_capture_key_retries_failed_capture(
        self, cfg, empty_capture, immediate_executor, source_frame
    ):
        capture = empty_capture
        adapter = OpenCVAnnotationAdapter(
            AnnotationSession.from_config(cfg),
            capture,
            cfg,
            coordinator=CaptureCoordinator(capture, executor=immediate_executor),
        )
        adapter.open_source("clip.mp4")
        adapter.step()
        assert not adapter.frame_ready

        # The decoder has buffered a frame by now
        capture.pixels = source_frame
        adapter.on_key(ord("r"))
        adapter.step()  # runs the capture action
        adapter.step()  # applies the captured frame

        assert adapter.frame_ready
        assert capture.loaded == ["clip.mp4"]
        assert adapter.session.source_size.to_tuple() == (1920, 1080)
        click(adapter, 100, 100)
        assert adapter.dispatcher.pending() == 2

    def test_reopen_while_capture_in_flight(self, cfg, blocking_capture):
        adapter = OpenCVAnnotationAdapter(
            AnnotationSession.from_config(cfg), blocking_capture, cfg
        )
        try:
            adapter.open_source("old.mp4")
            assert blocking_capture.started.wait(timeout=5)

            fresh = adapter.open_source("new.mp4")
            blocking_capture.release_capture.set()
            fresh.result(timeout=5)
        finally:
            adapter.coordinator.shutdown()

        adapter.step()

        assert adapter.frame_ready
        assert adapter.session.source == "new.mp4"
        assert adapter.session.source_size.to_tuple() == (160, 90)
