"""
GUI adapter for annotation session.

Bridges the AnnotationSession with an OpenCV HighGUI window.
"""

import logging
from gettext import gettext as _
from pathlib import Path
from typing import Dict, Optional

import cv2
import numpy as np

from ..core.annotation import (
    AnnotationEvent,
    AnnotationSession,
    EventDispatcher,
    EventType,
    ExportSerializer,
    KeyPress,
    PointerDown,
    PointerUp,
    SourceReload,
)
from ..core.capture import CaptureCoordinator, FrameCapture, to_display
from .render_port import OpenCVRenderPort

logger = logging.getLogger(__name__)

SPECIAL_KEYS = {"esc": 27, "enter": 13, "space": 32, "tab": 9}


def build_key_map(keys) -> Dict[int, str]:
    """
    Map key codes to actions from the KEYS config section.

    Enter always ends the current polygon, as in most polygon tools.
    """
    key_map = {SPECIAL_KEYS["enter"]: "end", 10: "end"}
    for action, key in keys.items():
        key = str(key).lower()
        code = SPECIAL_KEYS.get(key, ord(key[0]) if key else None)
        if code is not None:
            key_map[code] = action.lower()
    return key_map


class OpenCVAnnotationAdapter:
    """
    Adapter connecting AnnotationSession to an OpenCV window.

    Provides a thin layer that:
    - Feeds mouse and keyboard input to the session through a dispatcher
    - Requests frame captures and shows the captured frame
    - Re-renders overlays whenever the session changes
    - Writes the export file on request
    """

    def __init__(
        self,
        session: AnnotationSession,
        capture: FrameCapture,
        cfg,
        output_path: Optional[Path] = None,
        render_port: Optional[OpenCVRenderPort] = None,
        coordinator: Optional[CaptureCoordinator] = None,
    ):
        """
        Initialize adapter.

        Args:
            session: Core annotation session
            capture: Frame source
            cfg: Configuration tree (see config.get_default_config)
            output_path: Export destination, cfg.EXPORT.FILENAME if None
            render_port: Overlay renderer, built from cfg if None
            coordinator: Capture coordinator, built around capture if None
        """
        self.session = session
        self.capture = capture
        self.cfg = cfg
        self.output_path = Path(output_path or cfg.EXPORT.FILENAME)
        self.render_port = render_port or OpenCVRenderPort.from_config(cfg)
        self.serializer = ExportSerializer(indent=cfg.EXPORT.INDENT)
        self.window_name = cfg.RENDER.WINDOW_NAME
        self.key_map = build_key_map(cfg.KEYS)

        self.dispatcher = EventDispatcher(
            session, end_on_pointer_up=cfg.SESSION.END_ON_POINTER_UP
        )
        self.coordinator = coordinator or CaptureCoordinator(
            capture, on_complete=self.dispatcher.post_capture
        )
        if self.coordinator.on_complete is None:
            self.coordinator.on_complete = self.dispatcher.post_capture
        self.dispatcher.coordinator = self.coordinator
        self.dispatcher.register_action("export", self.export)
        self.dispatcher.register_action("quit", self.request_quit)
        self.dispatcher.register_action("capture", self.recapture)

        self.frame_ready = False
        self._dirty = True
        self._quit = False

        # Subscribe to session events
        self._setup_event_handlers()

    def _setup_event_handlers(self):
        """Setup event handlers for session events."""
        self.session.events.on(EventType.STATE_CHANGED, self._on_state_changed)
        self.session.events.on(EventType.FRAME_CAPTURED, self._on_frame_captured)
        self.session.events.on(EventType.CAPTURE_FAILED, self._on_capture_failed)
        self.session.events.on(EventType.DRAWING_REJECTED, self._on_drawing_rejected)

    def _on_state_changed(self, event: AnnotationEvent):
        self._dirty = True

    def _on_frame_captured(self, event: AnnotationEvent):
        frame = event.data["frame"]
        self.render_port.set_background(to_display(frame, self.session.display_size))
        self.frame_ready = True
        self._dirty = True
        logger.info(
            _("Captured frame {width}x{height}, annotating at {display}").format(
                width=frame.width,
                height=frame.height,
                display=self.session.display_size,
            )
        )

    def _on_capture_failed(self, event: AnnotationEvent):
        # Already reported by the dispatcher
        logger.debug(
            "Capture failed, clicks stay disabled: %s", event.data.get("error")
        )

    def _on_drawing_rejected(self, event: AnnotationEvent):
        logger.info(
            _("A polygon needs at least {n} vertices, it has {m}").format(
                n=event.data["min_vertices"], m=event.data["num_vertices"]
            )
        )

    # Input

    def open_source(self, source, position_ms: Optional[float] = None):
        """
        Load a video and capture the frame to annotate.

        Captures still running for a previous source are marked stale and
        the session is reset before the new capture lands. The source is
        opened on the capture worker, after any capture still reading the
        previous one.

        Returns:
            Future of the capture; it raises SourceOpenError if the source
            cannot be opened
        """
        self.coordinator.invalidate()
        self.frame_ready = False
        self.dispatcher.post(SourceReload(source=str(source)))
        return self.coordinator.request_capture(position_ms, source=source)

    def recapture(self, position_ms: Optional[float] = None):
        """Capture again from the current source, e.g. after a failed try."""
        logger.info(_("Capturing frame again"))
        return self.coordinator.request_capture(position_ms)

    def on_mouse(self, event, x, y, flags, param):
        """cv2.setMouseCallback handler; coordinates are canvas-local."""
        if event == cv2.EVENT_LBUTTONDOWN:
            if self.frame_ready:
                self.dispatcher.post(PointerDown(float(x), float(y)))
        elif event == cv2.EVENT_LBUTTONUP:
            self.dispatcher.post(PointerUp())

    def on_key(self, key: int):
        if key < 0 or key == 255:
            return
        action = self.key_map.get(key)
        if action is not None:
            self.dispatcher.post(KeyPress(action))

    # Output

    def export(self) -> Path:
        path = self.serializer.write(self.session, self.output_path)
        self.session.events.emit(
            AnnotationEvent(
                EventType.EXPORTED,
                {
                    "path": str(path),
                    "num_polygons": len(self.session.committed_polygons),
                },
            )
        )
        return path

    def request_quit(self):
        self._quit = True

    @property
    def should_quit(self) -> bool:
        return self._quit

    def get_visualization(self) -> np.ndarray:
        """Current frame with overlays, re-rendered only when needed."""
        if self._dirty:
            self.render_port.render(self.session.get_render_description())
            self._dirty = False
        return self.render_port.canvas

    def step(self) -> np.ndarray:
        """Apply pending input and return the image to show."""
        self.dispatcher.process_pending()
        return self.get_visualization()

    def run(self, wait_ms: int = 20):
        """Blocking UI loop; returns when the quit key is pressed."""
        cv2.namedWindow(self.window_name, cv2.WINDOW_AUTOSIZE)
        cv2.setMouseCallback(self.window_name, self.on_mouse)
        logger.info(
            _(
                "Keys: [{start}] start polygon, [{end}/Enter] finish, "
                "[{cancel}] cancel, [{clear}] clear, [{capture}] capture again, "
                "[{export}] export, [{quit}] quit"
            ).format(**{k.lower(): v for k, v in self.cfg.KEYS.items()})
        )
        try:
            while not self.should_quit:
                cv2.imshow(self.window_name, self.step())
                self.on_key(cv2.waitKey(wait_ms) & 0xFF)
            # Apply the quit tick's remaining input, e.g. an export
            self.dispatcher.process_pending()
        finally:
            cv2.destroyWindow(self.window_name)
            self.close()

    def close(self):
        # The worker may still be reading from the capture
        self.coordinator.shutdown(wait=True)
        self.capture.release()
