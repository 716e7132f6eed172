"""
Serialized input handling for an annotation session.

Every mutation of an AnnotationSession goes through one EventDispatcher:
inputs may be posted from any thread, but they are applied only when the
owning (UI) thread calls process_pending().
"""

import logging
import queue
from concurrent.futures import Future
from dataclasses import dataclass
from gettext import gettext as _
from typing import Callable, Dict, List, Optional, Tuple

from ...errors import FrameNotReady
from .events import AnnotationEvent, EventType
from .session import AnnotationSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointerDown:
    x: float
    y: float


@dataclass(frozen=True)
class PointerUp:
    pass


@dataclass(frozen=True)
class KeyPress:
    action: str


@dataclass(frozen=True)
class SourceReload:
    """A new video was selected; its sizing arrives with the next capture."""

    source: Optional[str] = None
    source_size: Optional[Tuple[int, int]] = None


@dataclass(frozen=True)
class DisplayResize:
    width: int
    height: int


@dataclass(frozen=True)
class CaptureCompleted:
    future: Future


POINTER_EVENTS = (PointerDown, PointerUp)


class EventDispatcher:
    """
    Applies queued inputs to a session, one tick at a time.

    Within a tick, reloads, resizes and successful captures are applied
    before anything else, and pointer input from the same tick is dropped
    because it was aimed at the previous frame.
    """

    def __init__(
        self,
        session: AnnotationSession,
        coordinator=None,
        end_on_pointer_up: bool = False,
    ):
        self.session = session
        self.coordinator = coordinator
        self.end_on_pointer_up = end_on_pointer_up
        self._queue: "queue.Queue" = queue.Queue()
        self._actions: Dict[str, Callable[[], object]] = {
            "start": self.session.start_drawing,
            "end": self.session.end_drawing,
            "cancel": self.session.cancel_drawing,
            "clear": self.session.clear_committed,
        }

    def register_action(self, name: str, handler: Callable[[], object]):
        """Bind a key action to a handler (e.g. export or quit)."""
        self._actions[name] = handler

    def post(self, event):
        """Queue an input. Safe to call from any thread."""
        self._queue.put(event)

    def post_capture(self, future: Future):
        """Done-callback for CaptureCoordinator."""
        self.post(CaptureCompleted(future))

    def pending(self) -> int:
        return self._queue.qsize()

    def process_pending(self) -> int:
        """
        Apply every input queued so far as one tick.

        Returns:
            Number of inputs applied
        """
        batch = self._drain()
        if not batch:
            return 0

        priority, rest = self._partition(batch)
        if priority:
            dropped = [e for e in rest if isinstance(e, POINTER_EVENTS)]
            if dropped:
                logger.debug(
                    "Dropping %d pointer events aimed at the previous frame",
                    len(dropped),
                )
            rest = [e for e in rest if not isinstance(e, POINTER_EVENTS)]

        for event in priority + rest:
            self._apply(event)
        return len(priority) + len(rest)

    def _drain(self) -> List[object]:
        batch = []
        while True:
            try:
                batch.append(self._queue.get_nowait())
            except queue.Empty:
                return batch

    def _partition(self, batch):
        priority, rest = [], []
        for event in batch:
            if isinstance(event, CaptureCompleted):
                result = self._resolve_capture(event.future)
                if result is None:
                    continue
                priority.append(result)
            elif isinstance(event, (SourceReload, DisplayResize)):
                priority.append(event)
            else:
                rest.append(event)
        return priority, rest

    def _resolve_capture(self, future: Future):
        """Turn a finished capture into an input, or None if it is unusable."""
        try:
            result = future.result()
        except FrameNotReady as e:
            logger.warning(_("Frame capture failed: {error}").format(error=e))
            self._capture_failed(e)
            return None
        except Exception as e:
            logger.exception(
                _("Error while capturing frame: {error}").format(error=e)
            )
            self._capture_failed(e)
            return None

        if self.coordinator is not None and not self.coordinator.is_current(result):
            logger.debug("Discarding capture from a replaced source")
            return None
        return result

    def _capture_failed(self, error: Exception):
        self.session.events.emit(
            AnnotationEvent(EventType.CAPTURE_FAILED, {"error": str(error)})
        )

    def _apply(self, event):
        session = self.session

        if isinstance(event, PointerDown):
            session.add_vertex((event.x, event.y))
        elif isinstance(event, PointerUp):
            if self.end_on_pointer_up:
                session.end_drawing()
        elif isinstance(event, KeyPress):
            handler = self._actions.get(event.action)
            if handler is None:
                logger.debug("No handler for key action '%s'", event.action)
            else:
                handler()
        elif isinstance(event, SourceReload):
            source_size = event.source_size or session.source_size
            session.load_new_source(source_size, source=event.source)
        elif isinstance(event, DisplayResize):
            session.resize_display((event.width, event.height))
        elif hasattr(event, "frame"):
            self._apply_capture(event)
        else:
            raise TypeError(f"Unknown input event {event!r}")

    def _apply_capture(self, result):
        frame = result.frame
        session = self.session
        source = result.source if result.source is not None else session.source
        session.load_new_source((frame.width, frame.height), source=source)
        session.events.emit(
            AnnotationEvent(
                EventType.FRAME_CAPTURED,
                {
                    "frame": frame,
                    "source_size": (frame.width, frame.height),
                    "position_ms": frame.position_ms,
                },
            )
        )
