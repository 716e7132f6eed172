"""
Asynchronous, coalescing frame capture.

Only one capture runs at a time. Requests made while one is in flight get
the in-flight future back instead of queueing another capture, and results
belonging to a source that has since been replaced are marked stale.
"""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional

from .base import Frame, FrameCapture

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureResult:
    frame: Frame
    generation: int
    source: Optional[str] = None


class CaptureCoordinator:
    """
    Runs FrameCapture calls off the event-dispatch thread.

    Args:
        capture: Frame source
        on_complete: Called with the finished future, from the worker
            thread; typically posts it to an EventDispatcher
        executor: Executor to run captures on, a single worker by default
    """

    def __init__(
        self,
        capture: FrameCapture,
        on_complete: Optional[Callable[[Future], None]] = None,
        executor: Optional[Executor] = None,
    ):
        self.capture = capture
        self.on_complete = on_complete
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="frame-capture"
        )
        self._lock = threading.Lock()
        self._in_flight: Optional[Future] = None
        self._in_flight_generation = 0
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._in_flight is not None and not self._in_flight.done()

    def request_capture(
        self, position_ms: Optional[float] = None, source=None
    ) -> Future:
        """
        Start a capture, or join the one already running.

        A running capture is only joined if it belongs to the current
        generation. After invalidate() a new capture is queued behind the
        stale one, so the worker never touches a source being replaced.

        Args:
            position_ms: Seek here before capturing. Ignored when the
                request is coalesced into a running capture.
            source: Load this source on the worker before capturing

        Returns:
            Future resolving to a CaptureResult, or raising FrameNotReady
            (or SourceOpenError when source cannot be opened)
        """
        with self._lock:
            if (
                source is None
                and self._in_flight is not None
                and not self._in_flight.done()
                and self._in_flight_generation == self._generation
            ):
                logger.debug("Coalescing capture request into in-flight capture")
                return self._in_flight
            future = self._executor.submit(
                self._run, self._generation, position_ms, source
            )
            self._in_flight = future
            self._in_flight_generation = self._generation

        if self.on_complete is not None:
            future.add_done_callback(self.on_complete)
        return future

    def invalidate(self):
        """Mark captures started so far as stale, e.g. on source reload."""
        with self._lock:
            self._generation += 1
            logger.debug("Capture generation is now %d", self._generation)

    def is_current(self, result: CaptureResult) -> bool:
        return result.generation == self._generation

    def shutdown(self, wait: bool = True):
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def _run(
        self, generation: int, position_ms: Optional[float], source=None
    ) -> CaptureResult:
        if source is not None:
            self.capture.load(source)
        if position_ms is not None:
            self.capture.seek(position_ms)
        frame = self.capture.capture_current_frame()
        return CaptureResult(
            frame=frame, generation=generation, source=self.capture.source
        )
