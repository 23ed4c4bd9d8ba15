# acquisition.py
#
# The acquisition loop: wait for a filled buffer, convert it, hand the
# buffer back to the stream and publish the frame. It does not know about
# Qt; results leave the loop through callbacks.

import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

import numpy as np

import config
from camera.errors import AcquisitionTimeoutError

logger = logging.getLogger(__name__)


class AcquisitionState(Enum):
    IDLE = "idle"
    LOCKING = "locking"
    STREAMING = "streaming"
    WAITING = "waiting_for_buffer"
    CONVERTING = "converting"
    PUBLISHED = "published"
    STOPPED = "stopped"


@dataclass(frozen=True)
class FrameCounters:
    """Snapshot of the frame counters. Only ever replaced, never mutated."""
    acquired: int = 0
    errors: int = 0

    def with_frame(self) -> "FrameCounters":
        return replace(self, acquired=self.acquired + 1)

    def with_error(self) -> "FrameCounters":
        return replace(self, errors=self.errors + 1)

    def label(self) -> str:
        return f"Acquired: {self.acquired}, errors: {self.errors}"


class AcquisitionWorker:
    """
    Runs the steady-state acquisition loop for an opened IDS_Camera.

    Args:
        camera: Opened camera; provides lock_parameters(), start_acquisition()
            and datastream.
        converter: Object with convert(buffer) -> np.ndarray returning an
            owned BGR8 copy of the buffer's pixels.
        on_frame: Called with every converted frame.
        on_counters: Called with a FrameCounters snapshot after every iteration.
        timeout_ms: Timeout for a single buffer wait.
    """

    def __init__(self, camera, converter,
                 on_frame: Optional[Callable[[np.ndarray], None]] = None,
                 on_counters: Optional[Callable[[FrameCounters], None]] = None,
                 timeout_ms: int = config.BUFFER_TIMEOUT_MS):
        self._camera = camera
        self._converter = converter
        self._on_frame = on_frame
        self._on_counters = on_counters
        self._timeout_ms = timeout_ms

        self.state = AcquisitionState.IDLE
        self.counters = FrameCounters()

    def start_streaming(self):
        """Lock parameters and start the stream. Exceptions propagate to the caller."""
        self.state = AcquisitionState.LOCKING
        try:
            self._camera.lock_parameters()
            self.state = AcquisitionState.STREAMING
            self._camera.start_acquisition()
        except Exception:
            self.state = AcquisitionState.STOPPED
            raise

    def acquire_frame(self) -> np.ndarray:
        """
        Wait for one buffer and convert it.

        The buffer is queued again before returning, also when the
        conversion fails, so the pool never starves.
        """
        datastream = self._camera.datastream
        self.state = AcquisitionState.WAITING
        buffer = datastream.wait_for_finished_buffer(self._timeout_ms)

        self.state = AcquisitionState.CONVERTING
        try:
            frame = self._converter.convert(buffer)
        finally:
            # Queue buffer so that it can be used again
            datastream.queue_buffer(buffer)
        return frame

    def step(self) -> bool:
        """Run one loop iteration. Returns True if a frame was published."""
        try:
            frame = self.acquire_frame()
            if self._on_frame is not None:
                self._on_frame(frame)
            self.counters = self.counters.with_frame()
            self.state = AcquisitionState.PUBLISHED
            published = True
        except AcquisitionTimeoutError as e:
            self.counters = self.counters.with_error()
            logger.warning("%s", e)
            published = False
        except Exception as e:
            self.counters = self.counters.with_error()
            logger.warning("Dropped frame: %s", e)
            published = False

        if self._on_counters is not None:
            self._on_counters(self.counters)
        return published

    def run(self, stop_event: threading.Event):
        """Loop until stop_event is set. Streaming must already be started."""
        logger.info("Acquisition loop is running.")
        while not stop_event.is_set():
            self.step()
        self.state = AcquisitionState.STOPPED
        logger.info("Acquisition loop stopped after %s", self.counters.label())
