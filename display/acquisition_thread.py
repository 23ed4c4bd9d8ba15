# acquisition_thread.py
#
# QThread that runs the AcquisitionWorker. Everything the GUI needs leaves
# this thread through signals, so Qt queues it onto the GUI thread.

import logging
import threading
import time

import numpy as np
from PySide6.QtCore import QThread, Signal

import config
from camera.acquisition import AcquisitionWorker

logger = logging.getLogger(__name__)


class AcquisitionThread(QThread):
    """Thread for continuous image acquisition"""
    frame_ready = Signal(np.ndarray)
    counters_update = Signal(int, int)  # acquired, errors
    fps_update = Signal(float)
    log_message = Signal(str)
    acquisition_failed = Signal(str)

    def __init__(self, camera, converter, parent=None):
        super().__init__(parent)
        self.setObjectName("AcquisitionThread")
        self._stop_event = threading.Event()
        self.worker = AcquisitionWorker(
            camera, converter,
            on_frame=self._publish_frame,
            on_counters=self._publish_counters,
        )

        self._fps_frame_count = 0
        self._fps_last_time = time.monotonic()

    def run(self):
        """Start streaming, then loop until stop() is called"""
        logger.info("Start Acquisition")
        try:
            self.worker.start_streaming()
        except Exception as e:
            logger.error("Could not start acquisition: %s", e)
            self.acquisition_failed.emit(str(e))
            return

        self.log_message.emit("Acquisition started")
        self._fps_last_time = time.monotonic()
        self.worker.run(self._stop_event)
        self.log_message.emit("Acquisition stopped")

    def stop(self, timeout_ms=config.THREAD_JOIN_TIMEOUT_MS):
        """Signal the loop to stop and wait for the thread. Returns False on timeout."""
        self._stop_event.set()
        if not self.isRunning():
            return True
        return self.wait(timeout_ms)

    def _publish_frame(self, frame):
        self.frame_ready.emit(frame)

        self._fps_frame_count += 1
        now = time.monotonic()
        elapsed = now - self._fps_last_time
        if elapsed >= config.FPS_UPDATE_INTERVAL_S:
            self.fps_update.emit(self._fps_frame_count / elapsed)
            self._fps_frame_count = 0
            self._fps_last_time = now

    def _publish_counters(self, counters):
        self.counters_update.emit(counters.acquired, counters.errors)
