import logging
import time

from PySide6.QtCore import Slot
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QLabel, QListWidget, QMessageBox,
    QVBoxLayout, QHBoxLayout, QTextEdit, QGroupBox
)

import config
from camera.acquisition import FrameCounters
from camera.errors import CameraError
from camera.ids_camera import IDS_Camera
from display.acquisition_thread import AcquisitionThread
from display.components.frame_view import FrameView

logger = logging.getLogger(__name__)


class ViewerMainWindow(QMainWindow):
    """
    Main window of the live viewer.

    The camera is opened and acquisition started while the window is
    constructed. Errors during that phase are shown in a message box and
    leave the window without a running acquisition.

    Args:
        device_manager: Discovery service with update() and devices().
        converter: Pixel converter with convert(buffer) -> BGR8 ndarray.
    """

    def __init__(self, device_manager, converter, parent=None):
        super().__init__(parent)
        self.setWindowTitle(config.WINDOW_TITLE)
        self.resize(config.WINDOW_WIDTH, config.WINDOW_HEIGHT)

        self._device_manager = device_manager
        self._converter = converter
        self.camera = None
        self.acquisition_thread = None

        self.setup_ui()
        self.initialize()

    def setup_ui(self):
        central = QWidget()
        self.setCentralWidget(central)

        main_layout = QHBoxLayout(central)

        # Left side: video
        self.frame_view = FrameView()

        # Right side: devices, status and log
        control_layout = QVBoxLayout()

        devices_group = QGroupBox("Devices")
        devices_layout = QVBoxLayout(devices_group)
        self.device_list = QListWidget()
        devices_layout.addWidget(self.device_list)

        status_group = QGroupBox("Status")
        status_layout = QVBoxLayout(status_group)
        self.counter_label = QLabel(FrameCounters().label())
        self.fps_label = QLabel("FPS: 0.0")
        status_layout.addWidget(self.counter_label)
        status_layout.addWidget(self.fps_label)

        log_group = QGroupBox("Log")
        log_layout = QVBoxLayout(log_group)
        self.log_text = QTextEdit()
        self.log_text.setReadOnly(True)
        self.log_text.document().setMaximumBlockCount(config.LOG_PANEL_MAX_LINES)
        log_layout.addWidget(self.log_text)

        control_layout.addWidget(devices_group)
        control_layout.addWidget(status_group)
        control_layout.addWidget(log_group, stretch=1)

        main_layout.addWidget(self.frame_view, stretch=3)
        main_layout.addLayout(control_layout, stretch=1)

    def initialize(self):
        """List devices, open the first openable one and start acquisition."""
        try:
            self.list_devices()
            self.open_device()
            self.start_acquisition()
        except CameraError as e:
            logger.error("Initialization failed: %s", e)
            self.show_error("Error", str(e))
        except Exception as e:
            logger.exception("Initialization failed")
            self.show_error("Exception", str(e))

    def list_devices(self):
        self._device_manager.update()
        self.device_list.clear()
        for descriptor in self._device_manager.devices():
            self.device_list.addItem(descriptor.display_name)

    def open_device(self):
        self.camera = IDS_Camera(self._device_manager)
        self.camera.open()
        self.add_log_message(
            f"Opened {self.camera.device_name} ({self.camera.buffer_count} buffers)")

    def start_acquisition(self):
        self.acquisition_thread = AcquisitionThread(self.camera, self._converter)
        self.acquisition_thread.frame_ready.connect(self.frame_view.show_frame)
        self.acquisition_thread.counters_update.connect(self.update_counters)
        self.acquisition_thread.fps_update.connect(self.update_fps)
        self.acquisition_thread.log_message.connect(self.add_log_message)
        self.acquisition_thread.acquisition_failed.connect(self.on_acquisition_failed)
        self.acquisition_thread.start()

    def show_error(self, title, message):
        QMessageBox.critical(self, title, message)

    @Slot(int, int)
    def update_counters(self, acquired, errors):
        self.counter_label.setText(FrameCounters(acquired, errors).label())

    @Slot(float)
    def update_fps(self, fps):
        self.fps_label.setText(f"FPS: {fps:.1f}")

    @Slot(str)
    def add_log_message(self, message):
        timestamp = time.strftime("%H:%M:%S")
        self.log_text.append(f"[{timestamp}] {message}")

    @Slot(str)
    def on_acquisition_failed(self, message):
        self.add_log_message(f"Acquisition failed: {message}")
        self.show_error("Exception", message)

    def shutdown(self):
        """Stop the acquisition thread and release the camera."""
        if self.acquisition_thread is not None:
            if not self.acquisition_thread.stop():
                # The thread may still use the data stream; leave the buffers alone
                logger.warning("Acquisition thread did not stop in time")
                return
            self.acquisition_thread = None

        if self.camera is not None:
            self.camera.shutdown()
            self.camera = None

    def closeEvent(self, event):
        self.shutdown()
        event.accept()
