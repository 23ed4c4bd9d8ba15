"""
Frame View Component
"""

import cv2
import numpy as np
from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import QLabel, QSizePolicy

import config


class FrameView(QLabel):
    """QLabel that shows the most recent camera frame, scaled to fit"""

    def __init__(self, parent=None):
        super().__init__("No image", parent)
        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setMinimumSize(config.DISPLAY_MIN_WIDTH, config.DISPLAY_MIN_HEIGHT)
        self.setStyleSheet("border: 2px solid gray;")
        self.current_pixmap = None
        self.frames_shown = 0

    @Slot(np.ndarray)
    def show_frame(self, frame):
        """Replace the displayed image with a BGR8 frame. Must run on the GUI thread."""
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        h, w, ch = rgb_frame.shape
        bytes_per_line = ch * w
        # copy() detaches the QImage from the numpy memory
        qt_image = QImage(rgb_frame.data, w, h, bytes_per_line, QImage.Format.Format_RGB888).copy()

        # The previous pixmap is released with its last reference here
        self.current_pixmap = QPixmap.fromImage(qt_image)
        self.frames_shown += 1
        self._refresh()

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._refresh()

    def _refresh(self):
        if self.current_pixmap is None:
            return
        self.setPixmap(self.current_pixmap.scaled(
            self.size(),
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation
        ))
