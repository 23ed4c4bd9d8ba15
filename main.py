# main.py
#
# Entry point of the IDS peak live viewer. Opens the first openable camera,
# streams it into a window and releases everything when the window closes.

import logging
import sys

from PySide6.QtWidgets import QApplication

import config
from camera.ids_peak_backend import PeakDeviceManager, PeakImageConverter, peak_library
from display.qt_window import ViewerMainWindow
from utils.log_setup import configure_logging

logger = logging.getLogger(__name__)


def main():
    configure_logging(config.LOG_LEVEL)
    app = QApplication(sys.argv)

    with peak_library():
        window = ViewerMainWindow(PeakDeviceManager(), PeakImageConverter())
        window.show()
        exit_code = app.exec()
        # closeEvent is not delivered if the application quits another way
        window.shutdown()

    logger.info("Application finished.")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
