from __future__ import annotations

import time

import numpy as np
import pytest

pytest.importorskip("PySide6.QtWidgets")

from display.components.frame_view import FrameView  # noqa: E402
from display.qt_window import ViewerMainWindow  # noqa: E402
from fake_sdk import FakeConverter, FakeDeviceDescriptor, FakeDeviceManager, make_device_manager  # noqa: E402


@pytest.fixture
def errors(monkeypatch):
    shown = []
    monkeypatch.setattr(ViewerMainWindow, "show_error",
                        lambda self, title, message: shown.append((title, message)))
    return shown


def _process_until(app, condition, timeout_s=3.0):
    deadline = time.monotonic() + timeout_s
    while time.monotonic() < deadline:
        app.processEvents()
        if condition():
            return True
        time.sleep(0.01)
    return False


def test_frame_view_replaces_pixmap(qt_app):
    view = FrameView()
    frame = np.zeros((20, 30, 3), dtype=np.uint8)

    view.show_frame(frame)
    first = view.current_pixmap
    view.show_frame(frame)

    assert view.frames_shown == 2
    assert view.current_pixmap is not first
    assert (view.current_pixmap.width(), view.current_pixmap.height()) == (30, 20)


def test_no_device_shows_error_and_starts_nothing(qt_app, errors):
    window = ViewerMainWindow(FakeDeviceManager(), FakeConverter())

    assert errors == [("Error", "No device found")]
    assert window.acquisition_thread is None
    assert window.device_list.count() == 0
    window.shutdown()


def test_device_without_stream_shows_error(qt_app, errors):
    manager, stream, _ = make_device_manager(streams=0)
    window = ViewerMainWindow(manager, FakeConverter())

    assert errors == [("Error", "This device has no DataStream")]
    assert window.acquisition_thread is None
    assert stream.announced == []
    window.shutdown()


def test_lists_all_devices(qt_app, errors):
    manager, _, _ = make_device_manager(wait_delay_s=0.01)
    manager.descriptors.append(FakeDeviceDescriptor("busy cam", is_openable=False))
    window = ViewerMainWindow(manager, FakeConverter())
    try:
        names = [window.device_list.item(i).text() for i in range(window.device_list.count())]
        assert names == ["U3-3080CP-C", "busy cam"]
    finally:
        window.shutdown()
    assert errors == []


def test_frames_reach_the_display_and_close_releases_camera(qt_app, errors):
    manager, stream, nodemap = make_device_manager(wait_delay_s=0.01)
    window = ViewerMainWindow(manager, FakeConverter())
    assert window.acquisition_thread is not None

    assert _process_until(qt_app, lambda: stream.started)
    stream.deliver(2)
    assert _process_until(qt_app, lambda: window.frame_view.frames_shown >= 2)
    assert _process_until(qt_app, lambda: window.counter_label.text().startswith("Acquired: 2, errors: "))

    window.show()
    window.close()

    assert window.acquisition_thread is None
    assert window.camera is None
    assert len(stream.revoked) == 3
    assert nodemap.nodes["AcquisitionStop"].executed == 1
    assert errors == []


def test_lock_failure_is_reported(qt_app, errors):
    manager, stream, _ = make_device_manager(lock_fails=True)
    window = ViewerMainWindow(manager, FakeConverter())
    try:
        assert _process_until(qt_app, lambda: errors)
        assert errors[0][0] == "Exception"
        assert "TLParamsLocked" in errors[0][1]
        assert not stream.started
    finally:
        window.shutdown()
