from __future__ import annotations

import importlib
import sys
import types

import numpy as np
import pytest

from camera.errors import AcquisitionTimeoutError, NodeNotFoundError, NodeTypeError
from camera.ids_camera import DeviceAccess
from camera.nodes import NodeKind


class _NotFoundException(Exception):
    pass


class _TimeoutException(Exception):
    pass


class _NativeIntegerNode:
    def __init__(self, value):
        self.value = value

    def Value(self):
        return self.value

    def SetValue(self, value):
        self.value = value


class _NativeEntry:
    def __init__(self, name):
        self.name = name

    def SymbolicValue(self):
        return self.name


class _NativeEnumerationNode:
    def __init__(self, current):
        self.current = current

    def CurrentEntry(self):
        return _NativeEntry(self.current)

    def SetCurrentEntry(self, entry):
        self.current = entry


class _NativeCommandNode:
    def __init__(self):
        self.calls = []

    def Execute(self):
        self.calls.append("execute")

    def WaitUntilDone(self):
        self.calls.append("wait")


class _NativeFloatNode:
    pass


class _NativeNodeMap:
    def __init__(self, nodes):
        self.nodes = nodes

    def FindNode(self, name):
        if name not in self.nodes:
            raise _NotFoundException(name)
        return self.nodes[name]


class _NativeDataStream:
    def __init__(self, error=None):
        self.error = error
        self.calls = []
        self.buffers = ["b0", "b1"]

    def WaitForFinishedBuffer(self, timeout_ms):
        raise self.error

    def StopAcquisition(self, mode):
        self.calls.append(("stop", mode))

    def Flush(self, mode):
        self.calls.append(("flush", mode))

    def AnnouncedBuffers(self):
        return list(self.buffers)

    def RevokeBuffer(self, buffer):
        self.calls.append(("revoke", buffer))


class _PixelFormat:
    def __init__(self, bytes_per_pixel):
        self.bytes_per_pixel = bytes_per_pixel

    def CalculateStorageSizeOfPixels(self, width):
        return width * self.bytes_per_pixel


class _IplImage:
    def __init__(self, data, width, height, bytes_per_pixel=3):
        self.data = data
        self.width = width
        self.height = height
        self.bytes_per_pixel = bytes_per_pixel

    def Width(self):
        return self.width

    def Height(self):
        return self.height

    def PixelFormat(self):
        return _PixelFormat(self.bytes_per_pixel)

    def get_numpy_1D(self):
        return self.data


class _ImageConverter:
    def __init__(self):
        self.targets = []

    def Convert(self, image, target):
        self.targets.append(target)
        return image


@pytest.fixture
def backend(monkeypatch):
    peak = types.SimpleNamespace(
        IntegerNode=_NativeIntegerNode,
        EnumerationNode=_NativeEnumerationNode,
        CommandNode=_NativeCommandNode,
        NotFoundException=_NotFoundException,
        TimeoutException=_TimeoutException,
        DeviceAccessType_Control="control",
        AcquisitionStopMode_Default="stop-default",
        DataStreamFlushMode_DiscardAll="discard-all",
    )
    extension = types.SimpleNamespace(BufferToImage=lambda buffer: buffer)
    ipl = types.SimpleNamespace(PixelFormatName_BGR8="BGR8", ImageConverter=_ImageConverter)

    peak_package = types.ModuleType("ids_peak")
    peak_package.ids_peak = peak
    peak_package.ids_peak_ipl_extension = extension
    ipl_package = types.ModuleType("ids_peak_ipl")
    ipl_package.ids_peak_ipl = ipl

    monkeypatch.setitem(sys.modules, "ids_peak", peak_package)
    monkeypatch.setitem(sys.modules, "ids_peak_ipl", ipl_package)
    monkeypatch.delitem(sys.modules, "camera.ids_peak_backend", raising=False)
    return importlib.import_module("camera.ids_peak_backend")


def test_native_nodes_wrap_to_their_kind(backend):
    command = _NativeCommandNode()
    nodemap = backend.PeakNodeMap(_NativeNodeMap({
        "PayloadSize": _NativeIntegerNode(1000),
        "UserSetSelector": _NativeEnumerationNode("UserSet0"),
        "AcquisitionStart": command,
    }))

    payload = nodemap.integer("PayloadSize")
    assert payload.kind is NodeKind.INTEGER
    assert payload.value() == 1000

    selector = nodemap.enumeration("UserSetSelector")
    selector.set_current_entry("Default")
    assert selector.current_entry() == "Default"

    start = nodemap.command("AcquisitionStart")
    start.execute()
    start.wait_until_done()
    assert command.calls == ["execute", "wait"]


def test_unsupported_or_missing_node(backend):
    nodemap = backend.PeakNodeMap(_NativeNodeMap({"ExposureTime": _NativeFloatNode()}))

    with pytest.raises(NodeTypeError):
        nodemap.lookup("ExposureTime")
    with pytest.raises(NodeNotFoundError):
        nodemap.lookup("Gain")


def test_timeout_is_translated(backend):
    stream = backend.PeakDataStream(_NativeDataStream(_TimeoutException("timeout")))

    with pytest.raises(AcquisitionTimeoutError) as info:
        stream.wait_for_finished_buffer(1000)
    assert info.value.timeout_ms == 1000


def test_other_stream_errors_pass_through(backend):
    stream = backend.PeakDataStream(_NativeDataStream(RuntimeError("incomplete buffer")))

    with pytest.raises(RuntimeError, match="incomplete buffer"):
        stream.wait_for_finished_buffer(1000)


def test_stream_cleanup_uses_default_modes(backend):
    native = _NativeDataStream()
    stream = backend.PeakDataStream(native)

    stream.stop_acquisition()
    stream.flush()
    stream.revoke_all_buffers()

    assert native.calls == [("stop", "stop-default"), ("flush", "discard-all"),
                            ("revoke", "b0"), ("revoke", "b1")]


def test_only_control_access_is_mapped(backend):
    assert backend._ACCESS_TYPES == {DeviceAccess.CONTROL: "control"}


def test_converter_drops_row_padding_and_copies(backend):
    width, height, stride = 4, 2, 16  # 12 bytes of pixels + 4 bytes padding per row
    source = np.arange(height * stride, dtype=np.uint8)
    converter = backend.PeakImageConverter()

    frame = converter.convert(_IplImage(source, width, height))

    assert frame.shape == (2, 4, 3)
    assert frame.dtype == np.uint8
    np.testing.assert_array_equal(frame[0].ravel(), np.arange(0, 12))
    np.testing.assert_array_equal(frame[1].ravel(), np.arange(16, 28))
    assert converter._converter.targets == ["BGR8"]

    assert not np.shares_memory(frame, source)
    source[:] = 0
    assert frame[1, 0, 0] == 16


def test_converter_without_padding(backend):
    source = np.arange(2 * 3 * 3, dtype=np.uint8)

    frame = backend.PeakImageConverter().convert(_IplImage(source, 3, 2))

    np.testing.assert_array_equal(frame.ravel(), source)
