# ids_peak_backend.py
#
# Binds the camera layer to the IDS peak SDK (ids_peak / ids_peak_ipl).
# Everything here is a thin translation of the SDK calls; device discovery,
# buffer handling and debayering stay inside the SDK.

import contextlib
import logging

import numpy as np
from ids_peak import ids_peak, ids_peak_ipl_extension
from ids_peak_ipl import ids_peak_ipl

import config
from camera.errors import AcquisitionTimeoutError, NodeNotFoundError, NodeTypeError
from camera.ids_camera import DeviceAccess
from camera.nodes import CommandNode, EnumerationNode, IntegerNode, NodeMap

logger = logging.getLogger(__name__)

_ACCESS_TYPES = {
    DeviceAccess.CONTROL: ids_peak.DeviceAccessType_Control,
}


@contextlib.contextmanager
def peak_library():
    """Keep the IDS peak library initialized for the duration of the block."""
    ids_peak.Library.Initialize()
    logger.info("IDS peak library initialized")
    try:
        yield
    finally:
        ids_peak.Library.Close()
        logger.info("IDS peak library closed")


# ================== NODES ==================

class PeakIntegerNode(IntegerNode):
    def __init__(self, name, node):
        super().__init__(name)
        self._node = node

    def value(self):
        return self._node.Value()

    def set_value(self, value):
        self._node.SetValue(value)


class PeakEnumerationNode(EnumerationNode):
    def __init__(self, name, node):
        super().__init__(name)
        self._node = node

    def current_entry(self):
        return self._node.CurrentEntry().SymbolicValue()

    def set_current_entry(self, entry):
        self._node.SetCurrentEntry(entry)


class PeakCommandNode(CommandNode):
    def __init__(self, name, node):
        super().__init__(name)
        self._node = node

    def execute(self):
        self._node.Execute()

    def wait_until_done(self):
        self._node.WaitUntilDone()


_NODE_WRAPPERS = (
    (ids_peak.IntegerNode, PeakIntegerNode),
    (ids_peak.EnumerationNode, PeakEnumerationNode),
    (ids_peak.CommandNode, PeakCommandNode),
)


class PeakNodeMap(NodeMap):
    def __init__(self, nodemap):
        self._nodemap = nodemap

    def lookup(self, name):
        try:
            node = self._nodemap.FindNode(name)
        except ids_peak.NotFoundException as e:
            raise NodeNotFoundError(name) from e
        if node is None:
            raise NodeNotFoundError(name)

        for native_type, wrapper in _NODE_WRAPPERS:
            if isinstance(node, native_type):
                return wrapper(name, node)
        raise NodeTypeError(name, "integer, enumeration or command node", type(node).__name__)


# ================== DATA STREAM ==================

class PeakDataStream:
    def __init__(self, datastream):
        self._datastream = datastream

    def num_buffers_min_required(self):
        return self._datastream.NumBuffersAnnouncedMinRequired()

    def alloc_and_announce_buffer(self, size):
        return self._datastream.AllocAndAnnounceBuffer(size)

    def queue_buffer(self, buffer):
        self._datastream.QueueBuffer(buffer)

    def start_acquisition(self):
        self._datastream.StartAcquisition()

    def wait_for_finished_buffer(self, timeout_ms):
        try:
            return self._datastream.WaitForFinishedBuffer(timeout_ms)
        except ids_peak.TimeoutException as e:
            raise AcquisitionTimeoutError(timeout_ms) from e

    def stop_acquisition(self):
        self._datastream.StopAcquisition(ids_peak.AcquisitionStopMode_Default)

    def flush(self):
        self._datastream.Flush(ids_peak.DataStreamFlushMode_DiscardAll)

    def revoke_all_buffers(self):
        for buffer in self._datastream.AnnouncedBuffers():
            self._datastream.RevokeBuffer(buffer)


class PeakDataStreamDescriptor:
    def __init__(self, descriptor):
        self._descriptor = descriptor

    def open(self):
        return PeakDataStream(self._descriptor.OpenDataStream())


# ================== DEVICES ==================

class PeakDevice:
    def __init__(self, device):
        self._device = device

    def data_streams(self):
        return [PeakDataStreamDescriptor(d) for d in self._device.DataStreams()]

    def remote_node_map(self):
        # Nodemap of the remote device for all accesses to the genicam nodemap tree
        return PeakNodeMap(self._device.RemoteDevice().NodeMaps()[0])


class PeakDeviceDescriptor:
    def __init__(self, descriptor):
        self._descriptor = descriptor

    @property
    def display_name(self):
        return self._descriptor.DisplayName()

    @property
    def is_openable(self):
        return self._descriptor.IsOpenable()

    def open(self, access=DeviceAccess.CONTROL):
        return PeakDevice(self._descriptor.OpenDevice(_ACCESS_TYPES[access]))


class PeakDeviceManager:
    """Discovery service over ids_peak.DeviceManager. Requires an initialized library."""

    def __init__(self):
        self._manager = ids_peak.DeviceManager.Instance()

    def update(self):
        self._manager.Update()

    def devices(self):
        return [PeakDeviceDescriptor(d) for d in self._manager.Devices()]


# ================== PIXEL CONVERSION ==================

class PeakImageConverter:
    """
    Converts filled buffers to BGR8 numpy frames with ids_peak_ipl.

    The returned array is a copy, so it stays valid after the buffer has
    been queued again.
    """

    def __init__(self, target_format=config.TARGET_PIXEL_FORMAT):
        self._target = getattr(ids_peak_ipl, f"PixelFormatName_{target_format}")
        self._converter = ids_peak_ipl.ImageConverter()

    def convert(self, buffer):
        ipl_image = ids_peak_ipl_extension.BufferToImage(buffer)

        # Debayering and conversion to the display format
        converted = self._converter.Convert(ipl_image, self._target)

        width = int(converted.Width())
        height = int(converted.Height())
        pixel_bytes = int(converted.PixelFormat().CalculateStorageSizeOfPixels(converted.Width()))
        channels = pixel_bytes // width

        # Rows may carry padding behind the pixel data
        data = np.frombuffer(converted.get_numpy_1D(), dtype=np.uint8)
        stride = data.size // height
        frame = data[:height * stride].reshape(height, stride)[:, :pixel_bytes]
        return frame.reshape(height, width, channels).copy()
