# ids_camera.py
#
# Contains the IDS_Camera class that owns one opened IDS peak device.
# It covers everything around the acquisition loop: device discovery,
# loading the default user set, buffer allocation, locking the transport
# layer parameters, starting the stream and releasing it again.

import logging
from enum import Enum
from typing import Optional

import config
from camera.errors import DeviceNotOpenableError, NoDataStreamError, NoDeviceFoundError

logger = logging.getLogger(__name__)


class DeviceAccess(Enum):
    CONTROL = "control"


class IDS_Camera:
    """
    Session around the first openable camera of a device manager.

    The device manager is passed in explicitly. It must provide update()
    and devices(); each device descriptor provides display_name,
    is_openable and open(access). An opened device provides data_streams()
    (descriptors with open()) and remote_node_map().

    Typical use:

        camera = IDS_Camera(device_manager)
        camera.open()            # discover, open, configure, allocate
        camera.lock_parameters()
        camera.start_acquisition()
        ...                      # camera.datastream delivers buffers
        camera.shutdown()
    """

    def __init__(self, device_manager):
        self._device_manager = device_manager

        # Core camera objects
        self._device = None
        self._nodemap_remote = None
        self._datastream = None

        self.device_name: Optional[str] = None
        self.payload_size = 0
        self.buffer_count = 0
        self.user_set_loaded = False
        self._stream_started = False
        self._device_started = False

    @property
    def datastream(self):
        return self._datastream

    @property
    def nodemap(self):
        return self._nodemap_remote

    @property
    def is_open(self) -> bool:
        return self._device is not None

    @property
    def is_streaming(self) -> bool:
        return self._stream_started and self._device_started

    def open(self):
        """
        Open the first openable device and prepare it for acquisition.

        Raises:
            NoDeviceFoundError: The device manager lists no device.
            DeviceNotOpenableError: No listed device can be opened.
            NoDataStreamError: The opened device has no data stream.
        """
        logger.info("Open device")
        self._device_manager.update()
        devices = list(self._device_manager.devices())

        if not devices:
            logger.error("No device found")
            raise NoDeviceFoundError()

        descriptor = next((dev for dev in devices if dev.is_openable), None)
        if descriptor is None:
            logger.error("Device could not be opened")
            raise DeviceNotOpenableError()

        self._device = descriptor.open(DeviceAccess.CONTROL)
        self.device_name = descriptor.display_name
        logger.info("Opened device %s", self.device_name)

        data_streams = self._device.data_streams()
        if not data_streams:
            logger.error("Device has no DataStream")
            raise NoDataStreamError()

        # Only the first data stream and the first node map are used
        self._datastream = data_streams[0].open()
        self._nodemap_remote = self._device.remote_node_map()

        self._load_default_user_set()
        self._allocate_buffers()

    def _load_default_user_set(self):
        """Load the default user set for untriggered continuous acquisition, if available."""
        try:
            self._nodemap_remote.enumeration(config.NODE_USER_SET_SELECTOR).set_current_entry(
                config.DEFAULT_USER_SET)
            user_set_load = self._nodemap_remote.command(config.NODE_USER_SET_LOAD)
            user_set_load.execute()
            user_set_load.wait_until_done()
            self.user_set_loaded = True
            logger.info("Loaded user set '%s'", config.DEFAULT_USER_SET)
        except Exception as e:
            # UserSet is not available
            self.user_set_loaded = False
            logger.debug("User set '%s' not loaded: %s", config.DEFAULT_USER_SET, e)

    def _allocate_buffers(self):
        """Announce and queue exactly the minimum number of buffers the stream requires."""
        self.payload_size = int(self._nodemap_remote.integer(config.NODE_PAYLOAD_SIZE).value())
        buffer_count = int(self._datastream.num_buffers_min_required())

        for _ in range(buffer_count):
            buffer = self._datastream.alloc_and_announce_buffer(self.payload_size)
            self._datastream.queue_buffer(buffer)

        self.buffer_count = buffer_count
        logger.info("Allocated %d buffers of %d bytes", buffer_count, self.payload_size)

    def lock_parameters(self):
        """Lock critical features so they cannot change during acquisition."""
        self._nodemap_remote.integer(config.NODE_PARAMS_LOCKED).set_value(1)

    def start_acquisition(self):
        """Start the data stream and the device. Blocks until the device confirms."""
        self._datastream.start_acquisition()
        self._stream_started = True
        acquisition_start = self._nodemap_remote.command(config.NODE_ACQUISITION_START)
        acquisition_start.execute()
        self._device_started = True
        acquisition_start.wait_until_done()
        logger.info("Acquisition started")

    def shutdown(self):
        """
        Stop acquisition and release all resources. Best effort: every step
        is attempted and failures are only logged.

        Must not be called while another thread still waits on the data stream.
        """
        if self._device is None:
            return
        logger.info("Releasing camera resources")

        # Stop only what was actually started, also after a failed start
        if self._device_started:
            self._try("AcquisitionStop", lambda: self._nodemap_remote.command(
                config.NODE_ACQUISITION_STOP).execute())
            self._device_started = False
        if self._stream_started:
            self._try("stop data stream", self._datastream.stop_acquisition)
            self._stream_started = False

        if self._datastream is not None:
            self._try("flush data stream", self._datastream.flush)
            self._try("revoke buffers", self._datastream.revoke_all_buffers)

        if self._nodemap_remote is not None:
            self._try("unlock parameters", lambda: self._nodemap_remote.integer(
                config.NODE_PARAMS_LOCKED).set_value(0))

        self._datastream = None
        self._nodemap_remote = None
        self._device = None
        self.buffer_count = 0

    @staticmethod
    def _try(step, action):
        try:
            action()
        except Exception as e:
            logger.warning("Cleanup step '%s' failed: %s", step, e)
