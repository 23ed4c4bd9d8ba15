# errors.py
#
# Exceptions raised by the camera layer. The messages of the initialization
# errors are shown to the user as-is.


class CameraError(Exception):
    """Base class for all camera related errors."""


class NoDeviceFoundError(CameraError):
    def __init__(self):
        super().__init__("No device found")


class DeviceNotOpenableError(CameraError):
    def __init__(self):
        super().__init__("This device could not be opened")


class NoDataStreamError(CameraError):
    def __init__(self):
        super().__init__("This device has no DataStream")


class NodeNotFoundError(CameraError):
    def __init__(self, name: str):
        super().__init__(f"Node '{name}' not found in node map")
        self.name = name


class NodeTypeError(CameraError):
    def __init__(self, name: str, expected, actual):
        super().__init__(f"Node '{name}' is {actual}, expected {expected}")
        self.name = name
        self.expected = expected
        self.actual = actual


class AcquisitionTimeoutError(CameraError):
    def __init__(self, timeout_ms: int):
        super().__init__(f"No buffer received within {timeout_ms} ms")
        self.timeout_ms = timeout_ms
