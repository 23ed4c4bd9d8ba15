# config.py

# ================== WINDOW SETTINGS ==================
WINDOW_TITLE = "IDS peak Live Viewer"
WINDOW_WIDTH = 1280
WINDOW_HEIGHT = 800

DISPLAY_MIN_WIDTH = 640
DISPLAY_MIN_HEIGHT = 480

# Maximum lines kept in the log panel
LOG_PANEL_MAX_LINES = 500

# ================== CAMERA SETTINGS ==================
# User set loaded before acquisition (skipped if the camera has no user sets)
DEFAULT_USER_SET = "Default"

# Target format for display conversion
TARGET_PIXEL_FORMAT = "BGR8"

# Timeout for a single WaitForFinishedBuffer call
BUFFER_TIMEOUT_MS = 1000

# How long closing the window waits for the acquisition thread
THREAD_JOIN_TIMEOUT_MS = 2000

# Interval for the frame rate display
FPS_UPDATE_INTERVAL_S = 1.0

# ================== GENICAM NODE NAMES ==================
NODE_USER_SET_SELECTOR = "UserSetSelector"
NODE_USER_SET_LOAD = "UserSetLoad"
NODE_PAYLOAD_SIZE = "PayloadSize"
NODE_PARAMS_LOCKED = "TLParamsLocked"
NODE_ACQUISITION_START = "AcquisitionStart"
NODE_ACQUISITION_STOP = "AcquisitionStop"

# ================== LOGGING ==================
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"
LOG_DATEFMT = "%H:%M:%S"
