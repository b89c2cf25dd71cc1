"""
Application constants and metadata.
"""

# Application info
APP_NAME = "RPi Metrics"
APP_VERSION = "0.1.0"
APP_URL = "https://github.com/rpi-metrics/rpi-metrics"

# Default values
DEFAULT_CONFIG_PATH = "/etc/rpi-metrics/config.conf"
DEFAULT_UPDATE_INTERVAL = 5.0

# Default sources
DEFAULT_CPU_TEMP_PATH = "/sys/class/thermal/thermal_zone0/temp"
DEFAULT_COOLING_DEVICE_PATH = "/sys/class/thermal/cooling_device0/cur_state"
DEFAULT_PROC_STAT_PATH = "/proc/stat"
DEFAULT_MOUNTINFO_PATH = "/proc/self/mountinfo"
DEFAULT_STORAGE_PATHS = ("/",)

# Webhook
WEBHOOK_TIMEOUT = 10.0
WEBHOOK_ERROR_BODY_LIMIT = 4 << 10
WEBHOOK_SEPARATOR_LEN = 74

# Seconds to wait for in-flight ticks on shutdown
SHUTDOWN_TIMEOUT = 15.0
