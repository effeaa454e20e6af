import os

# Thresholds
UPPER_THRESHOLD = 80        # percent, alert when plugged in at/above this
LOWER_THRESHOLD = 20        # percent, alert when on battery at/below this

# Timing
POLL_INTERVAL_SECONDS = 15  # seconds between battery checks
VOICE_REPEAT_MINUTES = 1    # minutes between spoken reminders
MIN_POLL_INTERVAL_SECONDS = 1
MAX_POLL_INTERVAL_SECONDS = 3600
MAX_VOICE_REPEAT_MINUTES = 24 * 60

# Alert presentation
APP_NAME = "Battery Manager"
TRAY_REFRESH_MS = 2000

# Paths
BASE_DIR = os.path.dirname(os.path.dirname(__file__))
LOGS_DIR = os.path.join(BASE_DIR, "logs")
LOG_FILE_PREFIX = "battery-manager-"
SETTINGS_FILE = os.path.join(BASE_DIR, "settings.json")

# Logging
LOG_RETAIN_DAYS = 30
DEBUG = os.environ.get("BATTERY_MANAGER_DEBUG", "") not in ("", "0")
