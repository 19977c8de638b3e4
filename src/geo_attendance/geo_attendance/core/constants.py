"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

EARTH_RADIUS_KM = 6371.0
DEFAULT_GEOFENCE_RADIUS_KM = 0.1

DEFAULT_STANDARD_DAY_MINUTES = 480
DEFAULT_LATE_THRESHOLD_MINUTES = 15
DEFAULT_HALF_DAY_THRESHOLD_HOURS = 4.0
DEFAULT_MIN_WORK_HOURS_FOR_FULL_DAY = 8.0
# 0 = Sunday ... 6 = Saturday
DEFAULT_WEEKEND_DAYS = (0, 6)
DEFAULT_WORK_START = time(9, 0)
DEFAULT_WORK_END = time(18, 0)
DEFAULT_TIMEZONE = "UTC"

DEFAULT_HISTORY_DAYS = 30
DEFAULT_PAGE_SIZE = 20
DEFAULT_HISTORY_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

DEFAULT_MANUAL_ENTRY_REASON = "Manual entry by admin"
DEFAULT_UPDATE_REASON = "Updated by admin"
