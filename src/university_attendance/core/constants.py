"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_MIN_ATTENDANCE_PERCENTAGE = 75
DEFAULT_WARN_AT_PERCENTAGE = 85
DEFAULT_GRACE_MINUTES = 10
MAX_GRACE_MINUTES = 60
DEFAULT_REPORT_DAYS = 30
INACTIVE_LOOKBACK_DAYS = 7

MIN_SLOT_NUMBER = 1
MAX_SLOT_NUMBER = 8

# Slot 8 has no fixed start; self-marking treats it as on time.
SLOT_START_TIMES = {
    1: time(9, 0),
    2: time(10, 0),
    3: time(11, 15),
    4: time(12, 15),
    5: time(14, 0),
    6: time(15, 0),
    7: time(16, 15),
}

DEFAULT_SLOT_TOKEN_MAX_AGE_SECONDS = 15 * 60
