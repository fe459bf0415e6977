"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_EVENTS_LIMIT = 500

QR_PAYLOAD_PREFIX = "timeclock"
DEFAULT_QR_TOKEN_TTL_SECONDS = 60
DEFAULT_QR_TOKEN_GRACE_SECONDS = 30
DEFAULT_MIN_SECONDS_BETWEEN_SCANS = 60
DEFAULT_GEOFENCE_RADIUS_M = 100

EARTH_RADIUS_M = 6_371_000

NIGHT_START_HOUR = 21
NIGHT_END_HOUR = 6
STANDARD_DAILY_MINUTES = 480
LATE_TOLERANCE_MINUTES = 15
WORKING_DAYS_PER_WEEK = 6
DEFAULT_WORK_HOURS_PER_WEEK = 48
