"""Constants for the Climate Scheduler editor."""

# Integration that owns the authoritative schedule store
DOMAIN = "climate_scheduler"

# Schedule modes
MODE_ALL_DAYS = "all_days"
MODE_5_2 = "5/2"
MODE_INDIVIDUAL = "individual"

# Buckets
BUCKET_ALL_DAYS = "all_days"
BUCKET_WEEKDAY = "weekday"
BUCKET_WEEKEND = "weekend"

# Day codes indexed by datetime.weekday() (Monday == 0)
WEEKDAYS = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]
WORKDAYS = WEEKDAYS[:5]
WEEKEND_DAYS = WEEKDAYS[5:]

ALL_BUCKETS = [BUCKET_ALL_DAYS, BUCKET_WEEKDAY, BUCKET_WEEKEND, *WEEKDAYS]

# Profiles
DEFAULT_PROFILE = "Default"

# Temperature returned by interpolation of an empty schedule. Not a real value.
DEFAULT_TEMP = 18.0

# Node substituted when no node list resolves at all
FALLBACK_NODE = {"time": "00:00", "temp": DEFAULT_TEMP}

# Default schedule nodes used to seed new schedules and for "clear"
DEFAULT_SCHEDULE = [
    {"time": "00:00", "temp": 18.0},
    {"time": "07:00", "temp": 21.0},
    {"time": "23:00", "temp": 18.0},
]

# Temperature settings (in Celsius)
MIN_TEMP = 5.0
MAX_TEMP = 30.0
# Same bounds for systems configured in Fahrenheit
MIN_TEMP_F = 42.0
MAX_TEMP_F = 86.0
TEMP_STEP = 0.5

# Node fields that carry optional climate modes
MODE_FIELDS = ["hvac_mode", "fan_mode", "swing_mode", "preset_mode"]

# Sync guard fallback when the graph never signals load completion
SETTLE_SECONDS = 0.1

# Remote store
REQUEST_TIMEOUT_SECONDS = 30

# Colors assigned to group members in the history feed
HISTORY_COLORS = [
    "#2196f3",
    "#4caf50",
    "#ff9800",
    "#e91e63",
    "#9c27b0",
    "#00bcd4",
    "#ffeb3b",
    "#795548",
]
