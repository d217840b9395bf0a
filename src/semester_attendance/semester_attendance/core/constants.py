"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_DEBOUNCE_SECONDS = 0.1
DEFAULT_TOTAL_CLASSES = 15
DEFAULT_TIMETABLE_DAYS = 5
DEFAULT_TIMETABLE_PERIODS = 5
MAX_DAY_OF_WEEK = 7

# Absence warnings fire while the remaining allowance is at or below this value.
ABSENCE_WARNING_REMAINING = 2

# Repeated cache misses are reported every N fallback lookups.
CACHE_FALLBACK_WARN_EVERY = 10

CLASS_REMINDER_LEAD_MINUTES = 15
# period -> (hour, minute) of the class start
PERIOD_START_TIMES = {
    1: (9, 0),
    2: (10, 50),
    3: (13, 20),
    4: (15, 10),
    5: (17, 0),
}
# Periods outside the start table cannot be scheduled.
MAX_PERIOD = max(PERIOD_START_TIMES)

# (month, day) boundaries of the two semester halves
FIRST_HALF_START = (4, 1)
FIRST_HALF_END = (9, 30)
SECOND_HALF_START = (10, 1)
SECOND_HALF_END = (3, 31)
