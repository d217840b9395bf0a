import os

SECRET_KEY = "test-secret"

STORE_BACKEND = "memory"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "semester_attendance_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False

# Short window so tests that wait on the timer stay fast.
DEBOUNCE_SECONDS = 0.01
NOTIFICATIONS_ENABLED = True
ABSENCE_LIMIT_NOTIFICATION = True

TIMETABLE_DAYS = 5
TIMETABLE_PERIODS = 5
