import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

STORE_BACKEND = os.getenv("STORE_BACKEND", "mysql")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "semester_attendance"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

DEBOUNCE_SECONDS = float(os.getenv("DEBOUNCE_SECONDS", "0.1"))
NOTIFICATIONS_ENABLED = bool(int(os.getenv("NOTIFICATIONS_ENABLED", "1")))
ABSENCE_LIMIT_NOTIFICATION = bool(int(os.getenv("ABSENCE_LIMIT_NOTIFICATION", "1")))

TIMETABLE_DAYS = int(os.getenv("TIMETABLE_DAYS", "5"))
TIMETABLE_PERIODS = int(os.getenv("TIMETABLE_PERIODS", "5"))
