"""
Application configuration
Values are read from the environment (a .env file is loaded first)
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Try multiple paths to find .env file (project root or package directory)
env_paths = [
    Path(__file__).parent.parent / ".env",  # Project root
    Path(__file__).parent / ".env",         # Package directory
    Path(".env"),                           # Current directory
]

for env_path in env_paths:
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)
        break
else:
    load_dotenv()

# Database URL - built from DB_* components when not set explicitly
DATABASE_URL = os.getenv("DATABASE_URL")
SQLITE_FALLBACK_URL = os.getenv("SQLITE_FALLBACK_URL", "sqlite:///./data/scheduling.db")

DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "3306")
DB_USER = os.getenv("DB_USER", "root")
DB_PASSWORD = os.getenv("DB_PASSWORD", "")
DB_NAME = os.getenv("DB_NAME", "scheduling_db")

DEBUG = os.getenv("DEBUG", "False").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

BACKEND_HOST = os.getenv("BACKEND_HOST", "0.0.0.0")
BACKEND_PORT = int(os.getenv("BACKEND_PORT", 8000))

# Timezone used by the single-slot check when the caller gives none
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "UTC")

# Appointment durations (minutes)
DEFAULT_SLOT_DURATION = 30
MIN_APPOINTMENT_DURATION = 15
MAX_APPOINTMENT_DURATION = 240

# Recurring series bounds
MAX_RECURRING_OCCURRENCES = 52  # One year of weekly appointments
MAX_RECURRENCE_COUNT = 365

# Booking advice on refused or tight slots
ALTERNATIVE_SLOT_LIMIT = 3
ALTERNATIVE_SEARCH_DAYS = 7
APPOINTMENT_BUFFER_MINUTES = 15

# How far ahead a working-hours change is checked against booked appointments
SCHEDULE_CHANGE_HORIZON_DAYS = 90
