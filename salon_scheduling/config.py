import os
from datetime import time
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from salon_scheduling.scheduling.working_hours import ScheduleSettings, WorkingHours
from salon_scheduling.utils import get_time

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Remote salon API
SALON_API_BASE_URL = os.getenv("SALON_API_BASE_URL", "http://localhost:3000/api")
SALON_API_TOKEN = os.getenv("SALON_API_TOKEN")
SALON_API_TIMEOUT = float(os.getenv("SALON_API_TIMEOUT", "30"))

# Local time used for day boundaries and "today"
SALON_TIMEZONE = os.getenv("SALON_TIMEZONE", "UTC")

# Default working hours when an employee has no template
SALON_WORKDAY_START = os.getenv("SALON_WORKDAY_START", "09:00")
SALON_WORKDAY_END = os.getenv("SALON_WORKDAY_END", "18:00")
SALON_DEFAULT_SLOT_MINUTES = int(os.getenv("SALON_DEFAULT_SLOT_MINUTES", "30"))

# Booking rules, 0 / empty disables them
SALON_BUFFER_MINUTES = int(os.getenv("SALON_BUFFER_MINUTES", "0"))
SALON_MIN_LEAD_TIME_HOURS = float(os.getenv("SALON_MIN_LEAD_TIME_HOURS", "0"))
SALON_ADVANCE_BOOKING_DAYS = os.getenv("SALON_ADVANCE_BOOKING_DAYS")

# Parallel per-day fetches in work-log summaries
SALON_SUMMARY_WORKERS = int(os.getenv("SALON_SUMMARY_WORKERS", "8"))


def _parse_time(value: str, fallback: time) -> time:
	try:
		return get_time(value)
	except ValueError:
		return fallback


def get_settings(timezone: Optional[str] = None) -> ScheduleSettings:
	"""Build ScheduleSettings from the environment."""
	default_hours = WorkingHours(
		_parse_time(SALON_WORKDAY_START, time(9, 0)),
		_parse_time(SALON_WORKDAY_END, time(18, 0)),
	)
	return ScheduleSettings(
		timezone=timezone or SALON_TIMEZONE,
		default_hours=default_hours,
		default_slot_minutes=SALON_DEFAULT_SLOT_MINUTES,
		buffer_minutes=SALON_BUFFER_MINUTES,
		min_lead_time_hours=SALON_MIN_LEAD_TIME_HOURS,
		advance_booking_days=int(SALON_ADVANCE_BOOKING_DAYS) if SALON_ADVANCE_BOOKING_DAYS else None,
	)
