"""
Date and time helpers

Small conversions used across the scheduling and work-log services, named
after the helpers the services were first written against (getdate,
get_datetime, get_time, now_datetime, add_days).
"""

from datetime import datetime, date, time, timedelta
from typing import List, Optional, Tuple, Union

import pytz
from dateutil import parser as date_parser


def get_timezone(tz_name: Optional[str] = None) -> pytz.BaseTzInfo:
	"""Devuelve el timezone pytz para tz_name (UTC si es inválido o vacío)."""
	try:
		return pytz.timezone(tz_name or "UTC")
	except pytz.UnknownTimeZoneError:
		return pytz.UTC


def getdate(value: Union[date, datetime, str]) -> date:
	"""
	Convierte un valor a date.

	Args:
		value: date, datetime o string (YYYY-MM-DD o ISO datetime)

	Returns:
		date object

	Raises:
		ValueError: si el valor no representa un día válido
	"""
	if isinstance(value, datetime):
		return value.date()
	if isinstance(value, date):
		return value
	if isinstance(value, str):
		value = value.strip()
		if len(value) == 10:
			return date.fromisoformat(value)
		return date_parser.isoparse(value).date()
	raise ValueError(f"Cannot convert {type(value)} to date")


def get_datetime(value: Union[datetime, date, str], tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
	"""
	Convierte un valor a datetime con timezone.

	Los valores naive se localizan en tz (UTC por defecto).
	"""
	if isinstance(value, datetime):
		dt = value
	elif isinstance(value, date):
		dt = datetime.combine(value, time.min)
	elif isinstance(value, str):
		dt = date_parser.isoparse(value.strip())
	else:
		raise ValueError(f"Cannot convert {type(value)} to datetime")

	if dt.tzinfo is None:
		dt = (tz or pytz.UTC).localize(dt)
	return dt


def get_time(value: Union[time, timedelta, datetime, str]) -> time:
	"""
	Convierte diferentes formatos de hora a datetime.time.

	Args:
		value: time, timedelta (desde medianoche), datetime, "HH:MM", "HH:MM:SS"
			o un ISO datetime completo

	Returns:
		datetime.time object (sin tzinfo)
	"""
	if isinstance(value, datetime):
		return value.time().replace(tzinfo=None)
	if isinstance(value, time):
		return value.replace(tzinfo=None)
	if isinstance(value, timedelta):
		# timedelta representa tiempo desde medianoche
		return (datetime.min + value).time()
	if isinstance(value, str):
		value = value.strip()
		if "T" in value:
			return date_parser.isoparse(value).time().replace(tzinfo=None)
		parts = [int(part) for part in value.split(":")]
		if len(parts) < 2 or len(parts) > 3:
			raise ValueError(f"Invalid time '{value}'")
		return time(*parts)
	raise ValueError(f"Cannot convert {type(value)} to time")


def now_datetime(tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
	"""Hora actual con timezone."""
	return datetime.now(tz or pytz.UTC)


def add_days(value: date, days: int) -> date:
	return value + timedelta(days=days)


def combine(target_date: date, at: time, tz: pytz.BaseTzInfo) -> datetime:
	"""Une fecha y hora local y localiza en tz."""
	return tz.localize(datetime.combine(target_date, at))


def day_bounds(target_date: date, tz: pytz.BaseTzInfo) -> Tuple[datetime, datetime]:
	"""
	Límites [inicio, fin) del día calendario local.

	El fin es la medianoche del día siguiente, así los días con cambio de
	horario tienen 23 o 25 horas.
	"""
	start = combine(target_date, time.min, tz)
	end = combine(add_days(target_date, 1), time.min, tz)
	return start, end


def date_range(start_date: date, end_date: date) -> List[date]:
	"""Lista inclusiva de fechas entre start_date y end_date."""
	dates = []
	current = start_date
	while current <= end_date:
		dates.append(current)
		current = add_days(current, 1)
	return dates


def minutes_between(start: datetime, end: datetime) -> int:
	"""Minutos redondeados entre dos instantes."""
	return int(round((end - start).total_seconds() / 60))


def format_time_12h(value: datetime) -> str:
	"""8:05 AM"""
	return value.strftime("%I:%M %p").lstrip("0")
