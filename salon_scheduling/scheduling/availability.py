"""
Availability Service

Provides functions to calculate the effective working windows of an employee,
considering:
- Working-hours templates (weekly, per service)
- Breaks
- Schedule exceptions (closures, blocks, extra availability)
- Timezones
"""

from datetime import datetime, date
from typing import Dict, List, Optional, Union

import pytz

from salon_scheduling.scheduling.working_hours import ScheduleSettings
from salon_scheduling.utils import combine, get_timezone, getdate, date_range

BREAK_REASON = "Break time"
BLOCKED_REASON = "Unavailable"


def get_working_window(
	settings: ScheduleSettings,
	target_date: Union[date, str],
	service_id: Optional[str] = None
) -> Optional[Dict[str, datetime]]:
	"""
	Ventana completa del día (inicio de jornada a fin de jornada).

	Incluye los rangos de Extra Availability, de modo que la ventana es la
	envolvente de todo lo que puede llegar a ser reservable ese día.

	Returns:
		dict {"start": datetime, "end": datetime} o None si no se trabaja
	"""
	if isinstance(target_date, str):
		target_date = getdate(target_date)

	if settings.is_closed(target_date):
		return None

	tz = get_timezone(settings.timezone)
	hours = settings.working_hours_for(target_date, service_id)

	intervals = []
	if hours:
		intervals.append({
			"start": combine(target_date, hours.start_time, tz),
			"end": combine(target_date, hours.end_time, tz),
		})

	for exc in settings.exceptions_for(target_date):
		if exc.exception_type == "Extra Availability":
			intervals.append({
				"start": combine(target_date, exc.start_time, tz),
				"end": combine(target_date, exc.end_time, tz),
			})

	if not intervals:
		return None

	return {
		"start": min(i["start"] for i in intervals),
		"end": max(i["end"] for i in intervals),
	}


def get_blocked_periods(
	settings: ScheduleSettings,
	target_date: Union[date, str],
	service_id: Optional[str] = None
) -> List[Dict[str, object]]:
	"""
	Periodos no reservables dentro de la jornada.

	Returns:
		list[dict]: [{"start": datetime, "end": datetime, "reason": str}, ...]
		ordenados por start
	"""
	if isinstance(target_date, str):
		target_date = getdate(target_date)

	tz = get_timezone(settings.timezone)
	hours = settings.working_hours_for(target_date, service_id)
	periods = []

	if hours:
		for b in hours.breaks:
			periods.append({
				"start": combine(target_date, b.start_time, tz),
				"end": combine(target_date, b.end_time, tz),
				"reason": BREAK_REASON,
			})

	for exc in settings.exceptions_for(target_date):
		# Closed parcial y Blocked restan un rango
		if exc.exception_type in ("Closed", "Blocked") and exc.start_time and exc.end_time:
			periods.append({
				"start": combine(target_date, exc.start_time, tz),
				"end": combine(target_date, exc.end_time, tz),
				"reason": exc.reason or BLOCKED_REASON,
			})

	periods.sort(key=lambda x: x["start"])
	return periods


def get_availability_slots_for_day(
	settings: ScheduleSettings,
	target_date: Union[date, str],
	service_id: Optional[str] = None
) -> List[Dict[str, datetime]]:
	"""
	Obtiene los intervalos reservables de un día.

	Args:
		settings: ScheduleSettings del empleado
		target_date: fecha (date object o string YYYY-MM-DD)
		service_id: servicio solicitado (puede cambiar la plantilla)

	Returns:
		list[dict]: [
			{"start": datetime, "end": datetime},
			...
		]

	Algoritmo:
		1. Resolver la plantilla (servicio > semanal > default)
		2. Convertir el horario a datetime con el timezone configurado
		3. Restar pausas
		4. Aplicar excepciones (Closed, Blocked, Extra Availability)
		5. Merge intervalos adyacentes/overlapping
		6. Retornar lista ordenada
	"""
	if isinstance(target_date, str):
		target_date = getdate(target_date)

	if settings.is_closed(target_date):
		return []

	tz = get_timezone(settings.timezone)
	hours = settings.working_hours_for(target_date, service_id)

	base_intervals = []
	if hours:
		base_intervals.append({
			"start": combine(target_date, hours.start_time, tz),
			"end": combine(target_date, hours.end_time, tz),
		})

		for b in hours.breaks:
			block = {
				"start": combine(target_date, b.start_time, tz),
				"end": combine(target_date, b.end_time, tz),
			}
			new_intervals = []
			for interval in base_intervals:
				new_intervals.extend(_interval_subtract(interval, block))
			base_intervals = new_intervals

	final_intervals = _apply_exceptions(base_intervals, settings, target_date, tz)

	final_intervals = _merge_intervals(final_intervals)

	final_intervals.sort(key=lambda x: x["start"])

	return final_intervals


def get_effective_availability(
	settings: ScheduleSettings,
	start_date: Union[date, str],
	end_date: Union[date, str],
	service_id: Optional[str] = None
) -> Dict[str, List[Dict[str, datetime]]]:
	"""
	Obtiene disponibilidad efectiva para un rango de fechas.

	Returns:
		dict: {
			"2026-01-15": [{"start": datetime, "end": datetime}, ...],
			"2026-01-16": [...],
			...
		}
	"""
	if isinstance(start_date, str):
		start_date = getdate(start_date)
	if isinstance(end_date, str):
		end_date = getdate(end_date)

	result = {}
	for current_date in date_range(start_date, end_date):
		slots = get_availability_slots_for_day(settings, current_date, service_id)
		if slots:
			result[current_date.strftime("%Y-%m-%d")] = slots

	return result


def _apply_exceptions(
	intervals: List[Dict[str, datetime]],
	settings: ScheduleSettings,
	target_date: date,
	tz: pytz.BaseTzInfo
) -> List[Dict[str, datetime]]:
	"""
	Aplica excepciones (Closed/Blocked/Extra) a intervalos base.

	Returns:
		list: intervalos después de aplicar excepciones
	"""
	exceptions = settings.exceptions_for(target_date)

	if not exceptions:
		return intervals

	# Extra primero, así un Blocked del mismo día también la recorta
	extras = [exc for exc in exceptions if exc.exception_type == "Extra Availability"]
	removals = [exc for exc in exceptions if exc.exception_type in ("Closed", "Blocked")]

	for exc in extras:
		intervals.append({
			"start": combine(target_date, exc.start_time, tz),
			"end": combine(target_date, exc.end_time, tz),
		})

	for exc in removals:
		if exc.start_time and exc.end_time:
			block = {
				"start": combine(target_date, exc.start_time, tz),
				"end": combine(target_date, exc.end_time, tz),
			}
			new_intervals = []
			for interval in intervals:
				new_intervals.extend(_interval_subtract(interval, block))
			intervals = new_intervals
		else:
			# Closed todo el día
			intervals = []

	return intervals


def _merge_intervals(intervals: List[Dict[str, datetime]]) -> List[Dict[str, datetime]]:
	"""
	Une intervalos adyacentes o overlapping.

	Args:
		intervals: lista de intervalos {"start": datetime, "end": datetime}

	Returns:
		list: intervalos merged
	"""
	if not intervals:
		return []

	intervals = sorted(intervals, key=lambda x: x["start"])

	merged = [dict(intervals[0])]

	for current in intervals[1:]:
		last_merged = merged[-1]

		if current["start"] <= last_merged["end"]:
			if current["end"] > last_merged["end"]:
				last_merged["end"] = current["end"]
		else:
			merged.append(dict(current))

	return merged


def _interval_subtract(
	interval: Dict[str, datetime],
	block: Dict[str, datetime]
) -> List[Dict[str, datetime]]:
	"""
	Resta un bloqueo de un intervalo.

	Returns:
		list: lista de intervalos resultantes (puede ser 0, 1 o 2 intervalos)
	"""
	# Sin overlap
	if block["end"] <= interval["start"] or block["start"] >= interval["end"]:
		return [interval]

	# Block cubre todo
	if block["start"] <= interval["start"] and block["end"] >= interval["end"]:
		return []

	# Block cubre parte inicial
	if block["start"] <= interval["start"]:
		return [{"start": block["end"], "end": interval["end"]}]

	# Block cubre parte final
	if block["end"] >= interval["end"]:
		return [{"start": interval["start"], "end": block["start"]}]

	# Block está en medio (split en dos)
	return [
		{"start": interval["start"], "end": block["start"]},
		{"start": block["end"], "end": interval["end"]}
	]


def is_within_intervals(
	start: datetime,
	end: datetime,
	intervals: List[Dict[str, datetime]]
) -> bool:
	"""True si [start, end) cae completo dentro de algún intervalo."""
	return any(i["start"] <= start and i["end"] >= end for i in intervals)
