"""
Work-Log Aggregator

Rebuilds one employee-day from independently fetched sources:
- Appointments assigned to the employee
- Attendance logs (clock in / clock out)
- The currently open attendance session
- Sales with commission lines

A failing source degrades to empty; the day is still produced.
"""

import logging
from datetime import datetime, date, timedelta
from typing import List, Optional, Union

import pytz

from salon_scheduling import config
from salon_scheduling.api.shared.validators import validate_date, validate_docname
from salon_scheduling.models import (
	Appointment,
	AttendanceLog,
	AttendanceType,
	DayStatus,
	EntryKind,
	Sale,
	WorkLogDay,
	WorkLogEntry,
)
from salon_scheduling.scheduling.slots import Clock, resolve_now
from salon_scheduling.scheduling.status import AppointmentStatus
from salon_scheduling.utils import day_bounds, format_time_12h, get_timezone, minutes_between
from salon_scheduling.worklog.fanout import Branch, gather

logger = logging.getLogger(__name__)

TimezoneLike = Union[str, pytz.BaseTzInfo, None]


def resolve_timezone(tz: TimezoneLike) -> pytz.BaseTzInfo:
	"""Zona horaria explícita (nombre u objeto pytz) o la configurada."""
	if tz is not None and not isinstance(tz, str):
		return tz
	return get_timezone(tz or config.SALON_TIMEZONE)


def get_date_label(target_date: date, today: date) -> str:
	"""'Today', 'Yesterday' o 'Sat, Jun 1'."""
	if target_date == today:
		return "Today"
	if target_date == today - timedelta(days=1):
		return "Yesterday"
	return f"{target_date:%a}, {target_date:%b} {target_date.day}"


def get_work_log_for_date(
	api,
	employee_id: str,
	target_date: Union[date, str],
	clock: Optional[Clock] = None,
	tz: TimezoneLike = None,
	include_sales: bool = False
) -> WorkLogDay:
	"""
	Reconstruye el día de trabajo de un empleado.

	Args:
		api: SalonApi
		employee_id: empleado
		target_date: fecha (date object o string YYYY-MM-DD)
		clock: reloj inyectado, devuelve la hora actual
		tz: zona horaria para los límites del día (por defecto SALON_TIMEZONE)
		include_sales: agregar una entrada por venta a la línea de tiempo

	Returns:
		WorkLogDay

	Algoritmo:
		1. Consultar citas, asistencia, sesión abierta y ventas en paralelo
		   (una fuente que falla queda vacía)
		2. Filtrar cada fuente a [00:00, 00:00 siguiente) en hora local
		3. Clock-in: primer CLOCK_IN del día, o la sesión abierta si es hoy
		4. Clock-out: primer CLOCK_OUT desde el clock-in
		5. Minutos: hasta clock-out, o hasta ahora si es hoy, si no 0
		6. Entradas ordenadas por timestamp (orden estable)
	"""
	employee_id = validate_docname(employee_id, "employee_id")
	target_date = validate_date(target_date, "date")

	tz = resolve_timezone(tz)
	now = resolve_now(clock, tz)
	today = now.astimezone(tz).date()
	is_today = target_date == today

	day_start, day_end = day_bounds(target_date, tz)
	day_range = (day_start, day_end)

	results = gather({
		"appointments": Branch(
			lambda: api.fetch_appointments(employee_id=employee_id, date_range=day_range, mine=True),
			default=[]
		),
		"attendance": Branch(lambda: api.fetch_attendance(employee_id, day_range), default=[]),
		"current": Branch(
			lambda: api.fetch_current_attendance(employee_id) if is_today else None,
			default=None
		),
		"sales": Branch(lambda: api.fetch_sales(employee_id, day_range), default=[]),
	})

	def in_day(value: datetime) -> bool:
		return day_start <= value < day_end

	appointments = sorted(
		(
			appt for appt in results["appointments"] or []
			if in_day(appt.scheduled_start) and appt.employee_id in (None, employee_id)
		),
		key=lambda appt: (appt.scheduled_start, appt.id)
	)
	logs = sorted(
		(
			log for log in results["attendance"] or []
			if in_day(log.recorded_at) and log.employee_id in (None, employee_id)
		),
		key=lambda log: (log.recorded_at, log.id)
	)
	sales = sorted(
		(sale for sale in results["sales"] or [] if in_day(sale.created_at)),
		key=lambda sale: (sale.created_at, sale.id)
	)

	clock_in = _find_clock_in(logs, results["current"] if is_today else None, day_start)
	clock_out = _find_clock_out(logs, clock_in)

	if clock_in and clock_out:
		total_minutes = minutes_between(clock_in.recorded_at, clock_out.recorded_at)
	elif clock_in and is_today:
		total_minutes = minutes_between(clock_in.recorded_at, now)
	else:
		# Sesión abierta en un día pasado: no suma tiempo
		total_minutes = 0
	total_minutes = max(0, total_minutes)

	if clock_in and clock_out:
		status = DayStatus.COMPLETED
	elif clock_in and is_today:
		status = DayStatus.WORKING
	else:
		status = DayStatus.NOT_WORKED

	completed = [appt for appt in appointments if appt.status == AppointmentStatus.COMPLETED]
	earnings = sum(appt.service_amount or 0 for appt in completed)
	commission = sum(sale.commission_for(employee_id) for sale in sales)

	entries = _build_entries(
		target_date, tz, employee_id, clock_in, clock_out, total_minutes, appointments,
		sales if include_sales else []
	)

	logger.debug(
		f"Work log for {employee_id} on {target_date}: {status.value}, "
		f"{total_minutes} min, {len(appointments)} appointments"
	)

	return WorkLogDay(
		date=target_date,
		date_label=get_date_label(target_date, today),
		clock_in=clock_in.recorded_at if clock_in else None,
		clock_out=clock_out.recorded_at if clock_out else None,
		total_hours=round(total_minutes / 60, 1),
		total_minutes=total_minutes,
		appointments=appointments,
		completed_appointments=completed,
		earnings=earnings,
		commission=commission,
		sales=sales,
		entries=entries,
		status=status,
	)


def _find_clock_in(
	logs: List[AttendanceLog],
	current: Optional[AttendanceLog],
	day_start: datetime
) -> Optional[AttendanceLog]:
	for log in logs:
		if log.type == AttendanceType.CLOCK_IN:
			return log
	if current is None or current.type != AttendanceType.CLOCK_IN:
		return None
	# Una sesión abierta desde ayer cuenta desde la medianoche local
	if current.recorded_at < day_start:
		return current.model_copy(update={"recorded_at": day_start})
	return current


def _find_clock_out(logs: List[AttendanceLog], clock_in: Optional[AttendanceLog]) -> Optional[AttendanceLog]:
	if clock_in is None:
		return None
	for log in logs:
		if log.type == AttendanceType.CLOCK_OUT and log.recorded_at >= clock_in.recorded_at:
			return log
	return None


def _build_entries(
	target_date: date,
	tz: pytz.BaseTzInfo,
	employee_id: str,
	clock_in: Optional[AttendanceLog],
	clock_out: Optional[AttendanceLog],
	total_minutes: int,
	appointments: List[Appointment],
	sales: List[Sale]
) -> List[WorkLogEntry]:
	entries = []

	if clock_in:
		entries.append(WorkLogEntry(
			id=f"attendance-in-{target_date.isoformat()}",
			kind=EntryKind.ATTENDANCE,
			timestamp=clock_in.recorded_at,
			title="Clock In",
			description=f"Started work at {format_time_12h(clock_in.recorded_at.astimezone(tz))}",
			attendance=clock_in,
		))

	for appt in appointments:
		entries.append(WorkLogEntry(
			id=f"appointment-{appt.id}",
			kind=EntryKind.APPOINTMENT,
			timestamp=appt.scheduled_start,
			end_time=appt.scheduled_end,
			title=(appt.service.name if appt.service and appt.service.name else "Service"),
			description=(appt.customer.full_name if appt.customer and appt.customer.full_name else "Customer"),
			status=appt.status.value,
			duration=appt.duration_minutes,
			earnings=appt.service_amount,
			appointment=appt,
		))

	if clock_out:
		entries.append(WorkLogEntry(
			id=f"attendance-out-{target_date.isoformat()}",
			kind=EntryKind.ATTENDANCE,
			timestamp=clock_out.recorded_at,
			title="Clock Out",
			description=f"Finished work at {format_time_12h(clock_out.recorded_at.astimezone(tz))}",
			duration=total_minutes,
			attendance=clock_out,
		))

	for sale in sales:
		entries.append(WorkLogEntry(
			id=f"sale-{sale.id}",
			kind=EntryKind.SALE,
			timestamp=sale.created_at,
			title="Sale",
			description=f"Sale total {sale.total_amount:g}",
			status=sale.status,
			earnings=sale.commission_for(employee_id),
			sale=sale,
		))

	# sorted() es estable: a igual timestamp se conserva el orden de arriba
	return sorted(entries, key=lambda entry: entry.timestamp)
