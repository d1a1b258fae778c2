"""
Slot Generation Service

Generates discrete time slots for one employee and one date, considering:
- Remote slot data (must exist for the day to be bookable)
- Working-hours template, breaks and schedule exceptions
- Existing blocking appointments
- Lead time, buffer time and booking horizon
"""

import logging
from datetime import datetime, date, timedelta
from typing import Callable, Dict, List, Optional, Union

from salon_scheduling.api.shared.validators import validate_date, validate_docname, validate_duration
from salon_scheduling.exceptions import ValidationError
from salon_scheduling.models import DayAvailability, DayAvailabilityStatus, TimeSlot
from salon_scheduling.scheduling.availability import (
	get_availability_slots_for_day,
	get_blocked_periods,
	get_working_window,
	is_within_intervals,
)
from salon_scheduling.scheduling.overlap import find_conflicts, intervals_overlap
from salon_scheduling.scheduling.working_hours import ScheduleSettings
from salon_scheduling.utils import combine, date_range, day_bounds, get_timezone, now_datetime

logger = logging.getLogger(__name__)

PAST_REASON = "Past time slot"
OUTSIDE_HOURS_REASON = "Outside working hours"
BOOKED_REASON = "Already booked"
BUFFER_REASON = "Buffer time required"

Clock = Callable[[], datetime]


def resolve_now(clock: Optional[Clock], tz) -> datetime:
	"""Hora actual desde el reloj inyectado (o el del sistema), con timezone."""
	current = clock() if clock else now_datetime(tz)
	if current.tzinfo is None:
		current = tz.localize(current)
	return current


def _get_settings(settings: Optional[ScheduleSettings]) -> ScheduleSettings:
	if settings is not None:
		return settings
	from salon_scheduling.config import get_settings
	return get_settings()


def generate_slots(
	api,
	employee_id: str,
	target_date: Union[date, str],
	duration_minutes: int,
	service_id: Optional[str] = None,
	settings: Optional[ScheduleSettings] = None,
	clock: Optional[Clock] = None
) -> List[TimeSlot]:
	"""
	Genera los slots de un empleado para una fecha.

	Args:
		api: SalonApi
		employee_id: empleado
		target_date: fecha (date object o string YYYY-MM-DD)
		duration_minutes: duración del servicio, también granularidad del slot
		service_id: servicio (puede cambiar la plantilla de horario)
		settings: ScheduleSettings (por defecto, la del entorno)
		clock: reloj inyectado, devuelve la hora actual

	Returns:
		list[TimeSlot]: slots contiguos, ordenados y sin solaparse. Una lista
		vacía significa "nada reservable"; un ApiError significa falla real.

	Algoritmo:
		1. Validar entrada (antes de cualquier llamada remota)
		2. Obtener slots remotos; sin datos utilizables -> []
		3. Resolver la ventana de trabajo del día; día libre/cerrado -> []
		4. Obtener citas del empleado para el día
		5. Generar slots cada duration_minutes dentro de la ventana
		6. Marcar disponibilidad: pasado, pausa/bloqueo, fuera de horario
		   (local, o sin slot remoto que empiece a la misma hora), reservado,
		   buffer, reporte remoto
	"""
	employee_id = validate_docname(employee_id, "employee_id")
	target_date = validate_date(target_date, "date")
	duration_minutes = validate_duration(duration_minutes)

	settings = _get_settings(settings)
	tz = get_timezone(settings.timezone)
	now = resolve_now(clock, tz)

	remote_slots = api.fetch_slots(employee_id, target_date, duration_minutes, service_id)
	if not remote_slots:
		logger.info(f"No remote slot data for employee {employee_id} on {target_date}")
		return []

	if settings.beyond_booking_horizon(target_date, now.astimezone(tz).date()):
		return []

	window = get_working_window(settings, target_date, service_id)
	if not window:
		return []

	day_start, day_end = day_bounds(target_date, tz)
	appointments = api.fetch_appointments(employee_id=employee_id, date_range=(day_start, day_end))

	bookable = get_availability_slots_for_day(settings, target_date, service_id)
	blocked = get_blocked_periods(settings, target_date, service_id)
	remote_by_start = _index_remote_slots(remote_slots, target_date, tz)
	earliest_booking = now + timedelta(hours=settings.min_lead_time_hours)

	slots = []
	step = timedelta(minutes=duration_minutes)
	current_slot_start = window["start"]

	while current_slot_start + step <= window["end"]:
		current_slot_end = current_slot_start + step
		remote_slot = remote_by_start.get(current_slot_start)

		reason = _unavailability_reason(
			current_slot_start,
			current_slot_end,
			employee_id=employee_id,
			appointments=appointments,
			bookable=bookable,
			blocked=blocked,
			earliest_booking=earliest_booking,
			buffer_minutes=settings.buffer_minutes,
			remote_slot=remote_slot,
		)

		slots.append(TimeSlot(
			start_time=current_slot_start.time(),
			end_time=current_slot_end.time(),
			available=reason is None,
			reason=reason,
			price=remote_slot.price if remote_slot else None,
		))

		current_slot_start = current_slot_end

	return slots


def _index_remote_slots(remote_slots: List[TimeSlot], target_date: date, tz) -> Dict[datetime, TimeSlot]:
	"""Slots remotos indexados por inicio local; el primero gana."""
	index = {}
	for slot in remote_slots:
		start = combine(target_date, slot.start_time, tz)
		index.setdefault(start, slot)
	return index


def _unavailability_reason(
	slot_start: datetime,
	slot_end: datetime,
	employee_id: str,
	appointments,
	bookable,
	blocked,
	earliest_booking: datetime,
	buffer_minutes: int,
	remote_slot: Optional[TimeSlot]
) -> Optional[str]:
	"""
	Motivo por el que un slot no es reservable (None si está disponible).

	Se evalúa en orden y gana el primer motivo.
	"""
	if slot_start < earliest_booking:
		return PAST_REASON

	for period in blocked:
		if intervals_overlap(slot_start, slot_end, period["start"], period["end"]):
			return period["reason"]

	if remote_slot is None or not is_within_intervals(slot_start, slot_end, bookable):
		return OUTSIDE_HOURS_REASON

	if find_conflicts(appointments, slot_start, slot_end, employee_id=employee_id):
		return BOOKED_REASON

	if buffer_minutes > 0 and find_conflicts(
		appointments, slot_start, slot_end, employee_id=employee_id, buffer_minutes=buffer_minutes
	):
		return BUFFER_REASON

	if not remote_slot.available:
		return remote_slot.reason

	return None


def get_day_availability(
	api,
	employee_id: str,
	start_date: Union[date, str],
	end_date: Union[date, str],
	duration_minutes: Optional[int] = None,
	service_id: Optional[str] = None,
	settings: Optional[ScheduleSettings] = None,
	clock: Optional[Clock] = None
) -> List[DayAvailability]:
	"""
	Resumen de disponibilidad por día para un rango de fechas.

	Returns:
		list[DayAvailability]: un registro por fecha, en orden
	"""
	start_date = validate_date(start_date, "start_date")
	end_date = validate_date(end_date, "end_date")
	if start_date > end_date:
		raise ValidationError("start_date must not be after end_date")

	settings = _get_settings(settings)
	duration_minutes = duration_minutes or settings.default_slot_minutes

	availability = []
	for current_date in date_range(start_date, end_date):
		slots = generate_slots(
			api,
			employee_id,
			current_date,
			duration_minutes,
			service_id=service_id,
			settings=settings,
			clock=clock,
		)
		total_slots = len(slots)
		available_slots = sum(1 for slot in slots if slot.available)

		if available_slots == 0:
			status = DayAvailabilityStatus.FULLY_BOOKED if total_slots else DayAvailabilityStatus.UNAVAILABLE
		elif available_slots < total_slots:
			status = DayAvailabilityStatus.PARTIALLY_BOOKED
		else:
			status = DayAvailabilityStatus.AVAILABLE

		availability.append(DayAvailability(
			date=current_date,
			status=status,
			total_slots=total_slots,
			available_slots=available_slots,
		))

	return availability
