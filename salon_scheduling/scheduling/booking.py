# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Booking Validation Service

Answers "can this employee be booked for this exact range" immediately before
an appointment is created or rescheduled, and commits appointment changes
only after that check passes.

Flujo:
1. La UI muestra slots (solo informativos, no reservan nada)
2. Antes de crear/reprogramar se valida de nuevo contra las citas actuales
3. Si la validación no puede confirmarse, no se reserva
"""

import logging
from datetime import datetime, date
from typing import Any, Dict, List, Optional, Union

from salon_scheduling.api.shared.validators import (
	validate_datetime,
	validate_docname,
	validate_time_range,
)
from salon_scheduling.exceptions import BookingConflictError, ValidationError
from salon_scheduling.models import Appointment, BookingConflict, BookingValidation, TimeSlot
from salon_scheduling.scheduling.availability import get_availability_slots_for_day, is_within_intervals
from salon_scheduling.scheduling.overlap import find_conflicts
from salon_scheduling.scheduling.slots import Clock, _get_settings, generate_slots, resolve_now
from salon_scheduling.scheduling.status import (
	AppointmentStatus,
	StatusLike,
	can_edit_notes,
	is_terminal,
	validate_transition,
)
from salon_scheduling.scheduling.working_hours import ScheduleSettings
from salon_scheduling.utils import day_bounds, get_timezone, minutes_between

logger = logging.getLogger(__name__)

UNABLE_REASON = "Unable to validate booking at this time"
BOOKED_REASON = "Time slot is already booked"
CLOSED_REASON = "Employee is unavailable on this date"
OUTSIDE_HOURS_REASON = "Time is outside working hours"
REJECTED_REASON = "Booking was rejected"
PAST_REASON = "Cannot book a time in the past"
MAX_SUGGESTIONS = 5


def validate_booking(
	api,
	employee_id: str,
	service_id: Optional[str],
	start: Union[datetime, str],
	end: Union[datetime, str],
	exclude_appointment_id: Optional[str] = None,
	settings: Optional[ScheduleSettings] = None,
	clock: Optional[Clock] = None
) -> BookingValidation:
	"""
	Valida una reserva propuesta.

	Args:
		api: SalonApi
		employee_id: empleado
		service_id: servicio a reservar
		start: inicio propuesto
		end: fin propuesto
		exclude_appointment_id: cita que se está reprogramando
		settings: ScheduleSettings (por defecto, la del entorno)
		clock: reloj inyectado

	Returns:
		BookingValidation. Cualquier falla remota produce valid=False con
		reason; nunca lanza por errores de red/backend.

	Raises:
		ValidationError: entrada inválida (antes de llamar al backend)

	Algoritmo:
		1. Validar entrada (end > start)
		2. Validación remota + citas del empleado para el/los días del rango
		3. Conflictos = remotos ∪ locales (solo status bloqueantes, excluyendo
		   la cita reprogramada), ordenados por inicio
		4. Reglas locales: cierre, horario, horizonte, anticipación mínima
		5. Si hay conflictos, adjuntar hasta 5 sugerencias disponibles
	"""
	employee_id = validate_docname(employee_id, "employee_id")
	settings = _get_settings(settings)
	tz = get_timezone(settings.timezone)

	start = validate_datetime(start, "scheduled_start", tz)
	end = validate_datetime(end, "scheduled_end", tz)
	validate_time_range(start, end)

	now = resolve_now(clock, tz)
	local_date = start.astimezone(tz).date()
	range_start, _ = day_bounds(local_date, tz)
	_, range_end = day_bounds(end.astimezone(tz).date(), tz)

	try:
		appointments = api.fetch_appointments(employee_id=employee_id, date_range=(range_start, range_end))
	except Exception as e:
		logger.error(f"Error fetching appointments to validate booking for {employee_id}: {e}")
		return BookingValidation(valid=False, reason=UNABLE_REASON)

	local_conflicts = find_conflicts(
		appointments,
		start,
		end,
		employee_id=employee_id,
		exclude_appointment=exclude_appointment_id
	)

	try:
		remote = api.validate_booking(employee_id, service_id, start, end, exclude_appointment_id)
	except Exception as e:
		logger.error(f"Error validating booking for employee {employee_id}: {e}")
		return BookingValidation(
			valid=False,
			conflicts=_merge_conflicts([], local_conflicts, exclude_appointment_id),
			reason=UNABLE_REASON
		)

	conflicts = _merge_conflicts(remote.conflicts, local_conflicts, exclude_appointment_id)

	if conflicts:
		suggestions = remote.suggestions or _suggest_slots(
			api, employee_id, local_date, minutes_between(start, end), service_id, settings, clock
		)
		logger.info(
			f"Booking conflict for employee {employee_id} at {start.isoformat()}: "
			f"{', '.join(c.id for c in conflicts)}"
		)
		return BookingValidation(
			valid=False,
			conflicts=conflicts,
			suggestions=suggestions,
			reason=(remote.reason if not remote.valid and remote.reason else BOOKED_REASON)
		)

	local_reason = _check_schedule_rules(settings, start, end, service_id, now, tz)
	if local_reason:
		return BookingValidation(valid=False, reason=local_reason)

	if not remote.valid:
		return BookingValidation(
			valid=False,
			suggestions=remote.suggestions,
			reason=remote.reason or REJECTED_REASON
		)

	return BookingValidation(valid=True)


def _merge_conflicts(
	remote_conflicts: List[BookingConflict],
	local_conflicts: List[Appointment],
	exclude_appointment_id: Optional[str]
) -> List[BookingConflict]:
	"""Une conflictos remotos y locales sin duplicar ids."""
	merged: Dict[str, BookingConflict] = {}

	for appt in local_conflicts:
		merged[appt.id] = BookingConflict(
			id=appt.id,
			scheduled_start=appt.scheduled_start,
			scheduled_end=appt.scheduled_end
		)

	for conflict in remote_conflicts:
		if conflict.id == exclude_appointment_id:
			continue
		merged.setdefault(conflict.id, conflict)

	return sorted(merged.values(), key=lambda c: (c.scheduled_start, c.id))


def _check_schedule_rules(
	settings: ScheduleSettings,
	start: datetime,
	end: datetime,
	service_id: Optional[str],
	now: datetime,
	tz
) -> Optional[str]:
	"""Reglas de horario que no dependen de otras citas."""
	local_date = start.astimezone(tz).date()

	if settings.is_closed(local_date):
		return CLOSED_REASON

	bookable = get_availability_slots_for_day(settings, local_date, service_id)
	if not is_within_intervals(start, end, bookable):
		return OUTSIDE_HOURS_REASON

	if settings.beyond_booking_horizon(local_date, now.astimezone(tz).date()):
		return f"Bookings can only be made {settings.advance_booking_days} days in advance"

	if start < now:
		return PAST_REASON

	lead_hours = settings.min_lead_time_hours
	if lead_hours and minutes_between(now, start) < lead_hours * 60:
		return f"Bookings require at least {lead_hours:g} hour(s) advance notice"

	return None


def _suggest_slots(
	api,
	employee_id: str,
	target_date: date,
	duration_minutes: int,
	service_id: Optional[str],
	settings: ScheduleSettings,
	clock: Optional[Clock]
) -> List[TimeSlot]:
	"""Hasta MAX_SUGGESTIONS slots disponibles del mismo día ([] si falla)."""
	try:
		slots = generate_slots(
			api,
			employee_id,
			target_date,
			duration_minutes,
			service_id=service_id,
			settings=settings,
			clock=clock
		)
	except Exception as e:
		logger.warning(f"Could not build booking suggestions for {employee_id}: {e}")
		return []

	return [slot for slot in slots if slot.available][:MAX_SUGGESTIONS]


# ===== COMMIT HELPERS =====


def book_appointment(
	api,
	salon_id: str,
	employee_id: str,
	start: Union[datetime, str],
	end: Union[datetime, str],
	service_id: Optional[str] = None,
	customer_id: Optional[str] = None,
	notes: Optional[str] = None,
	metadata: Optional[Dict[str, Any]] = None,
	settings: Optional[ScheduleSettings] = None,
	clock: Optional[Clock] = None
) -> Appointment:
	"""
	Crea una cita después de re-validar la reserva.

	Returns:
		Appointment creada (status pending)

	Raises:
		ValidationError: entrada inválida
		BookingConflictError: la validación no confirmó la reserva
		ApiError: falla al crear la cita
	"""
	salon_id = validate_docname(salon_id, "salon_id")
	validation = validate_booking(api, employee_id, service_id, start, end, settings=settings, clock=clock)
	if not validation.valid:
		raise BookingConflictError(validation)

	tz = get_timezone(_get_settings(settings).timezone)
	payload = {
		"salonId": salon_id,
		"customerId": customer_id,
		"serviceId": service_id,
		"salonEmployeeId": employee_id,
		"scheduledStart": validate_datetime(start, "scheduled_start", tz).isoformat(),
		"scheduledEnd": validate_datetime(end, "scheduled_end", tz).isoformat(),
		"status": AppointmentStatus.PENDING.value,
		"notes": notes,
		"metadata": metadata,
	}
	appointment = api.create_appointment({k: v for k, v in payload.items() if v is not None})

	logger.info(f"Appointment {appointment.id} booked for employee {employee_id} at {payload['scheduledStart']}")
	return appointment


def reschedule_appointment(
	api,
	appointment: Appointment,
	start: Union[datetime, str],
	end: Union[datetime, str],
	settings: Optional[ScheduleSettings] = None,
	clock: Optional[Clock] = None
) -> Appointment:
	"""
	Mueve una cita a otro rango, excluyéndola de sus propios conflictos.

	Raises:
		ValidationError: cita terminal, sin empleado o entrada inválida
		BookingConflictError: el nuevo rango no está disponible
	"""
	if is_terminal(appointment.status):
		raise ValidationError(f"Cannot reschedule a {appointment.status.value} appointment")

	employee_id = appointment.employee_id
	if not employee_id:
		raise ValidationError(f"Appointment {appointment.id} has no assigned employee")

	validation = validate_booking(
		api,
		employee_id,
		appointment.service_id,
		start,
		end,
		exclude_appointment_id=appointment.id,
		settings=settings,
		clock=clock
	)
	if not validation.valid:
		raise BookingConflictError(validation)

	tz = get_timezone(_get_settings(settings).timezone)
	return api.update_appointment(appointment.id, {
		"scheduledStart": validate_datetime(start, "scheduled_start", tz).isoformat(),
		"scheduledEnd": validate_datetime(end, "scheduled_end", tz).isoformat(),
	})


def change_status(api, appointment: Appointment, target: StatusLike) -> Appointment:
	"""
	Aplica un cambio de status permitido por la máquina de estados.

	Raises:
		InvalidTransitionError: transición no permitida
	"""
	new_status = validate_transition(appointment.status, target)
	logger.info(f"Appointment {appointment.id}: {appointment.status.value} -> {new_status.value}")
	return api.update_appointment(appointment.id, {"status": new_status.value})


def update_notes(api, appointment: Appointment, notes: Optional[str]) -> Appointment:
	"""Edita notas; permitido también en citas terminales."""
	can_edit_notes(appointment.status)
	return api.update_appointment(appointment.id, {"notes": notes})
