"""
Overlap Detection Service

Detects scheduling conflicts (overlaps) between a proposed time range and an
employee's existing appointments, considering:
- Appointment status (only blocking statuses occupy the calendar)
- The assigned employee
- An appointment being rescheduled (never conflicts with itself)
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from salon_scheduling.models import Appointment


def intervals_overlap(
	start_a: datetime,
	end_a: datetime,
	start_b: datetime,
	end_b: datetime
) -> bool:
	"""
	Overlap de intervalos semiabiertos [start, end).

	Una cita que termina justo cuando otra empieza no se solapa.
	"""
	return start_a < end_b and start_b < end_a


def find_conflicts(
	appointments: Iterable[Appointment],
	start_datetime: datetime,
	end_datetime: datetime,
	employee_id: Optional[str] = None,
	exclude_appointment: Optional[str] = None,
	buffer_minutes: int = 0
) -> List[Appointment]:
	"""
	Filtra las citas que bloquean el rango propuesto.

	Args:
		appointments: citas existentes
		start_datetime: inicio del rango a validar
		end_datetime: fin del rango a validar
		employee_id: si se indica, ignora citas asignadas a otro empleado
		exclude_appointment: id de la cita a excluir (reprogramación)
		buffer_minutes: margen a cada lado del rango

	Returns:
		list[Appointment]: conflictos ordenados por (scheduled_start, id)

	Algoritmo:
		1. Descartar citas no bloqueantes (completed, cancelled, no_show)
		2. Descartar la cita excluida y las de otros empleados
		3. Ampliar el rango con el buffer
		4. Conservar las que cumplen start < end_datetime AND end > start_datetime
	"""
	window_start = start_datetime - timedelta(minutes=buffer_minutes)
	window_end = end_datetime + timedelta(minutes=buffer_minutes)

	conflicts = []
	for appt in appointments:
		if not appt.is_blocking:
			continue

		if exclude_appointment and appt.id == exclude_appointment:
			continue

		if employee_id and appt.employee_id and appt.employee_id != employee_id:
			continue

		if intervals_overlap(window_start, window_end, appt.scheduled_start, appt.scheduled_end):
			conflicts.append(appt)

	conflicts.sort(key=lambda a: (a.scheduled_start, a.id))
	return conflicts

