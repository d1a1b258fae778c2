# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Working Hours Templates

Plantilla semanal de horario por empleado, con overrides por servicio,
pausas, excepciones por fecha y reglas de reserva:
- Closed: cierra todo el día o un rango
- Blocked: bloquea un rango
- Extra Availability: agrega disponibilidad adicional
"""

from dataclasses import dataclass, field
from datetime import date, time
from typing import Dict, List, Optional

from salon_scheduling.exceptions import ValidationError
from salon_scheduling.utils import add_days, get_time

EXCEPTION_TYPES = ("Closed", "Blocked", "Extra Availability")


@dataclass
class BreakPeriod:
	start_time: time
	end_time: time

	def __post_init__(self) -> None:
		self.start_time = get_time(self.start_time)
		self.end_time = get_time(self.end_time)


@dataclass
class WorkingHours:
	"""
	Horario de un día.

	Validations:
	- start_time < end_time
	- Each break: start_time < end_time, inside the working hours
	- No overlapping breaks
	"""

	start_time: time
	end_time: time
	breaks: List[BreakPeriod] = field(default_factory=list)

	def __post_init__(self) -> None:
		self.start_time = get_time(self.start_time)
		self.end_time = get_time(self.end_time)
		self.breaks = [
			b if isinstance(b, BreakPeriod) else BreakPeriod(**b)
			for b in self.breaks
		]
		self.validate()

	def validate(self) -> None:
		self._validate_times()
		self._validate_breaks_inside()
		self._validate_no_overlapping_breaks()

	def _validate_times(self) -> None:
		"""Valida que start_time < end_time."""
		if self.start_time >= self.end_time:
			raise ValidationError(
				f"Working hours start ({self.start_time:%H:%M}) must be before end ({self.end_time:%H:%M})"
			)

	def _validate_breaks_inside(self) -> None:
		for b in self.breaks:
			if b.start_time >= b.end_time:
				raise ValidationError(f"Break {b.start_time:%H:%M}-{b.end_time:%H:%M} has no duration")
			if b.start_time < self.start_time or b.end_time > self.end_time:
				raise ValidationError(f"Break {b.start_time:%H:%M}-{b.end_time:%H:%M} is outside working hours")

	def _validate_no_overlapping_breaks(self) -> None:
		ordered = sorted(self.breaks, key=lambda b: b.start_time)
		for previous, current in zip(ordered, ordered[1:]):
			if current.start_time < previous.end_time:
				raise ValidationError(
					f"Breaks {previous.start_time:%H:%M}-{previous.end_time:%H:%M} and "
					f"{current.start_time:%H:%M}-{current.end_time:%H:%M} overlap"
				)


@dataclass
class ScheduleException:
	"""
	Override de disponibilidad para una fecha.

	Validations:
	- exception_type in EXCEPTION_TYPES
	- start_time < end_time (si ambos están presentes)
	- Extra Availability requiere start_time y end_time
	"""

	date: date
	exception_type: str
	start_time: Optional[time] = None
	end_time: Optional[time] = None
	reason: Optional[str] = None

	def __post_init__(self) -> None:
		if isinstance(self.date, str):
			self.date = date.fromisoformat(self.date)
		if self.start_time is not None:
			self.start_time = get_time(self.start_time)
		if self.end_time is not None:
			self.end_time = get_time(self.end_time)
		self.validate()

	def validate(self) -> None:
		if self.exception_type not in EXCEPTION_TYPES:
			raise ValidationError(f"Unknown exception type '{self.exception_type}'")

		if self.start_time and self.end_time and self.start_time >= self.end_time:
			raise ValidationError("Exception start_time must be before end_time")

		if self.exception_type == "Extra Availability" and not (self.start_time and self.end_time):
			raise ValidationError("Extra Availability requires start_time and end_time")

	@property
	def is_full_day_closure(self) -> bool:
		return self.exception_type == "Closed" and not (self.start_time and self.end_time)


def _default_hours() -> WorkingHours:
	return WorkingHours(time(9, 0), time(18, 0))


@dataclass
class ScheduleSettings:
	"""
	Configuración de horarios y reglas de reserva.

	weekly y service_hours usan weekday de Python (0 = lunes). Un día ausente
	de weekly usa default_hours; un día presente con None es día libre.
	"""

	timezone: str = "UTC"
	default_hours: Optional[WorkingHours] = field(default_factory=_default_hours)
	weekly: Dict[int, Optional[WorkingHours]] = field(default_factory=dict)
	service_hours: Dict[str, Dict[int, Optional[WorkingHours]]] = field(default_factory=dict)
	exceptions: List[ScheduleException] = field(default_factory=list)
	default_slot_minutes: int = 30
	buffer_minutes: int = 0
	min_lead_time_hours: float = 0
	advance_booking_days: Optional[int] = None

	def __post_init__(self) -> None:
		for weekday in list(self.weekly) + [d for days in self.service_hours.values() for d in days]:
			if weekday not in range(7):
				raise ValidationError(f"Invalid weekday {weekday}")
		if self.buffer_minutes < 0 or self.min_lead_time_hours < 0:
			raise ValidationError("Buffer and lead time must not be negative")

	def working_hours_for(self, target_date: date, service_id: Optional[str] = None) -> Optional[WorkingHours]:
		"""
		Resuelve el horario que aplica a una fecha.

		Prioridad: plantilla del servicio > plantilla semanal > default_hours.

		Returns:
			WorkingHours o None si es día libre
		"""
		weekday = target_date.weekday()

		if service_id and service_id in self.service_hours:
			template = self.service_hours[service_id]
			if weekday in template:
				return template[weekday]

		if weekday in self.weekly:
			return self.weekly[weekday]

		return self.default_hours

	def exceptions_for(self, target_date: date) -> List[ScheduleException]:
		return [exc for exc in self.exceptions if exc.date == target_date]

	def is_closed(self, target_date: date) -> bool:
		return any(exc.is_full_day_closure for exc in self.exceptions_for(target_date))

	def beyond_booking_horizon(self, target_date: date, today: date) -> bool:
		"""True si la fecha supera advance_booking_days desde hoy."""
		if not self.advance_booking_days:
			return False
		return target_date > add_days(today, self.advance_booking_days)
