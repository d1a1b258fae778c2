"""
Appointment State Machine

Defines the appointment lifecycle:
- pending -> booked -> confirmed -> in_progress -> completed
- cancelled / no_show as terminal exits from any non-terminal status

Blocking statuses (the ones that occupy an employee's calendar) are derived
from this classification and consumed by overlap detection.
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Union

from salon_scheduling.exceptions import InvalidTransitionError


class AppointmentStatus(str, Enum):
	PENDING = "pending"
	BOOKED = "booked"
	CONFIRMED = "confirmed"
	IN_PROGRESS = "in_progress"
	COMPLETED = "completed"
	CANCELLED = "cancelled"
	NO_SHOW = "no_show"

	def __str__(self) -> str:
		return self.value


UPCOMING: FrozenSet[AppointmentStatus] = frozenset({
	AppointmentStatus.PENDING,
	AppointmentStatus.BOOKED,
	AppointmentStatus.CONFIRMED,
})

ACTIVE: FrozenSet[AppointmentStatus] = frozenset({AppointmentStatus.IN_PROGRESS})

TERMINAL: FrozenSet[AppointmentStatus] = frozenset({
	AppointmentStatus.COMPLETED,
	AppointmentStatus.CANCELLED,
	AppointmentStatus.NO_SHOW,
})

BLOCKING_STATUSES: FrozenSet[AppointmentStatus] = UPCOMING | ACTIVE

TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
	AppointmentStatus.PENDING: frozenset({
		AppointmentStatus.BOOKED,
		AppointmentStatus.CONFIRMED,
		AppointmentStatus.CANCELLED,
		AppointmentStatus.NO_SHOW,
	}),
	AppointmentStatus.BOOKED: frozenset({
		AppointmentStatus.CONFIRMED,
		AppointmentStatus.CANCELLED,
		AppointmentStatus.NO_SHOW,
	}),
	AppointmentStatus.CONFIRMED: frozenset({
		AppointmentStatus.IN_PROGRESS,
		AppointmentStatus.CANCELLED,
		AppointmentStatus.NO_SHOW,
	}),
	AppointmentStatus.IN_PROGRESS: frozenset({
		AppointmentStatus.COMPLETED,
		AppointmentStatus.CANCELLED,
		AppointmentStatus.NO_SHOW,
	}),
	AppointmentStatus.COMPLETED: frozenset(),
	AppointmentStatus.CANCELLED: frozenset(),
	AppointmentStatus.NO_SHOW: frozenset(),
}

# Acciones que un usuario puede disparar desde la UI (confirm, start, ...)
ACTIONS: Dict[str, AppointmentStatus] = {
	"confirm": AppointmentStatus.CONFIRMED,
	"start": AppointmentStatus.IN_PROGRESS,
	"complete": AppointmentStatus.COMPLETED,
	"cancel": AppointmentStatus.CANCELLED,
	"no_show": AppointmentStatus.NO_SHOW,
}

StatusLike = Union[AppointmentStatus, str]


def to_status(value: StatusLike) -> AppointmentStatus:
	"""
	Normaliza un status (enum o string, cualquier capitalización).

	Raises:
		ValueError: si el status no existe
	"""
	if isinstance(value, AppointmentStatus):
		return value
	return AppointmentStatus(str(value).strip().lower().replace("-", "_"))


def is_blocking(status: StatusLike) -> bool:
	return to_status(status) in BLOCKING_STATUSES


def is_upcoming(status: StatusLike) -> bool:
	return to_status(status) in UPCOMING


def is_terminal(status: StatusLike) -> bool:
	return to_status(status) in TERMINAL


def can_transition(current: StatusLike, target: StatusLike) -> bool:
	return to_status(target) in TRANSITIONS[to_status(current)]


def validate_transition(current: StatusLike, target: StatusLike) -> AppointmentStatus:
	"""
	Valida un cambio de status.

	Returns:
		AppointmentStatus destino

	Raises:
		InvalidTransitionError: si la transición no está permitida
	"""
	current_status = to_status(current)
	target_status = to_status(target)
	if target_status not in TRANSITIONS[current_status]:
		raise InvalidTransitionError(current_status, target_status)
	return target_status


def available_actions(status: StatusLike) -> List[str]:
	"""
	Acciones disparables por el usuario para un status, en el orden de ACTIONS.

	Una acción se ofrece si su status destino es una transición válida y
	además cumple su regla de UI.

	Reglas:
		- confirm, cancel, no_show: solo citas upcoming
		- start: solo confirmed
		- complete: solo in_progress

	cancel/no_show sobre in_progress quedan permitidos por TRANSITIONS pero no
	se ofrecen como acción de usuario.
	"""
	current = to_status(status)
	return [
		action for action, target in ACTIONS.items()
		if can_transition(current, target) and _offers_action(action, current)
	]


def _offers_action(action: str, current: AppointmentStatus) -> bool:
	if action == "start":
		return current == AppointmentStatus.CONFIRMED
	if action == "complete":
		return current == AppointmentStatus.IN_PROGRESS
	return current in UPCOMING


def can_edit_notes(status: StatusLike) -> bool:
	"""Las notas se pueden editar en cualquier status, incluso terminal."""
	to_status(status)
	return True
