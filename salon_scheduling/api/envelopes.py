"""
Response Envelope Adapters

The salon backend has been observed answering the same endpoint as a bare
array, as {"data": [...]}, or double wrapped as {"data": {"data": [...]}}
depending on which interceptors are active. Every remote call goes through
exactly one adapter here, which returns canonical models. Malformed records
are dropped with a warning instead of reaching the scheduling logic.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from salon_scheduling.exceptions import ApiError
from salon_scheduling.models import (
	Appointment,
	AttendanceLog,
	BookingConflict,
	BookingValidation,
	Sale,
	TimeSlot,
	parse_flag,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Capas {"data": ...} que se pelan como máximo
MAX_ENVELOPE_DEPTH = 3


def unwrap_list(body: Any) -> List[Any]:
	"""
	Extrae la lista de registros de una respuesta.

	Formas soportadas:
		[...]
		{"data": [...], "meta": {...}}
		{"data": {"data": [...], "meta": {...}}}

	Returns:
		list: registros crudos ([] si la forma no es reconocida)
	"""
	current = body
	for _ in range(MAX_ENVELOPE_DEPTH):
		if isinstance(current, list):
			return current
		if isinstance(current, dict) and "data" in current:
			current = current["data"]
			continue
		break

	if isinstance(current, list):
		return current

	if body not in (None, "", {}):
		logger.warning(f"Unexpected list response shape: {type(body).__name__}")
	return []


def unwrap_object(body: Any, marker: str) -> Optional[Dict[str, Any]]:
	"""
	Extrae un objeto identificado por una clave marcadora.

	Formas soportadas:
		{"<marker>": ...}
		{"data": {"<marker>": ...}}
		{"data": {"data": {"<marker>": ...}}}
	"""
	current = body
	for _ in range(MAX_ENVELOPE_DEPTH):
		if not isinstance(current, dict):
			return None
		if marker in current:
			return current
		current = current.get("data")
	return None


def _parse_records(items: List[Any], model: Type[ModelT], label: str) -> List[ModelT]:
	records = []
	for item in items:
		try:
			records.append(model.model_validate(item))
		except ModelValidationError as e:
			logger.warning(f"Dropping malformed {label}: {e.error_count()} error(s) - {e.errors()[0]['msg']}")
	return records


def normalize_appointments(body: Any) -> List[Appointment]:
	return _parse_records(unwrap_list(body), Appointment, "appointment")


def normalize_appointment(body: Any) -> Appointment:
	"""
	Adapter de una cita individual (create/update/detail).

	Raises:
		ApiError: si la respuesta no contiene una cita válida
	"""
	payload = unwrap_object(body, "scheduledStart") or unwrap_object(body, "id")
	if payload is None:
		raise ApiError("Appointment response has no appointment payload")

	try:
		return Appointment.model_validate(payload)
	except ModelValidationError as e:
		raise ApiError(f"Malformed appointment in response: {e.errors()[0]['msg']}") from e


def normalize_slots(body: Any) -> List[TimeSlot]:
	"""
	Adapter de slots remotos.

	El flag available puede llegar como bool o como string; TimeSlot lo
	normaliza y descarta el slot si no es interpretable.
	"""
	slots = _parse_records(unwrap_list(body), TimeSlot, "time slot")
	slots.sort(key=lambda s: (s.start_time, s.end_time))
	return slots


def normalize_validation(body: Any) -> BookingValidation:
	"""
	Adapter de la respuesta de validación de reserva.

	Una respuesta sin "valid" interpretable se trata como no válida: nunca se
	asume que la reserva es posible.
	"""
	payload = unwrap_object(body, "valid")
	if payload is None:
		logger.warning("Booking validation response has no 'valid' flag")
		return BookingValidation(valid=False, reason="Unknown error")

	try:
		valid = parse_flag(payload.get("valid"))
	except ValueError:
		logger.warning(f"Uninterpretable 'valid' flag: {payload.get('valid')!r}")
		return BookingValidation(valid=False, reason="Unknown error")

	return BookingValidation(
		valid=valid,
		conflicts=_parse_records(payload.get("conflicts") or [], BookingConflict, "booking conflict"),
		suggestions=_parse_records(payload.get("suggestions") or [], TimeSlot, "suggested slot"),
		reason=payload.get("reason"),
	)


def _expand_attendance(item: Any) -> List[Any]:
	"""
	Convierte un registro de sesión ({clockIn, clockOut}) en logs tipados.

	Los registros que ya traen type/recordedAt pasan sin cambios.
	"""
	if not isinstance(item, dict) or "type" in item or "clockIn" not in item:
		return [item]

	base = {
		"employeeId": item.get("employeeId"),
		"source": item.get("source"),
		"notes": item.get("notes"),
	}
	logs = [{**base, "id": f"{item.get('id')}-in", "type": "clock_in", "recordedAt": item.get("clockIn")}]
	if item.get("clockOut"):
		logs.append({**base, "id": f"{item.get('id')}-out", "type": "clock_out", "recordedAt": item.get("clockOut")})
	return logs


def normalize_attendance(body: Any) -> List[AttendanceLog]:
	items = []
	for item in unwrap_list(body):
		items.extend(_expand_attendance(item))

	logs = _parse_records(items, AttendanceLog, "attendance log")
	logs.sort(key=lambda log: (log.recorded_at, log.id))
	return logs


def normalize_current_attendance(body: Any) -> Optional[AttendanceLog]:
	"""
	Adapter de la asistencia abierta.

	Returns:
		AttendanceLog de clock-in, o None si el empleado no está fichado
	"""
	payload = unwrap_object(body, "type") or unwrap_object(body, "clockIn")
	if payload is None:
		return None

	# Sesión ya cerrada: no hay asistencia abierta
	if payload.get("clockOut"):
		return None

	logs = _parse_records(_expand_attendance(payload), AttendanceLog, "current attendance")
	open_logs = [log for log in logs if log.type.value == "clock_in"]
	return open_logs[0] if open_logs else None


def normalize_sales(body: Any) -> List[Sale]:
	return _parse_records(unwrap_list(body), Sale, "sale")
