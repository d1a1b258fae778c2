"""
Scheduling Exceptions

Error taxonomy shared by the scheduling and work-log services:
- ValidationError: invalid input, raised before any remote call
- ApiError: transport or backend failure of a remote call
- InvalidTransitionError: appointment status change not allowed
- BookingConflictError: booking refused after re-validation
"""

from typing import Any, Optional


class SalonSchedulingError(Exception):
	"""Excepción base del paquete."""
	pass


class ValidationError(SalonSchedulingError, ValueError):
	"""Entrada inválida (duración, fechas, identificadores)."""
	pass


class ApiError(SalonSchedulingError):
	"""Falla de una llamada remota."""

	def __init__(self, message: str, status_code: Optional[int] = None):
		super().__init__(message)
		self.status_code = status_code


class InvalidTransitionError(SalonSchedulingError):
	"""Cambio de status no permitido por la máquina de estados."""

	def __init__(self, current: Any, target: Any):
		super().__init__(f"Cannot move appointment from '{current}' to '{target}'")
		self.current = current
		self.target = target


class BookingConflictError(SalonSchedulingError):
	"""La reserva no pasó la validación previa al commit."""

	def __init__(self, validation: Any):
		reason = getattr(validation, "reason", None) or "Booking could not be confirmed"
		super().__init__(reason)
		self.validation = validation
