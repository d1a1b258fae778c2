"""
Salon API Client

Contract consumed by the scheduling and work-log services (SalonApi) and its
httpx implementation against the salon backend (SalonApiClient).

Routes:
    GET   /appointments
    GET   /appointments/availability/{employeeId}/slots
    POST  /appointments/availability/validate
    POST  /appointments
    PATCH /appointments/{id}
    GET   /attendance/employee/{employeeId}
    GET   /attendance/current/{employeeId}
    GET   /sales/employee/{employeeId}
"""

import logging
from datetime import datetime, date
from typing import Any, Dict, List, Optional, Protocol, Tuple

import httpx

from salon_scheduling import config
from salon_scheduling.api import envelopes
from salon_scheduling.exceptions import ApiError
from salon_scheduling.models import Appointment, AttendanceLog, BookingValidation, Sale, TimeSlot

logger = logging.getLogger(__name__)

DateRange = Tuple[datetime, datetime]


class SalonApi(Protocol):
	"""Operaciones remotas que consume el núcleo de agenda."""

	def fetch_appointments(
		self,
		employee_id: Optional[str] = None,
		date_range: Optional[DateRange] = None,
		mine: bool = False
	) -> List[Appointment]:
		...

	def fetch_slots(
		self,
		employee_id: str,
		target_date: date,
		duration_minutes: int,
		service_id: Optional[str] = None
	) -> List[TimeSlot]:
		...

	def validate_booking(
		self,
		employee_id: str,
		service_id: Optional[str],
		start: datetime,
		end: datetime,
		exclude_appointment_id: Optional[str] = None
	) -> BookingValidation:
		...

	def fetch_attendance(self, employee_id: str, date_range: DateRange) -> List[AttendanceLog]:
		...

	def fetch_current_attendance(self, employee_id: str) -> Optional[AttendanceLog]:
		...

	def fetch_sales(self, employee_id: str, date_range: DateRange) -> List[Sale]:
		...

	def create_appointment(self, payload: Dict[str, Any]) -> Appointment:
		...

	def update_appointment(self, appointment_id: str, changes: Dict[str, Any]) -> Appointment:
		...


def _range_params(date_range: Optional[DateRange]) -> Dict[str, str]:
	if not date_range:
		return {}
	start, end = date_range
	return {"startDate": start.isoformat(), "endDate": end.isoformat()}


class SalonApiClient:
	"""Client for the salon backend REST API."""

	def __init__(
		self,
		base_url: Optional[str] = None,
		token: Optional[str] = None,
		timeout: Optional[float] = None,
		transport: Optional[httpx.BaseTransport] = None
	):
		headers = {"Accept": "application/json"}
		token = token or config.SALON_API_TOKEN
		if token:
			headers["Authorization"] = f"Bearer {token}"

		self._client = httpx.Client(
			base_url=base_url or config.SALON_API_BASE_URL,
			headers=headers,
			timeout=timeout or config.SALON_API_TIMEOUT,
			transport=transport,
		)

	def close(self) -> None:
		self._client.close()

	def __enter__(self) -> "SalonApiClient":
		return self

	def __exit__(self, *exc_info: Any) -> None:
		self.close()

	def _request(
		self,
		method: str,
		path: str,
		params: Optional[Dict[str, Any]] = None,
		json: Optional[Dict[str, Any]] = None,
		empty_statuses: Tuple[int, ...] = ()
	) -> Any:
		"""
		Ejecuta una request y devuelve el JSON.

		Returns:
			JSON decodificado, o None si el status está en empty_statuses o el
			body está vacío

		Raises:
			ApiError: error de red o status HTTP de error
		"""
		if params:
			params = {k: v for k, v in params.items() if v is not None}

		try:
			response = self._client.request(method, path, params=params, json=json)
		except httpx.HTTPError as e:
			logger.error(f"{method} {path} failed: {e}")
			raise ApiError(f"{method} {path} failed: {e}") from e

		if response.status_code in empty_statuses:
			return None

		if response.is_error:
			logger.error(f"{method} {path} returned {response.status_code}: {response.text[:200]}")
			raise ApiError(f"{method} {path} returned {response.status_code}", status_code=response.status_code)

		if not response.content:
			return None

		try:
			return response.json()
		except ValueError as e:
			raise ApiError(f"{method} {path} returned invalid JSON") from e

	def fetch_appointments(
		self,
		employee_id: Optional[str] = None,
		date_range: Optional[DateRange] = None,
		mine: bool = False
	) -> List[Appointment]:
		params = {"salonEmployeeId": employee_id, **_range_params(date_range)}
		if mine:
			params["myAppointments"] = "true"

		# 403/404: el usuario no tiene citas visibles
		body = self._request("GET", "/appointments", params=params, empty_statuses=(403, 404))
		return envelopes.normalize_appointments(body)

	def fetch_slots(
		self,
		employee_id: str,
		target_date: date,
		duration_minutes: int,
		service_id: Optional[str] = None
	) -> List[TimeSlot]:
		body = self._request(
			"GET",
			f"/appointments/availability/{employee_id}/slots",
			params={
				"date": target_date.isoformat(),
				"duration": duration_minutes,
				"serviceId": service_id,
			},
		)
		return envelopes.normalize_slots(body)

	def validate_booking(
		self,
		employee_id: str,
		service_id: Optional[str],
		start: datetime,
		end: datetime,
		exclude_appointment_id: Optional[str] = None
	) -> BookingValidation:
		payload = {
			"employeeId": employee_id,
			"serviceId": service_id,
			"scheduledStart": start.isoformat(),
			"scheduledEnd": end.isoformat(),
		}
		if exclude_appointment_id:
			payload["excludeAppointmentId"] = exclude_appointment_id

		body = self._request("POST", "/appointments/availability/validate", json=payload)
		return envelopes.normalize_validation(body)

	def fetch_attendance(self, employee_id: str, date_range: DateRange) -> List[AttendanceLog]:
		body = self._request(
			"GET",
			f"/attendance/employee/{employee_id}",
			params=_range_params(date_range),
		)
		return envelopes.normalize_attendance(body)

	def fetch_current_attendance(self, employee_id: str) -> Optional[AttendanceLog]:
		# 404: no hay asistencia abierta
		body = self._request("GET", f"/attendance/current/{employee_id}", empty_statuses=(404,))
		return envelopes.normalize_current_attendance(body)

	def fetch_sales(self, employee_id: str, date_range: DateRange) -> List[Sale]:
		body = self._request(
			"GET",
			f"/sales/employee/{employee_id}",
			params=_range_params(date_range),
		)
		return envelopes.normalize_sales(body)

	def create_appointment(self, payload: Dict[str, Any]) -> Appointment:
		body = self._request("POST", "/appointments", json=payload)
		return envelopes.normalize_appointment(body)

	def update_appointment(self, appointment_id: str, changes: Dict[str, Any]) -> Appointment:
		body = self._request("PATCH", f"/appointments/{appointment_id}", json=changes)
		return envelopes.normalize_appointment(body)
