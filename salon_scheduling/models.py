"""
Canonical Scheduling Models

Typed records shared by every service in the package. Remote payloads are
converted into these models by the adapters in api/envelopes.py; the core
logic only ever sees these types.

Boundary records (Appointment, TimeSlot, AttendanceLog, Sale,
BookingValidation) accept camelCase or snake_case keys and dump camelCase
with model_dump(by_alias=True). Derived records (WorkLogEntry, WorkLogDay,
WorkLogSummary, DayAvailability) are built by the services.
"""

from datetime import datetime, date, time
from enum import Enum
from typing import Any, Dict, List, Optional

import pytz
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from salon_scheduling.scheduling.status import AppointmentStatus, is_blocking, to_status
from salon_scheduling.utils import get_time

DEFAULT_UNAVAILABLE_REASON = "Already booked"

_TRUE_VALUES = {"true", "1", "yes", "y", "on", "available", "free", "open"}
_FALSE_VALUES = {"false", "0", "no", "n", "off", "unavailable", "booked", "busy", "closed", "", "null", "none"}


def parse_flag(value: Any) -> bool:
	"""
	Normaliza un flag booleano que puede llegar como bool, número o string.

	Raises:
		ValueError: si el valor no es interpretable
	"""
	if isinstance(value, bool):
		return value
	if value is None:
		return False
	if isinstance(value, (int, float)):
		return value != 0
	if isinstance(value, str):
		key = value.strip().lower()
		if key in _TRUE_VALUES:
			return True
		if key in _FALSE_VALUES:
			return False
	raise ValueError(f"Unrecognized boolean value {value!r}")


def _ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
	# Los timestamps remotos sin offset vienen en UTC
	if value is not None and value.tzinfo is None:
		return pytz.UTC.localize(value)
	return value


class SalonModel(BaseModel):
	model_config = ConfigDict(
		alias_generator=to_camel,
		populate_by_name=True,
		coerce_numbers_to_str=True,
		extra="ignore",
	)


# ===== BOUNDARY RECORDS =====


class ServiceSummary(SalonModel):
	id: Optional[str] = None
	name: Optional[str] = None
	duration_minutes: Optional[int] = None
	base_price: Optional[float] = None


class CustomerSummary(SalonModel):
	id: Optional[str] = None
	full_name: Optional[str] = None

	@model_validator(mode="before")
	@classmethod
	def _flatten_user(cls, data: Any) -> Any:
		# {"user": {"fullName": ...}} -> {"fullName": ...}
		if isinstance(data, dict) and not (data.get("fullName") or data.get("full_name")):
			user = data.get("user")
			if isinstance(user, dict) and user.get("fullName"):
				data = {**data, "fullName": user["fullName"]}
		return data


class Appointment(SalonModel):
	id: str
	salon_id: Optional[str] = None
	customer_id: Optional[str] = None
	service_id: Optional[str] = None
	salon_employee_id: Optional[str] = None
	scheduled_start: datetime
	scheduled_end: datetime
	status: AppointmentStatus = AppointmentStatus.PENDING
	service_amount: Optional[float] = None
	notes: Optional[str] = None
	metadata: Dict[str, Any] = Field(default_factory=dict)
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None
	service: Optional[ServiceSummary] = None
	customer: Optional[CustomerSummary] = None

	@field_validator("status", mode="before")
	@classmethod
	def _normalize_status(cls, value: Any) -> AppointmentStatus:
		return to_status(value)

	@field_validator("metadata", mode="before")
	@classmethod
	def _default_metadata(cls, value: Any) -> Dict[str, Any]:
		return value or {}

	@field_validator("scheduled_start", "scheduled_end", "created_at", "updated_at")
	@classmethod
	def _aware(cls, value: Optional[datetime]) -> Optional[datetime]:
		return _ensure_aware(value)

	@model_validator(mode="after")
	def _check_range(self) -> "Appointment":
		if self.scheduled_end <= self.scheduled_start:
			raise ValueError("scheduledEnd must be after scheduledStart")
		return self

	@property
	def employee_id(self) -> Optional[str]:
		"""Empleado asignado (columna o metadata.preferredEmployeeId)."""
		if self.salon_employee_id:
			return self.salon_employee_id
		preferred = self.metadata.get("preferredEmployeeId")
		return str(preferred) if preferred else None

	@property
	def is_blocking(self) -> bool:
		return is_blocking(self.status)

	@property
	def duration_minutes(self) -> int:
		return int(round((self.scheduled_end - self.scheduled_start).total_seconds() / 60))


class TimeSlot(SalonModel):
	start_time: time
	end_time: time
	available: bool
	reason: Optional[str] = None
	price: Optional[float] = None

	@field_validator("start_time", "end_time", mode="before")
	@classmethod
	def _parse_time(cls, value: Any) -> time:
		return get_time(value)

	@field_validator("available", mode="before")
	@classmethod
	def _normalize_available(cls, value: Any) -> bool:
		return parse_flag(value)

	@model_validator(mode="after")
	def _default_reason(self) -> "TimeSlot":
		if not self.available and not self.reason:
			self.reason = DEFAULT_UNAVAILABLE_REASON
		return self


class AttendanceType(str, Enum):
	CLOCK_IN = "clock_in"
	CLOCK_OUT = "clock_out"


class AttendanceLog(SalonModel):
	id: str
	employee_id: Optional[str] = None
	type: AttendanceType
	recorded_at: datetime
	source: Optional[str] = None
	notes: Optional[str] = None

	@field_validator("type", mode="before")
	@classmethod
	def _normalize_type(cls, value: Any) -> Any:
		if isinstance(value, str):
			return value.strip().lower().replace("-", "_").replace(" ", "_")
		return value

	@field_validator("recorded_at")
	@classmethod
	def _aware(cls, value: datetime) -> datetime:
		return _ensure_aware(value)


class SaleCommission(SalonModel):
	id: Optional[str] = None
	amount: float = 0
	salon_employee_id: Optional[str] = None
	paid: bool = False

	@model_validator(mode="before")
	@classmethod
	def _flatten_employee(cls, data: Any) -> Any:
		if isinstance(data, dict) and not data.get("salonEmployeeId"):
			employee = data.get("salonEmployee")
			if isinstance(employee, dict) and employee.get("id"):
				data = {**data, "salonEmployeeId": employee["id"]}
		return data


class Sale(SalonModel):
	id: str
	salon_id: Optional[str] = None
	customer_id: Optional[str] = None
	employee_id: Optional[str] = None
	total_amount: float = 0
	status: Optional[str] = None
	created_at: datetime
	commissions: List[SaleCommission] = Field(default_factory=list)

	@field_validator("commissions", mode="before")
	@classmethod
	def _default_commissions(cls, value: Any) -> Any:
		return value or []

	@field_validator("created_at")
	@classmethod
	def _aware(cls, value: datetime) -> datetime:
		return _ensure_aware(value)

	def commission_for(self, employee_id: str) -> float:
		"""Suma de comisiones de esta venta para un empleado."""
		return sum(
			line.amount for line in self.commissions
			if line.salon_employee_id == employee_id
		)


class BookingConflict(SalonModel):
	id: str
	scheduled_start: datetime
	scheduled_end: datetime

	@field_validator("scheduled_start", "scheduled_end")
	@classmethod
	def _aware(cls, value: datetime) -> datetime:
		return _ensure_aware(value)


class BookingValidation(SalonModel):
	valid: bool
	conflicts: List[BookingConflict] = Field(default_factory=list)
	suggestions: List[TimeSlot] = Field(default_factory=list)
	reason: Optional[str] = None

	@field_validator("valid", mode="before")
	@classmethod
	def _normalize_valid(cls, value: Any) -> bool:
		return parse_flag(value)

	@field_validator("conflicts", "suggestions", mode="before")
	@classmethod
	def _default_list(cls, value: Any) -> Any:
		return value or []


# ===== DERIVED RECORDS =====


class DayAvailabilityStatus(str, Enum):
	AVAILABLE = "available"
	PARTIALLY_BOOKED = "partially_booked"
	FULLY_BOOKED = "fully_booked"
	UNAVAILABLE = "unavailable"


class DayAvailability(SalonModel):
	date: date
	status: DayAvailabilityStatus
	total_slots: int
	available_slots: int


class EntryKind(str, Enum):
	ATTENDANCE = "attendance"
	APPOINTMENT = "appointment"
	SALE = "sale"


class WorkLogEntry(SalonModel):
	id: str
	kind: EntryKind = Field(alias="type")
	timestamp: datetime
	end_time: Optional[datetime] = None
	title: str
	description: Optional[str] = None
	status: Optional[str] = None
	duration: Optional[int] = None
	earnings: Optional[float] = None
	appointment: Optional[Appointment] = None
	attendance: Optional[AttendanceLog] = None
	sale: Optional[Sale] = None


class DayStatus(str, Enum):
	WORKING = "working"
	COMPLETED = "completed"
	NOT_WORKED = "not_worked"


class WorkLogDay(SalonModel):
	date: date
	date_label: str
	clock_in: Optional[datetime] = None
	clock_out: Optional[datetime] = None
	total_hours: float = 0
	total_minutes: int = 0
	appointments: List[Appointment] = Field(default_factory=list)
	completed_appointments: List[Appointment] = Field(default_factory=list)
	earnings: float = 0
	commission: float = 0
	sales: List[Sale] = Field(default_factory=list)
	# Sin fuente en el backend todavía: siempre vacíos
	breaks: List[WorkLogEntry] = Field(default_factory=list)
	tasks: List[WorkLogEntry] = Field(default_factory=list)
	entries: List[WorkLogEntry] = Field(default_factory=list)
	status: DayStatus = DayStatus.NOT_WORKED


class WorkLogPeriod(str, Enum):
	DAY = "day"
	WEEK = "week"
	MONTH = "month"


class WorkLogSummary(SalonModel):
	period: WorkLogPeriod
	start_date: date
	end_date: date
	total_days: int
	days_worked: int
	total_hours: float
	total_appointments: int
	completed_appointments: int
	total_earnings: float
	total_commission: float
	average_hours_per_day: float
	average_appointments_per_day: float
	average_earnings_per_day: float
	average_commission_per_day: float
	best_day: Optional[WorkLogDay] = None
	days: List[WorkLogDay] = Field(default_factory=list)
