"""
Tests for scheduling/booking.py

Tests booking validation right before commit, and the commit helpers
(book, reschedule, status change, notes).
"""

import unittest
from datetime import time

from salon_scheduling.exceptions import BookingConflictError, InvalidTransitionError, ValidationError
from salon_scheduling.models import BookingConflict, BookingValidation, TimeSlot
from salon_scheduling.scheduling.booking import (
	UNABLE_REASON,
	book_appointment,
	change_status,
	reschedule_appointment,
	update_notes,
	validate_booking,
)
from salon_scheduling.scheduling.status import AppointmentStatus
from salon_scheduling.scheduling.working_hours import ScheduleException
from salon_scheduling.tests.fakes import (
	EMPLOYEE,
	FakeSalonApi,
	at,
	fixed_clock,
	make_appointment,
	utc_settings,
)


class TestValidateBooking(unittest.TestCase):
	"""Tests for validate_booking."""

	def setUp(self):
		"""Set up default settings and a clock the day before the bookings."""
		self.settings = utc_settings()
		self.clock = fixed_clock(at(2024, 5, 31, 12, 0))

	def _validate(self, api, start, end, **kwargs):
		return validate_booking(
			api, EMPLOYEE, "svc-1", start, end,
			settings=kwargs.pop("settings", self.settings),
			clock=kwargs.pop("clock", self.clock),
			**kwargs
		)

	def test_free_range_is_valid(self):
		"""Test a booking on an empty calendar."""
		result = self._validate(FakeSalonApi(), at(2024, 6, 1, 10, 0), at(2024, 6, 1, 10, 30))

		self.assertTrue(result.valid)
		self.assertEqual(result.conflicts, [])

	def test_cancelled_appointment_does_not_block(self):
		"""Test that the exact range of a cancelled appointment is bookable."""
		api = FakeSalonApi(appointments=[
			make_appointment("a1", at(2024, 6, 1, 10, 0), at(2024, 6, 1, 10, 30), status="cancelled"),
		])

		result = self._validate(api, at(2024, 6, 1, 10, 0), at(2024, 6, 1, 10, 30))

		self.assertTrue(result.valid)

	def test_blocking_appointment_is_reported(self):
		"""Test that an overlapping blocking appointment invalidates the range."""
		api = FakeSalonApi(appointments=[
			make_appointment("a1", at(2024, 6, 1, 10, 0), at(2024, 6, 1, 11, 0), status="pending"),
		])

		result = self._validate(api, at(2024, 6, 1, 10, 30), at(2024, 6, 1, 11, 30))

		self.assertFalse(result.valid)
		self.assertEqual([c.id for c in result.conflicts], ["a1"])
		self.assertEqual(result.reason, "Time slot is already booked")

	def test_conflicts_reported_even_outside_hours(self):
		"""Test that conflicts are returned even when other rules also fail."""
		api = FakeSalonApi(appointments=[
			make_appointment("a1", at(2024, 6, 1, 20, 0), at(2024, 6, 1, 21, 0), status="in_progress"),
		])

		result = self._validate(api, at(2024, 6, 1, 20, 30), at(2024, 6, 1, 21, 30))

		self.assertFalse(result.valid)
		self.assertEqual([c.id for c in result.conflicts], ["a1"])

	def test_adjacent_appointment_does_not_conflict(self):
		"""Test the half-open rule: back-to-back bookings are allowed."""
		api = FakeSalonApi(appointments=[
			make_appointment("a1", at(2024, 6, 1, 10, 0), at(2024, 6, 1, 10, 30)),
		])

		result = self._validate(api, at(2024, 6, 1, 10, 30), at(2024, 6, 1, 11, 0))

		self.assertTrue(result.valid)

	def test_remote_and_local_conflicts_merged(self):
		"""Test that remote conflicts are merged with local ones without duplicates."""
		api = FakeSalonApi(
			appointments=[make_appointment("a2", at(2024, 6, 1, 10, 30), at(2024, 6, 1, 11, 0))],
			validation=BookingValidation(valid=False, conflicts=[
				BookingConflict(id="a2", scheduled_start=at(2024, 6, 1, 10, 30), scheduled_end=at(2024, 6, 1, 11, 0)),
				BookingConflict(id="a1", scheduled_start=at(2024, 6, 1, 10, 0), scheduled_end=at(2024, 6, 1, 10, 30)),
			]),
		)

		result = self._validate(api, at(2024, 6, 1, 10, 0), at(2024, 6, 1, 11, 0))

		self.assertEqual([c.id for c in result.conflicts], ["a1", "a2"])

	def test_conflict_attaches_suggestions(self):
		"""Test that up to five available slots are suggested on conflict."""
		api = FakeSalonApi(appointments=[
			make_appointment("a1", at(2024, 6, 1, 9, 0), at(2024, 6, 1, 9, 30)),
		])

		result = self._validate(api, at(2024, 6, 1, 9, 0), at(2024, 6, 1, 9, 30))

		self.assertEqual(len(result.suggestions), 5)
		self.assertEqual(result.suggestions[0].start_time, time(9, 30))
		self.assertTrue(all(slot.available for slot in result.suggestions))

	def test_remote_suggestions_preferred(self):
		"""Test that suggestions from the backend are kept as they come."""
		suggestion = TimeSlot(start_time=time(15, 0), end_time=time(15, 30), available=True)
		api = FakeSalonApi(
			appointments=[make_appointment("a1", at(2024, 6, 1, 9, 0), at(2024, 6, 1, 9, 30))],
			validation=BookingValidation(valid=False, suggestions=[suggestion], reason="Busy"),
		)

		result = self._validate(api, at(2024, 6, 1, 9, 0), at(2024, 6, 1, 9, 30))

		self.assertEqual(result.suggestions, [suggestion])
		self.assertEqual(result.reason, "Busy")

	def test_rescheduled_appointment_excluded(self):
		"""Test that an appointment does not conflict with itself."""
		api = FakeSalonApi(appointments=[
			make_appointment("a1", at(2024, 6, 1, 10, 0), at(2024, 6, 1, 10, 30)),
		])

		result = self._validate(
			api, at(2024, 6, 1, 10, 15), at(2024, 6, 1, 10, 45), exclude_appointment_id="a1"
		)

		self.assertTrue(result.valid)

	def test_remote_failure_is_invalid(self):
		"""Test that a backend failure never validates a booking."""
		api = FakeSalonApi()
		api.failures.add("validate_booking")

		result = self._validate(api, at(2024, 6, 1, 10, 0), at(2024, 6, 1, 10, 30))

		self.assertFalse(result.valid)
		self.assertEqual(result.reason, UNABLE_REASON)

	def test_appointment_fetch_failure_is_invalid(self):
		"""Test that failing to load appointments never validates a booking."""
		api = FakeSalonApi()
		api.failures.add("fetch_appointments")

		result = self._validate(api, at(2024, 6, 1, 10, 0), at(2024, 6, 1, 10, 30))

		self.assertFalse(result.valid)
		self.assertEqual(result.reason, UNABLE_REASON)

	def test_remote_rejection_is_kept(self):
		"""Test that a remote rejection without conflicts keeps its reason."""
		api = FakeSalonApi(validation=BookingValidation(valid=False, reason="Service not offered"))

		result = self._validate(api, at(2024, 6, 1, 10, 0), at(2024, 6, 1, 10, 30))

		self.assertFalse(result.valid)
		self.assertEqual(result.reason, "Service not offered")

	def test_outside_working_hours(self):
		"""Test a booking after the working day ends."""
		result = self._validate(FakeSalonApi(), at(2024, 6, 1, 17, 45), at(2024, 6, 1, 18, 15))

		self.assertFalse(result.valid)
		self.assertEqual(result.reason, "Time is outside working hours")

	def test_closed_date(self):
		"""Test a booking on a closed date."""
		settings = utc_settings(exceptions=[ScheduleException("2024-06-01", "Closed", reason="Holiday")])

		result = self._validate(FakeSalonApi(), at(2024, 6, 1, 10, 0), at(2024, 6, 1, 10, 30), settings=settings)

		self.assertFalse(result.valid)
		self.assertEqual(result.reason, "Employee is unavailable on this date")

	def test_advance_notice(self):
		"""Test a booking inside the minimum lead time."""
		settings = utc_settings(min_lead_time_hours=24)

		result = self._validate(FakeSalonApi(), at(2024, 6, 1, 10, 0), at(2024, 6, 1, 10, 30), settings=settings)

		self.assertFalse(result.valid)
		self.assertEqual(result.reason, "Bookings require at least 24 hour(s) advance notice")

	def test_past_start(self):
		"""Test a booking that already started."""
		clock = fixed_clock(at(2024, 6, 1, 12, 0))

		result = self._validate(FakeSalonApi(), at(2024, 6, 1, 10, 0), at(2024, 6, 1, 10, 30), clock=clock)

		self.assertFalse(result.valid)
		self.assertEqual(result.reason, "Cannot book a time in the past")

	def test_booking_horizon(self):
		"""Test a booking beyond advance_booking_days."""
		settings = utc_settings(advance_booking_days=30)

		result = self._validate(FakeSalonApi(), at(2024, 7, 15, 10, 0), at(2024, 7, 15, 10, 30), settings=settings)

		self.assertFalse(result.valid)
		self.assertEqual(result.reason, "Bookings can only be made 30 days in advance")

	def test_end_before_start_rejected(self):
		"""Test that an inverted range raises before any remote call."""
		api = FakeSalonApi()

		with self.assertRaises(ValidationError):
			self._validate(api, at(2024, 6, 1, 11, 0), at(2024, 6, 1, 10, 0))

		with self.assertRaises(ValidationError):
			self._validate(api, at(2024, 6, 1, 10, 0), at(2024, 6, 1, 10, 0))

		self.assertEqual(api.calls, [])

	def test_string_datetimes_accepted(self):
		"""Test ISO strings as start and end."""
		result = self._validate(FakeSalonApi(), "2024-06-01T10:00:00Z", "2024-06-01T10:30:00Z")

		self.assertTrue(result.valid)


class TestCommitHelpers(unittest.TestCase):
	"""Tests for book, reschedule, status and notes helpers."""

	def setUp(self):
		"""Set up a calendar with one confirmed appointment."""
		self.settings = utc_settings()
		self.clock = fixed_clock(at(2024, 5, 31, 12, 0))
		self.existing = make_appointment("a1", at(2024, 6, 1, 10, 0), at(2024, 6, 1, 10, 30))
		self.api = FakeSalonApi(appointments=[self.existing])

	def test_book_appointment_creates_pending(self):
		"""Test that a valid booking is created as pending."""
		created = book_appointment(
			self.api, "salon-1", EMPLOYEE, at(2024, 6, 1, 11, 0), at(2024, 6, 1, 11, 30),
			service_id="svc-1", customer_id="cus-1", settings=self.settings, clock=self.clock
		)

		self.assertEqual(created.status, AppointmentStatus.PENDING)
		self.assertEqual(created.employee_id, EMPLOYEE)
		self.assertEqual(self.api.call_count("create_appointment"), 1)
		payload = self.api.calls[-1][1][0]
		self.assertEqual(payload["salonId"], "salon-1")
		self.assertNotIn("notes", payload)

	def test_book_appointment_conflict_raises(self):
		"""Test that a conflicting booking is refused and nothing is created."""
		with self.assertRaises(BookingConflictError) as ctx:
			book_appointment(
				self.api, "salon-1", EMPLOYEE, at(2024, 6, 1, 10, 15), at(2024, 6, 1, 10, 45),
				settings=self.settings, clock=self.clock
			)

		self.assertEqual([c.id for c in ctx.exception.validation.conflicts], ["a1"])
		self.assertEqual(self.api.call_count("create_appointment"), 0)

	def test_reschedule_excludes_itself(self):
		"""Test moving an appointment over its own previous range."""
		updated = reschedule_appointment(
			self.api, self.existing, at(2024, 6, 1, 10, 15), at(2024, 6, 1, 10, 45),
			settings=self.settings, clock=self.clock
		)

		self.assertEqual(updated.scheduled_start, at(2024, 6, 1, 10, 15))
		self.assertEqual(updated.scheduled_end, at(2024, 6, 1, 10, 45))

	def test_reschedule_terminal_rejected(self):
		"""Test that completed appointments cannot be moved."""
		done = make_appointment("a2", at(2024, 6, 1, 12, 0), at(2024, 6, 1, 12, 30), status="completed")

		with self.assertRaises(ValidationError):
			reschedule_appointment(self.api, done, at(2024, 6, 1, 13, 0), at(2024, 6, 1, 13, 30))

	def test_change_status_allowed(self):
		"""Test confirmed -> in_progress."""
		updated = change_status(self.api, self.existing, "in_progress")

		self.assertEqual(updated.status, AppointmentStatus.IN_PROGRESS)

	def test_change_status_from_terminal_rejected(self):
		"""Test that terminal appointments accept no status change."""
		done = make_appointment("a1", at(2024, 6, 1, 10, 0), at(2024, 6, 1, 10, 30), status="completed")

		with self.assertRaises(InvalidTransitionError):
			change_status(self.api, done, "confirmed")

		self.assertEqual(self.api.call_count("update_appointment"), 0)

	def test_notes_editable_on_terminal(self):
		"""Test that notes can be edited after completion."""
		self.api.appointments[0] = make_appointment(
			"a1", at(2024, 6, 1, 10, 0), at(2024, 6, 1, 10, 30), status="completed"
		)

		updated = update_notes(self.api, self.api.appointments[0], "Used the new dye")

		self.assertEqual(updated.notes, "Used the new dye")
		self.assertEqual(updated.status, AppointmentStatus.COMPLETED)
