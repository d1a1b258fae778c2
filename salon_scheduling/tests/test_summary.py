"""
Tests for worklog/summary.py

Tests period resolution, folding of work-log days into a summary and the
period statistics.
"""

import unittest
from datetime import date
from unittest.mock import patch

from salon_scheduling.exceptions import ValidationError
from salon_scheduling.models import WorkLogPeriod
from salon_scheduling.worklog import aggregator
from salon_scheduling.worklog.summary import (
	get_work_log_statistics,
	get_work_log_summary,
	resolve_period_range,
)
from salon_scheduling.tests.fakes import (
	EMPLOYEE,
	FakeSalonApi,
	at,
	fixed_clock,
	make_appointment,
	make_log,
)

# Día -> ganancias; los días ausentes no se trabajaron
WEEK_EARNINGS = {1: 1000, 2: 2000, 4: 1500, 5: 3000, 7: 500}


def week_api():
	"""Semana del 1 al 7 de junio de 2024, 8 horas por día trabajado."""
	attendance = []
	appointments = []
	for day, earnings in WEEK_EARNINGS.items():
		attendance.append(make_log(f"in-{day}", "clock_in", at(2024, 6, day, 9, 0)))
		attendance.append(make_log(f"out-{day}", "clock_out", at(2024, 6, day, 17, 0)))
		appointments.append(make_appointment(
			f"done-{day}", at(2024, 6, day, 10, 0), at(2024, 6, day, 11, 0), status="completed", amount=earnings
		))
		appointments.append(make_appointment(
			f"missed-{day}", at(2024, 6, day, 12, 0), at(2024, 6, day, 12, 30), status="no_show"
		))
	return FakeSalonApi(attendance=attendance, appointments=appointments)


class TestWorkLogSummary(unittest.TestCase):
	"""Tests for get_work_log_summary."""

	def setUp(self):
		"""Set up 'now' on the evening of 2024-06-07."""
		self.clock = fixed_clock(at(2024, 6, 7, 20, 0))

	def test_week_summary(self):
		"""Test five worked days out of seven."""
		summary = get_work_log_summary(week_api(), EMPLOYEE, "week", clock=self.clock, tz="UTC")

		self.assertEqual(summary.period, WorkLogPeriod.WEEK)
		self.assertEqual(summary.start_date, date(2024, 6, 1))
		self.assertEqual(summary.end_date, date(2024, 6, 7))
		self.assertEqual(summary.total_days, 7)
		self.assertEqual(len(summary.days), 7)
		self.assertEqual(summary.days_worked, 5)
		self.assertEqual(summary.total_earnings, 8000)
		self.assertEqual(summary.best_day.earnings, 3000)
		self.assertEqual(summary.best_day.date, date(2024, 6, 5))
		self.assertEqual(summary.average_earnings_per_day, 1600)
		self.assertEqual(summary.total_hours, 40.0)
		self.assertEqual(summary.average_hours_per_day, 8.0)
		self.assertEqual(summary.total_appointments, 10)
		self.assertEqual(summary.completed_appointments, 5)
		self.assertEqual(summary.average_appointments_per_day, 2)

	def test_averages_divide_by_days_worked(self):
		"""Test that every average equals its total over days_worked."""
		summary = get_work_log_summary(week_api(), EMPLOYEE, "week", clock=self.clock, tz="UTC")

		self.assertLessEqual(summary.days_worked, summary.total_days)
		pairs = [
			(summary.average_hours_per_day, summary.total_hours),
			(summary.average_appointments_per_day, summary.total_appointments),
			(summary.average_earnings_per_day, summary.total_earnings),
			(summary.average_commission_per_day, summary.total_commission),
		]
		for average, total in pairs:
			self.assertEqual(average, total / summary.days_worked)

	def test_no_days_worked(self):
		"""Test zero averages and no best day when nothing was worked."""
		summary = get_work_log_summary(FakeSalonApi(), EMPLOYEE, "month", clock=self.clock, tz="UTC")

		self.assertEqual(summary.total_days, 30)
		self.assertEqual(summary.days_worked, 0)
		self.assertIsNone(summary.best_day)
		self.assertEqual(summary.average_hours_per_day, 0)
		self.assertEqual(summary.average_earnings_per_day, 0)

	def test_best_day_tie_first_wins(self):
		"""Test that the earliest day wins on equal earnings."""
		api = FakeSalonApi(
			attendance=[
				make_log("in-3", "clock_in", at(2024, 6, 3, 9, 0)),
				make_log("out-3", "clock_out", at(2024, 6, 3, 10, 0)),
				make_log("in-6", "clock_in", at(2024, 6, 6, 9, 0)),
				make_log("out-6", "clock_out", at(2024, 6, 6, 10, 0)),
			],
			appointments=[
				make_appointment("x", at(2024, 6, 3, 9, 0), at(2024, 6, 3, 9, 30), status="completed", amount=700),
				make_appointment("y", at(2024, 6, 6, 9, 0), at(2024, 6, 6, 9, 30), status="completed", amount=700),
			],
		)

		summary = get_work_log_summary(api, EMPLOYEE, "week", clock=self.clock, tz="UTC")

		self.assertEqual(summary.best_day.date, date(2024, 6, 3))

	def test_failed_day_is_dropped(self):
		"""Test that a day that cannot be built is left out of the summary."""
		real = aggregator.get_work_log_for_date

		def flaky(api, employee_id, target_date, **kwargs):
			if target_date == date(2024, 6, 5):
				raise RuntimeError("backend down")
			return real(api, employee_id, target_date, **kwargs)

		with patch("salon_scheduling.worklog.summary.get_work_log_for_date", side_effect=flaky):
			summary = get_work_log_summary(week_api(), EMPLOYEE, "week", clock=self.clock, tz="UTC")

		self.assertEqual(summary.total_days, 7)
		self.assertEqual(len(summary.days), 6)
		self.assertEqual(summary.days_worked, 4)
		self.assertEqual(summary.total_earnings, 5000)
		self.assertEqual(summary.best_day.earnings, 2000)

	def test_days_in_date_order(self):
		"""Test that days come back in calendar order."""
		summary = get_work_log_summary(week_api(), EMPLOYEE, "week", clock=self.clock, tz="UTC", max_workers=3)

		self.assertEqual([d.date for d in summary.days], [date(2024, 6, d) for d in range(1, 8)])

	def test_invalid_period(self):
		"""Test that unknown periods raise ValidationError."""
		with self.assertRaises(ValidationError):
			get_work_log_summary(FakeSalonApi(), EMPLOYEE, "year", clock=self.clock, tz="UTC")


class TestPeriodRange(unittest.TestCase):
	"""Tests for resolve_period_range."""

	def setUp(self):
		self.today = date(2024, 6, 30)

	def test_defaults(self):
		"""Test default ranges ending today."""
		self.assertEqual(resolve_period_range("day", self.today), (self.today, self.today))
		self.assertEqual(resolve_period_range("week", self.today), (date(2024, 6, 24), self.today))
		self.assertEqual(resolve_period_range("month", self.today), (date(2024, 6, 1), self.today))

	def test_explicit_overrides(self):
		"""Test explicit, start-only and end-only ranges."""
		self.assertEqual(
			resolve_period_range("week", self.today, "2024-06-03", "2024-06-05"),
			(date(2024, 6, 3), date(2024, 6, 5))
		)
		self.assertEqual(resolve_period_range("week", self.today, start_date="2024-06-20"), (date(2024, 6, 20), self.today))
		self.assertEqual(resolve_period_range("week", self.today, end_date="2024-06-10"), (date(2024, 6, 4), date(2024, 6, 10)))

	def test_start_after_end(self):
		"""Test that an inverted range raises ValidationError."""
		with self.assertRaises(ValidationError):
			resolve_period_range("week", self.today, "2024-06-10", "2024-06-01")


class TestWorkLogStatistics(unittest.TestCase):
	"""Tests for get_work_log_statistics."""

	def test_statistics(self):
		"""Test totals and completion rate over an explicit range."""
		stats = get_work_log_statistics(
			week_api(), EMPLOYEE, "2024-06-01", "2024-06-07",
			clock=fixed_clock(at(2024, 6, 7, 20, 0)), tz="UTC"
		)

		self.assertEqual(stats["days_worked"], 5)
		self.assertEqual(stats["total_hours"], 40.0)
		self.assertEqual(stats["average_hours"], 8.0)
		self.assertEqual(stats["total_earnings"], 8000)
		self.assertEqual(stats["total_appointments"], 10)
		self.assertEqual(stats["completion_rate"], 50.0)

	def test_statistics_require_range(self):
		"""Test that both dates are required."""
		with self.assertRaises(ValidationError):
			get_work_log_statistics(FakeSalonApi(), EMPLOYEE, None, "2024-06-07")
