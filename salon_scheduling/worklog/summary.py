"""
Work-Log Summary Roller

Folds a contiguous range of WorkLogDay results into one WorkLogSummary.
Days are fetched in parallel; a day that fails is left out.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, Optional, Tuple, Union

from salon_scheduling import config
from salon_scheduling.api.shared.validators import validate_date, validate_docname
from salon_scheduling.exceptions import ValidationError
from salon_scheduling.models import DayStatus, WorkLogPeriod, WorkLogSummary
from salon_scheduling.scheduling.slots import Clock, resolve_now
from salon_scheduling.utils import date_range
from salon_scheduling.worklog.aggregator import TimezoneLike, get_work_log_for_date, resolve_timezone
from salon_scheduling.worklog.fanout import Branch, gather

logger = logging.getLogger(__name__)

PERIOD_DAYS = {
	WorkLogPeriod.DAY: 1,
	WorkLogPeriod.WEEK: 7,
	WorkLogPeriod.MONTH: 30,
}

DateLike = Union[date, str, None]


def _to_period(period: Union[WorkLogPeriod, str]) -> WorkLogPeriod:
	if isinstance(period, WorkLogPeriod):
		return period
	try:
		return WorkLogPeriod(str(period).strip().lower())
	except ValueError as e:
		raise ValidationError(f"Invalid period '{period}'. Use day, week or month") from e


def resolve_period_range(
	period: Union[WorkLogPeriod, str],
	today: date,
	start_date: DateLike = None,
	end_date: DateLike = None
) -> Tuple[date, date]:
	"""
	Rango de fechas (inclusivo) de un período.

	Reglas:
		- sin fechas: el período termina hoy
		- solo start_date: desde start_date hasta hoy
		- solo end_date: el largo del período terminando en end_date

	Raises:
		ValidationError: período desconocido o start_date posterior a end_date
	"""
	length = PERIOD_DAYS[_to_period(period)]

	start = validate_date(start_date, "start_date") if start_date else None
	end = validate_date(end_date, "end_date") if end_date else None

	if start and end:
		pass
	elif start:
		end = today
	elif end:
		start = end - timedelta(days=length - 1)
	else:
		end = today
		start = today - timedelta(days=length - 1)

	if start > end:
		raise ValidationError("start_date must not be after end_date")

	return start, end


def get_work_log_summary(
	api,
	employee_id: str,
	period: Union[WorkLogPeriod, str] = WorkLogPeriod.WEEK,
	start_date: DateLike = None,
	end_date: DateLike = None,
	clock: Optional[Clock] = None,
	tz: TimezoneLike = None,
	max_workers: Optional[int] = None
) -> WorkLogSummary:
	"""
	Resumen de trabajo de un empleado para un período.

	Args:
		api: SalonApi
		employee_id: empleado
		period: day, week o month
		start_date, end_date: límites explícitos (opcionales)
		clock: reloj inyectado
		tz: zona horaria (por defecto SALON_TIMEZONE)
		max_workers: días consultados en paralelo (por defecto SALON_SUMMARY_WORKERS)

	Returns:
		WorkLogSummary

	Algoritmo:
		1. Resolver el rango de fechas
		2. Consultar cada día en paralelo (un día que falla se descarta)
		3. Acumular solo días con status distinto de not_worked
		4. Mejor día: mayor earnings, gana el primero en empate
		5. Promedios = total / days_worked (0 si no hay días trabajados)
	"""
	employee_id = validate_docname(employee_id, "employee_id")
	period = _to_period(period)
	tz = resolve_timezone(tz)
	now = resolve_now(clock, tz)

	start, end = resolve_period_range(period, now.astimezone(tz).date(), start_date, end_date)
	dates = date_range(start, end)

	# Todos los días ven el mismo "ahora"
	def frozen_clock():
		return now

	results = gather(
		{
			current_date.isoformat(): Branch(
				lambda current_date=current_date: get_work_log_for_date(
					api, employee_id, current_date, clock=frozen_clock, tz=tz
				),
				default=None
			)
			for current_date in dates
		},
		max_workers=max_workers or config.SALON_SUMMARY_WORKERS
	)

	days = [day for day in results.values() if day is not None]
	if len(days) < len(dates):
		logger.warning(f"Work log summary for {employee_id}: {len(dates) - len(days)} day(s) could not be loaded")

	worked = [day for day in days if day.status != DayStatus.NOT_WORKED]
	days_worked = len(worked)

	total_hours = round(sum(day.total_hours for day in worked), 1)
	total_appointments = sum(len(day.appointments) for day in worked)
	completed_appointments = sum(len(day.completed_appointments) for day in worked)
	total_earnings = sum(day.earnings for day in worked)
	total_commission = sum(day.commission for day in worked)

	best_day = None
	for day in worked:
		if best_day is None or day.earnings > best_day.earnings:
			best_day = day

	def average(total: float) -> float:
		return total / days_worked if days_worked else 0

	return WorkLogSummary(
		period=period,
		start_date=start,
		end_date=end,
		total_days=len(dates),
		days_worked=days_worked,
		total_hours=total_hours,
		total_appointments=total_appointments,
		completed_appointments=completed_appointments,
		total_earnings=total_earnings,
		total_commission=total_commission,
		average_hours_per_day=average(total_hours),
		average_appointments_per_day=average(total_appointments),
		average_earnings_per_day=average(total_earnings),
		average_commission_per_day=average(total_commission),
		best_day=best_day,
		days=days,
	)


def get_work_log_statistics(
	api,
	employee_id: str,
	start_date: DateLike,
	end_date: DateLike,
	clock: Optional[Clock] = None,
	tz: TimezoneLike = None
) -> Dict[str, Any]:
	"""
	Estadísticas de trabajo para un rango explícito.

	Returns:
		dict con total_hours, days_worked, average_hours, total_earnings,
		total_commission, total_appointments, completed_appointments y
		completion_rate (% de citas completadas, un decimal)
	"""
	if not start_date or not end_date:
		raise ValidationError("start_date and end_date are required")

	summary = get_work_log_summary(
		api,
		employee_id,
		period=WorkLogPeriod.DAY,
		start_date=start_date,
		end_date=end_date,
		clock=clock,
		tz=tz,
	)

	completion_rate = 0.0
	if summary.total_appointments:
		completion_rate = round(summary.completed_appointments / summary.total_appointments * 100, 1)

	return {
		"start_date": summary.start_date,
		"end_date": summary.end_date,
		"total_hours": summary.total_hours,
		"days_worked": summary.days_worked,
		"average_hours": round(summary.average_hours_per_day, 1),
		"total_earnings": summary.total_earnings,
		"total_commission": summary.total_commission,
		"total_appointments": summary.total_appointments,
		"completed_appointments": summary.completed_appointments,
		"completion_rate": completion_rate,
	}
