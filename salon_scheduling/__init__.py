__version__ = "0.1.0"

from salon_scheduling.api.client import SalonApi, SalonApiClient
from salon_scheduling.scheduling.booking import (
	book_appointment,
	change_status,
	reschedule_appointment,
	update_notes,
	validate_booking,
)
from salon_scheduling.scheduling.slots import generate_slots, get_day_availability
from salon_scheduling.worklog.aggregator import get_work_log_for_date
from salon_scheduling.worklog.summary import get_work_log_statistics, get_work_log_summary
