"""
Shared utilities for the Salon Scheduling API layer.

Input validators used by the scheduling and work-log services before any
remote call is made.
"""

from .validators import (
    validate_date,
    validate_datetime,
    validate_docname,
    validate_duration,
    validate_time_range,
)

__all__ = [
    "validate_date",
    "validate_datetime",
    "validate_docname",
    "validate_duration",
    "validate_time_range",
]
