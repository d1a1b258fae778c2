"""
Scheduling Input Validators

Validation utilities applied before any remote call is made. Invalid input
raises salon_scheduling.exceptions.ValidationError.
"""

import re
from datetime import date, datetime
from typing import Any, Optional, Union

import pytz

from salon_scheduling.exceptions import ValidationError
from salon_scheduling.utils import get_datetime


def validate_date(value: Union[date, str], field_name: str = "date") -> date:
    """
    Validate a calendar date (date object or YYYY-MM-DD string).

    Args:
        value: Date to validate
        field_name: Name of field for error messages

    Returns:
        date: Validated date

    Raises:
        ValidationError: If the value is missing, malformed or not a real day
    """
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    value = str(value).strip()

    # Basic format check
    if not re.match(r"^\d{4}-\d{2}-\d{2}$", value):
        raise ValidationError(f"Invalid {field_name} format. Use YYYY-MM-DD")

    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {field_name}: {value} is not a calendar day") from e


def validate_datetime(
    value: Union[datetime, str],
    field_name: str = "datetime",
    tz: Optional[pytz.BaseTzInfo] = None,
) -> datetime:
    """
    Validate a timestamp (datetime or ISO 8601 string).

    Naive values are interpreted in tz (UTC when not given).

    Returns:
        datetime: timezone-aware datetime

    Raises:
        ValidationError: If the value is missing or not parseable
    """
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")

    try:
        return get_datetime(value, tz)
    except (ValueError, OverflowError) as e:
        raise ValidationError(f"Invalid {field_name}: {value!r}") from e


def validate_time_range(start: datetime, end: datetime) -> None:
    """
    Validate that end is after start.

    Raises:
        ValidationError: If end <= start
    """
    if end <= start:
        raise ValidationError(
            f"End ({end.isoformat()}) must be after start ({start.isoformat()})"
        )


def validate_duration(minutes: Any, field_name: str = "duration_minutes") -> int:
    """
    Validate a service duration in minutes.

    Returns:
        int: Validated duration

    Raises:
        ValidationError: If the duration is not a positive integer
    """
    if isinstance(minutes, bool):
        raise ValidationError(f"{field_name} must be a number of minutes")

    try:
        value = int(minutes)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field_name} must be a number of minutes") from e

    if value != minutes and str(value) != str(minutes).strip():
        raise ValidationError(f"{field_name} must be a whole number of minutes")

    if value <= 0:
        raise ValidationError(f"{field_name} must be greater than zero")

    return value


def validate_docname(name: Any, field_name: str = "name") -> str:
    """
    Validate a record identifier.

    Ensures the identifier is present, not too long and safe to place in a
    URL path segment.

    Returns:
        str: Validated identifier

    Raises:
        ValidationError: If the identifier is invalid
    """
    if name is None or name == "":
        raise ValidationError(f"{field_name} is required")

    name = str(name).strip()

    if not name:
        raise ValidationError(f"{field_name} is required")

    # Length check
    if len(name) > 140:
        raise ValidationError(f"{field_name} is too long")

    # Path separators, query/fragment markers and whitespace
    if re.search(r"[/\\?#%\s]", name):
        raise ValidationError(f"Invalid {field_name}")

    return name
