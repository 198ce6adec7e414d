from datetime import date, datetime, timedelta
from typing import List

DATE_FORMAT = "%Y-%m-%d"


class InvalidDateError(ValueError):
    pass


def parse_local_date(value: str) -> date:
    """
    Parses a ``YYYY-MM-DD`` string into a calendar date.

    The components are read directly; no timestamp or UTC offset is ever
    involved, so "2024-04-10" is always April 10th wherever the app runs.
    A trailing time part (``2024-04-10T00:00:00``) is ignored.
    """
    if not value or not isinstance(value, str):
        raise InvalidDateError(f"Invalid date string: {value!r}")

    day_part = value.strip().split("T", 1)[0]
    try:
        return datetime.strptime(day_part, DATE_FORMAT).date()
    except ValueError:
        raise InvalidDateError(f"Invalid date format (expected YYYY-MM-DD): {value!r}")


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def inclusive_day_count(start: date, end: date) -> int:
    return (end - start).days + 1


def date_range(start: date, end: date) -> List[date]:
    """Every calendar date in [start, end], in order."""
    if end < start:
        raise InvalidDateError(f"End date {format_date(end)} is before start date {format_date(start)}")
    return [start + timedelta(days=offset) for offset in range(inclusive_day_count(start, end))]
