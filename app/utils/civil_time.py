# app/utils/civil_time.py
"""
Civil time helpers for the scheduling domain.

Every "what day is it" question in the service is answered here, in one fixed
UTC offset (settings.SCHEDULE_UTC_OFFSET_MINUTES). Nothing else in the code
base applies an offset: repositories, the validator and the resolver only
ever see normalized "YYYY-MM-DD" and "HH:MM" strings.
"""

import re
from datetime import date, datetime, timedelta, timezone

from app.config import settings

DATE_FORMAT = "%Y-%m-%d"
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

CIVIL_TZ = timezone(timedelta(minutes=settings.SCHEDULE_UTC_OFFSET_MINUTES))


def now() -> datetime:
    """Current instant expressed in the civil offset."""
    return datetime.now(CIVIL_TZ)


def today() -> str:
    """Today's calendar date in the civil offset."""
    return format_date(now())


def format_date(instant: datetime) -> str:
    """
    Format an instant as a civil calendar date.

    Naive datetimes are treated as already being civil wall-clock time.
    """
    if instant.tzinfo is not None:
        instant = instant.astimezone(CIVIL_TZ)
    return instant.strftime(DATE_FORMAT)


def parse_date(value: str) -> datetime:
    """
    Parse "YYYY-MM-DD" into civil midnight of that day.

    Raises:
        ValueError: if the value is not a real calendar date in that format
    """
    if not isinstance(value, str) or not DATE_PATTERN.fullmatch(value):
        raise ValueError(f"Invalid date format: {value!r}. Use YYYY-MM-DD")
    return datetime.strptime(value, DATE_FORMAT).replace(tzinfo=CIVIL_TZ)


def is_valid_date(value: str) -> bool:
    try:
        parse_date(value)
    except ValueError:
        return False
    return True


def _to_date(value: str) -> date:
    return parse_date(value).date()


def day_of_week(value: str) -> int:
    """Weekday of a civil date, Sunday = 0 ... Saturday = 6."""
    return _to_date(value).isoweekday() % 7


def add_days(value: str, days: int) -> str:
    return (_to_date(value) + timedelta(days=days)).strftime(DATE_FORMAT)


def add_weeks(value: str, weeks: int) -> str:
    return add_days(value, weeks * 7)


def week_start(instant: datetime) -> str:
    """The Sunday on or before the instant, as a civil date."""
    return normalize_week_start(format_date(instant))


def normalize_week_start(value: str) -> str:
    """The Sunday on or before a civil date string."""
    return add_days(value, -day_of_week(value))


def week_dates(start: str) -> list[str]:
    """The 7 consecutive civil dates beginning at start."""
    return [add_days(start, offset) for offset in range(7)]
