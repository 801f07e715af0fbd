"""
Pure validation rules for recurring slots and dated occurrences.

Each check returns None when the input is acceptable and a ValidationFailure
otherwise. Composite checks short-circuit on the first failure in a fixed
order so a format problem is never reported as a capacity or overlap one.
"""

import re
from collections.abc import Iterable

from app.config import settings
from app.utils import civil_time

from .errors import FailureReason, ValidationFailure
from .models import RecurringRule, SlotCandidate

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")


def normalize_time(value: str) -> str:
    """
    Zero-pad a valid time ("9:05" -> "09:05") so string order is time order.

    Anything that is not a valid HH:MM is returned unchanged.
    """
    if not isinstance(value, str) or not TIME_PATTERN.fullmatch(value):
        return value
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{minutes}"


def _minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def validate_time_format(value: str) -> ValidationFailure | None:
    if not isinstance(value, str) or not TIME_PATTERN.fullmatch(value):
        return ValidationFailure(
            FailureReason.MALFORMED_TIME,
            f"Invalid time format: {value!r}. Use HH:MM format",
        )
    return None


def validate_date_format(value: str) -> ValidationFailure | None:
    if not civil_time.is_valid_date(value):
        return ValidationFailure(
            FailureReason.MALFORMED_DATE,
            f"Invalid date format: {value!r}. Use YYYY-MM-DD format",
        )
    return None


def validate_time_range(start: str, end: str) -> ValidationFailure | None:
    malformed = validate_time_format(start) or validate_time_format(end)
    if malformed:
        return malformed
    if not normalize_time(start) < normalize_time(end):
        return ValidationFailure(
            FailureReason.END_NOT_AFTER_START, "Start time must be before end time"
        )
    return None


def validate_duration(
    start: str,
    end: str,
    min_minutes: int | None = None,
    max_minutes: int | None = None,
) -> ValidationFailure | None:
    """Slot length must fall within the configured bounds (inclusive)."""
    if min_minutes is None:
        min_minutes = settings.SLOT_MIN_DURATION_MINUTES
    if max_minutes is None:
        max_minutes = settings.SLOT_MAX_DURATION_MINUTES

    malformed = validate_time_format(start) or validate_time_format(end)
    if malformed:
        return malformed

    duration = _minutes(end) - _minutes(start)
    if duration < min_minutes:
        return ValidationFailure(
            FailureReason.DURATION_OUT_OF_BOUNDS,
            f"Minimum slot duration is {min_minutes} minutes",
        )
    if duration > max_minutes:
        return ValidationFailure(
            FailureReason.DURATION_OUT_OF_BOUNDS,
            f"Maximum slot duration is {max_minutes} minutes",
        )
    return None


def validate_day_of_week(day: int) -> ValidationFailure | None:
    # bool is an int subclass; True/False are not weekdays
    if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
        return ValidationFailure(
            FailureReason.DAY_OUT_OF_RANGE,
            "Invalid day_of_week. Must be between 0 (Sunday) and 6 (Saturday)",
        )
    return None


def has_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """
    Half-open interval overlap; touching intervals do not overlap.

    A malformed bound never overlaps anything; validate_time_format reports it.
    """
    if any(validate_time_format(value) for value in (start_a, end_a, start_b, end_b)):
        return False
    start_a, end_a = normalize_time(start_a), normalize_time(end_a)
    start_b, end_b = normalize_time(start_b), normalize_time(end_b)
    return start_a < end_b and end_a > start_b


def check_capacity(existing_count: int, max_per_day: int | None = None) -> ValidationFailure | None:
    if max_per_day is None:
        max_per_day = settings.MAX_SLOTS_PER_DAY
    if existing_count >= max_per_day:
        return ValidationFailure(
            FailureReason.CAPACITY_EXCEEDED, f"Maximum {max_per_day} slots per day allowed"
        )
    return None


def _first_conflict(
    start: str, end: str, rules: Iterable[RecurringRule]
) -> ValidationFailure | None:
    for rule in rules:
        if has_overlap(start, end, rule.start_time, rule.end_time):
            return ValidationFailure(
                FailureReason.OVERLAP,
                f"Time slot conflicts with existing slot {rule.start_time}-{rule.end_time}",
            )
    return None


def _validate_times(start: str, end: str) -> ValidationFailure | None:
    return (
        validate_time_format(start)
        or validate_time_format(end)
        or validate_time_range(start, end)
        or validate_duration(start, end)
    )


def validate_slot_fields(candidate: SlotCandidate) -> ValidationFailure | None:
    """The checks on a new rule that need no other rules: times, then weekday."""
    return _validate_times(candidate.start_time, candidate.end_time) or validate_day_of_week(
        candidate.day_of_week
    )


def validate_slot_creation(
    candidate: SlotCandidate, existing_rules_on_day: list[RecurringRule]
) -> ValidationFailure | None:
    """
    Check a new rule against every rule already on its weekday.

    Order: time format -> time range -> duration -> day of week -> capacity
    -> pairwise overlap.
    """
    return (
        validate_slot_fields(candidate)
        or check_capacity(len(existing_rules_on_day))
        or _first_conflict(candidate.start_time, candidate.end_time, existing_rules_on_day)
    )


def validate_occurrence_date(rule: RecurringRule, on_date: str) -> ValidationFailure | None:
    """A dated override must name a real date on the rule's own weekday."""
    failure = validate_date_format(on_date)
    if failure:
        return failure
    if civil_time.day_of_week(on_date) != rule.day_of_week:
        return ValidationFailure(
            FailureReason.WEEKDAY_MISMATCH,
            f"Date {on_date} does not fall on the slot's day of week ({rule.day_of_week})",
        )
    return None


def validate_occurrence_change(
    rule: RecurringRule,
    on_date: str,
    start: str,
    end: str,
    rules_on_day: list[RecurringRule],
) -> ValidationFailure | None:
    """
    Check a single-date override of rule against the other rules on that weekday.

    The rule being changed is excluded from the overlap test; its sibling
    on the same weekday is not.
    """
    others = [other for other in rules_on_day if other.id != rule.id]
    return (
        validate_date_format(on_date)
        or _validate_times(start, end)
        or validate_occurrence_date(rule, on_date)
        or _first_conflict(start, end, others)
    )
