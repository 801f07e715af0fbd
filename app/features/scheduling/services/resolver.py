"""
Recurrence resolution: weekly rules + dated exceptions -> concrete occurrences.
"""

import asyncio

from app.features.scheduling.domain import (
    ExceptionKind,
    Occurrence,
    RecurringRule,
    SlotException,
)
from app.features.scheduling.repository import ExceptionRepository, SlotRepository
from app.infrastructure.observability.logging import get_logger
from app.utils import civil_time

logger = get_logger(__name__)


def resolve_occurrences(
    dates: list[str],
    rules: list[RecurringRule],
    exceptions: list[SlotException],
) -> list[Occurrence]:
    """
    Expand rules over dates and apply exceptions.

    A deleted exception suppresses its occurrence; an updated one replaces
    the times (falling back to the rule's own for a missing override field).
    Output is ordered by date, then start time.
    """
    by_key = {exception.key: exception for exception in exceptions}
    occurrences: list[Occurrence] = []

    for on_date in dates:
        weekday = civil_time.day_of_week(on_date)
        for rule in rules:
            if rule.day_of_week != weekday:
                continue

            exception = by_key.get((rule.id, on_date))
            if exception and exception.kind == ExceptionKind.DELETED:
                continue

            if exception and exception.kind == ExceptionKind.UPDATED:
                start = exception.override_start or rule.start_time
                end = exception.override_end or rule.end_time
                is_exception = True
            else:
                start, end, is_exception = rule.start_time, rule.end_time, False

            occurrences.append(
                Occurrence(
                    id=Occurrence.make_id(rule.id, on_date),
                    date=on_date,
                    start_time=start,
                    end_time=end,
                    is_exception=is_exception,
                    original_rule_id=rule.id,
                )
            )

    # Zero-padded YYYY-MM-DD and HH:MM sort correctly as strings
    occurrences.sort(key=lambda occurrence: (occurrence.date, occurrence.start_time))
    return occurrences


class RecurrenceResolver:
    """Read-only view of the schedule for one week at a time."""

    def __init__(self, slots=SlotRepository, exceptions=ExceptionRepository):
        self.slots = slots
        self.exceptions = exceptions

    async def resolve_week(self, week_start: str) -> list[Occurrence]:
        """
        Occurrences for the 7 days beginning on the Sunday of week_start.

        week_start must be a valid YYYY-MM-DD date; a non-Sunday date is
        normalized to the Sunday on or before it.
        """
        start = civil_time.normalize_week_start(week_start)
        dates = civil_time.week_dates(start)

        rules, exceptions = await asyncio.gather(
            self.slots.find_all(),
            self.exceptions.find_by_date_range(dates[0], dates[-1]),
        )

        occurrences = resolve_occurrences(dates, rules, exceptions)

        logger.debug(
            "Week resolved",
            week_start=start,
            rule_count=len(rules),
            exception_count=len(exceptions),
            occurrence_count=len(occurrences),
        )
        return occurrences


recurrence_resolver = RecurrenceResolver()
