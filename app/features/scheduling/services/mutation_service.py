"""
Schedule mutation service.

Creates and deletes recurring rules, and changes or cancels single dated
occurrences. A dated change never touches the rule itself: it upserts the
one exception row for (rule_id, date), so the pattern for every other week
stays intact.

Service layer returns domain models only - the API layer handles HTTP concerns.
Refusals raise ScheduleServiceError before anything is written; storage
faults propagate as DatabaseError.
"""

from app.features.scheduling.domain import (
    ExceptionKind,
    FailureReason,
    Occurrence,
    RecurringRule,
    ScheduleServiceError,
    SlotCandidate,
    SlotException,
    ValidationFailure,
)
from app.features.scheduling.domain.validator import (
    normalize_time,
    validate_occurrence_change,
    validate_occurrence_date,
    validate_slot_creation,
    validate_slot_fields,
)
from app.features.scheduling.repository import ExceptionRepository, SlotRepository
from app.infrastructure.observability.logging import get_logger, log_schedule_mutation

logger = get_logger(__name__)


class ScheduleMutationService:
    """Validated writes against the slot and exception stores."""

    def __init__(self, slots=SlotRepository, exceptions=ExceptionRepository):
        self.slots = slots
        self.exceptions = exceptions

    def _reject(
        self,
        action: str,
        failure: ValidationFailure,
        rule_id: str | None = None,
        on_date: str | None = None,
    ) -> ScheduleServiceError:
        log_schedule_mutation(
            action,
            rule_id=rule_id,
            date=on_date,
            success=False,
            reason=str(failure.reason),
            error_kind=str(failure.kind),
        )
        return ScheduleServiceError(failure, rule_id=rule_id)

    async def _require_rule(self, action: str, rule_id: str, on_date: str | None = None):
        rule = await self.slots.find_by_id(rule_id)
        if rule is None:
            raise self._reject(
                action,
                ValidationFailure(FailureReason.RULE_NOT_FOUND, "Slot not found"),
                rule_id=rule_id,
                on_date=on_date,
            )
        return rule

    async def list_rules(self) -> list[RecurringRule]:
        return await self.slots.find_all()

    async def get_rule(self, rule_id: str) -> RecurringRule:
        """
        Raises:
            ScheduleServiceError: rule missing
        """
        return await self._require_rule("get_rule", rule_id)

    async def list_rule_exceptions(self, rule_id: str) -> list[SlotException]:
        """Every per-date change recorded against one rule, by date."""
        rule = await self._require_rule("list_rule_exceptions", rule_id)
        return await self.exceptions.find_by_rule(rule.id)

    async def create_rule(self, day_of_week: int, start_time: str, end_time: str) -> RecurringRule:
        """
        Create a weekly rule after checking it against the rules on its weekday.

        Raises:
            ScheduleServiceError: malformed input, invalid range, capacity or conflict
        """
        candidate = SlotCandidate(day_of_week, start_time, end_time)

        failure = validate_slot_fields(candidate)
        if failure:
            raise self._reject("create_rule", failure)

        candidate = SlotCandidate(day_of_week, normalize_time(start_time), normalize_time(end_time))

        # Capacity and overlap are read and enforced under the weekday lock so
        # two concurrent creates cannot both see a free slot
        async with self.slots.lock_day(day_of_week) as conn:
            existing = await self.slots.find_by_day_of_week(day_of_week, connection=conn)
            failure = validate_slot_creation(candidate, existing)
            if failure:
                raise self._reject("create_rule", failure)

            rule = await self.slots.create(candidate, connection=conn)

        log_schedule_mutation(
            "create_rule",
            rule_id=rule.id,
            day_of_week=rule.day_of_week,
            start_time=rule.start_time,
            end_time=rule.end_time,
        )
        return rule

    async def update_occurrence(
        self,
        rule_id: str,
        on_date: str,
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> Occurrence:
        """
        Move one dated occurrence of a rule to new times.

        Missing times fall back to the rule's own. The overlap check skips
        the rule itself but covers the other rule on the same weekday.

        Raises:
            ScheduleServiceError: rule missing, bad date/times, weekday mismatch or conflict
        """
        rule = await self._require_rule("update_occurrence", rule_id, on_date)

        start = start_time or rule.start_time
        end = end_time or rule.end_time

        async with self.slots.lock_day(rule.day_of_week) as conn:
            rules_on_day = await self.slots.find_by_day_of_week(rule.day_of_week, connection=conn)
            failure = validate_occurrence_change(rule, on_date, start, end, rules_on_day)
            if failure:
                raise self._reject("update_occurrence", failure, rule_id=rule.id, on_date=on_date)

            exception = await self.exceptions.upsert(
                rule.id,
                on_date,
                ExceptionKind.UPDATED,
                normalize_time(start),
                normalize_time(end),
                connection=conn,
            )

        log_schedule_mutation(
            "update_occurrence",
            rule_id=rule.id,
            date=on_date,
            exception_id=exception.id,
            start_time=exception.override_start,
            end_time=exception.override_end,
        )
        return Occurrence(
            id=Occurrence.make_id(rule.id, on_date),
            date=on_date,
            start_time=exception.override_start or rule.start_time,
            end_time=exception.override_end or rule.end_time,
            is_exception=True,
            original_rule_id=rule.id,
        )

    async def delete_occurrence(self, rule_id: str, on_date: str) -> None:
        """
        Cancel one dated occurrence; the rule keeps recurring on every other date.

        Raises:
            ScheduleServiceError: rule missing, bad date or weekday mismatch
        """
        rule = await self._require_rule("delete_occurrence", rule_id, on_date)

        failure = validate_occurrence_date(rule, on_date)
        if failure:
            raise self._reject("delete_occurrence", failure, rule_id=rule.id, on_date=on_date)

        exception = await self.exceptions.upsert(rule.id, on_date, ExceptionKind.DELETED)

        log_schedule_mutation(
            "delete_occurrence", rule_id=rule.id, date=on_date, exception_id=exception.id
        )

    async def delete_rule(self, rule_id: str) -> None:
        """
        Delete a whole weekly rule. Its exceptions are removed by cascade.

        Raises:
            ScheduleServiceError: rule missing
        """
        rule = await self._require_rule("delete_rule", rule_id)

        async with self.slots.lock_day(rule.day_of_week) as conn:
            deleted = await self.slots.delete(rule.id, connection=conn)

        if not deleted:
            # Removed by a concurrent request between lookup and delete
            raise self._reject(
                "delete_rule",
                ValidationFailure(FailureReason.RULE_NOT_FOUND, "Slot not found"),
                rule_id=rule.id,
            )

        log_schedule_mutation("delete_rule", rule_id=rule.id, day_of_week=rule.day_of_week)


schedule_service = ScheduleMutationService()
