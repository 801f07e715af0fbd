"""
Slot scheduling routes.

GET    /slots?week_start=YYYY-MM-DD     occurrences for one week
GET    /slots/rules                     every recurring slot
GET    /slots/rules/{slot_id}           one recurring slot and its per-date changes
POST   /slots                           create a recurring slot
PUT    /slots/{slot_id}                 change one dated occurrence
DELETE /slots/{slot_id}?date=...        cancel one dated occurrence
DELETE /slots/{slot_id}/rule            delete the whole recurring slot

Refusals are mapped to status codes through STATUS_BY_KIND; storage
faults become a 500 without internal detail.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.db.helpers import DatabaseError
from app.features.scheduling.domain import (
    FailureReason,
    Occurrence,
    RecurringRule,
    ScheduleServiceError,
    ValidationFailure,
)
from app.features.scheduling.domain.validator import validate_date_format
from app.features.scheduling.services import (
    RecurrenceResolver,
    ScheduleMutationService,
    recurrence_resolver,
    schedule_service,
)
from app.infrastructure.observability.logging import get_logger
from app.models.api.slot_request import CreateSlotRequest, UpdateSlotRequest
from app.models.api.slot_response import (
    CreateSlotResponse,
    OccurrenceResponse,
    RecurringRuleResponse,
    RuleDetailResponse,
    RuleListResponse,
    SlotExceptionResponse,
    UpdateSlotResponse,
    WeekSlotsResponse,
)
from app.utils import civil_time

logger = get_logger(__name__)

router = APIRouter(prefix="/slots", tags=["slots"])

STORAGE_FAULT = ValidationFailure(
    FailureReason.STORAGE_UNAVAILABLE, "Schedule storage is temporarily unavailable"
)


def get_schedule_service() -> ScheduleMutationService:
    return schedule_service


def get_recurrence_resolver() -> RecurrenceResolver:
    return recurrence_resolver


def _http_error(failure: ValidationFailure) -> HTTPException:
    return HTTPException(status_code=failure.status_code, detail=failure.to_dict())


def _storage_error(operation: str, error: DatabaseError, **context) -> HTTPException:
    logger.error(
        "Schedule storage failure",
        operation=operation,
        db_operation=error.operation,
        error=str(error),
        **context,
    )
    return _http_error(STORAGE_FAULT)


def _rule_response(rule: RecurringRule) -> RecurringRuleResponse:
    return RecurringRuleResponse(
        id=rule.id,
        day_of_week=rule.day_of_week,
        start_time=rule.start_time,
        end_time=rule.end_time,
        created_at=rule.created_at,
        updated_at=rule.updated_at,
    )


def _occurrence_response(occurrence: Occurrence) -> OccurrenceResponse:
    return OccurrenceResponse(
        id=occurrence.id,
        date=occurrence.date,
        start_time=occurrence.start_time,
        end_time=occurrence.end_time,
        is_exception=occurrence.is_exception,
        original_slot_id=occurrence.original_rule_id,
    )


@router.get("", response_model=WeekSlotsResponse)
async def get_week_slots(
    week_start: str | None = Query(
        default=None,
        description="Any date in the wanted week, YYYY-MM-DD (default: current week)",
    ),
    resolver: RecurrenceResolver = Depends(get_recurrence_resolver),
):
    """Get every occurrence in the week containing week_start."""
    if week_start is None:
        week_start = civil_time.week_start(civil_time.now())
    else:
        failure = validate_date_format(week_start)
        if failure:
            raise _http_error(failure)
        week_start = civil_time.normalize_week_start(week_start)

    try:
        occurrences = await resolver.resolve_week(week_start)
    except DatabaseError as e:
        raise _storage_error("get_week_slots", e, week_start=week_start)

    return WeekSlotsResponse(
        week_start=week_start,
        week_end=civil_time.add_days(week_start, 6),
        slots=[_occurrence_response(occurrence) for occurrence in occurrences],
        total_count=len(occurrences),
    )


@router.get("/rules", response_model=RuleListResponse)
async def list_rules(service: ScheduleMutationService = Depends(get_schedule_service)):
    """List every recurring slot, by weekday then start time."""
    try:
        rules = await service.list_rules()
    except DatabaseError as e:
        raise _storage_error("list_rules", e)

    return RuleListResponse(rules=[_rule_response(rule) for rule in rules], total_count=len(rules))


@router.get("/rules/{slot_id}", response_model=RuleDetailResponse)
async def get_slot_rule(
    slot_id: str,
    service: ScheduleMutationService = Depends(get_schedule_service),
):
    """Get one recurring slot and its per-date changes."""
    try:
        rule = await service.get_rule(slot_id)
        exceptions = await service.list_rule_exceptions(rule.id)
    except ScheduleServiceError as e:
        raise _http_error(e.failure)
    except DatabaseError as e:
        raise _storage_error("get_slot_rule", e, slot_id=slot_id)

    return RuleDetailResponse(
        slot=_rule_response(rule),
        exceptions=[
            SlotExceptionResponse(
                id=exception.id,
                date=exception.date,
                kind=str(exception.kind),
                override_start=exception.override_start,
                override_end=exception.override_end,
            )
            for exception in exceptions
        ],
    )


@router.post("", response_model=CreateSlotResponse, status_code=status.HTTP_201_CREATED)
async def create_slot(
    request: CreateSlotRequest,
    service: ScheduleMutationService = Depends(get_schedule_service),
):
    """Create a recurring weekly slot."""
    try:
        rule = await service.create_rule(request.day_of_week, request.start_time, request.end_time)
    except ScheduleServiceError as e:
        raise _http_error(e.failure)
    except DatabaseError as e:
        raise _storage_error("create_slot", e, day_of_week=request.day_of_week)

    return CreateSlotResponse(slot=_rule_response(rule))


@router.put("/{slot_id}", response_model=UpdateSlotResponse)
async def update_slot_occurrence(
    slot_id: str,
    request: UpdateSlotRequest,
    service: ScheduleMutationService = Depends(get_schedule_service),
):
    """Change the times of one dated occurrence; the recurring slot is untouched."""
    try:
        occurrence = await service.update_occurrence(
            slot_id, request.date, request.start_time, request.end_time
        )
    except ScheduleServiceError as e:
        raise _http_error(e.failure)
    except DatabaseError as e:
        raise _storage_error("update_slot_occurrence", e, slot_id=slot_id, date=request.date)

    return UpdateSlotResponse(slot=_occurrence_response(occurrence))


@router.delete("/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_slot_occurrence(
    slot_id: str,
    date: str = Query(..., description="Occurrence date to cancel, YYYY-MM-DD"),
    service: ScheduleMutationService = Depends(get_schedule_service),
):
    """Cancel one dated occurrence; other weeks keep the slot."""
    try:
        await service.delete_occurrence(slot_id, date)
    except ScheduleServiceError as e:
        raise _http_error(e.failure)
    except DatabaseError as e:
        raise _storage_error("delete_slot_occurrence", e, slot_id=slot_id, date=date)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{slot_id}/rule", status_code=status.HTTP_204_NO_CONTENT)
async def delete_slot_rule(
    slot_id: str,
    service: ScheduleMutationService = Depends(get_schedule_service),
):
    """Delete a recurring slot and every per-date change made to it."""
    try:
        await service.delete_rule(slot_id)
    except ScheduleServiceError as e:
        raise _http_error(e.failure)
    except DatabaseError as e:
        raise _storage_error("delete_slot_rule", e, slot_id=slot_id)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
