"""
Tests for schedule mutations: rule creation/deletion and per-date changes.
"""

import asyncio

import pytest

from app.features.scheduling.domain import (
    ErrorKind,
    ExceptionKind,
    FailureReason,
    ScheduleServiceError,
)
from tests.conftest import MONDAY, NEXT_MONDAY, NEXT_SUNDAY, NEXT_WEDNESDAY, SUNDAY, WEDNESDAY


@pytest.mark.asyncio
async def test_create_then_conflict_then_capacity(service):
    """Overlap is refused, touching is allowed, a third Monday slot is refused."""
    first = await service.create_rule(1, "09:00", "10:00")

    with pytest.raises(ScheduleServiceError) as conflict:
        await service.create_rule(1, "09:30", "10:30")
    assert conflict.value.kind == ErrorKind.CONFLICT

    touching = await service.create_rule(1, "10:00", "11:00")
    assert touching.id != first.id

    with pytest.raises(ScheduleServiceError) as full:
        await service.create_rule(1, "15:00", "16:00")
    assert full.value.kind == ErrorKind.CAPACITY_EXCEEDED


@pytest.mark.asyncio
async def test_create_rule_normalizes_times(service):
    rule = await service.create_rule(2, "9:00", "9:45")

    assert (rule.start_time, rule.end_time) == ("09:00", "09:45")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "day,start,end,reason",
    [
        (1, "9am", "10:00", FailureReason.MALFORMED_TIME),
        (1, "10:00", "09:00", FailureReason.END_NOT_AFTER_START),
        (1, "09:00", "09:05", FailureReason.DURATION_OUT_OF_BOUNDS),
        (7, "09:00", "10:00", FailureReason.DAY_OUT_OF_RANGE),
        (1, "09:00\n", "10:00", FailureReason.MALFORMED_TIME),
    ],
)
async def test_create_rule_rejects_invalid_input_without_writing(
    service, fake_slots, day, start, end, reason
):
    with pytest.raises(ScheduleServiceError) as exc_info:
        await service.create_rule(day, start, end)

    assert exc_info.value.reason == reason
    assert fake_slots.rules == {}


@pytest.mark.asyncio
async def test_concurrent_creates_never_exceed_capacity(service, fake_slots):
    results = await asyncio.gather(
        service.create_rule(4, "08:00", "09:00"),
        service.create_rule(4, "10:00", "11:00"),
        service.create_rule(4, "12:00", "13:00"),
        return_exceptions=True,
    )

    refused = [r for r in results if isinstance(r, ScheduleServiceError)]
    assert len(refused) == 1
    assert refused[0].kind == ErrorKind.CAPACITY_EXCEEDED
    assert len(await fake_slots.find_by_day_of_week(4)) == 2


@pytest.mark.asyncio
async def test_update_occurrence_writes_exception_not_rule(service, resolver, fake_slots):
    rule = await service.create_rule(3, "10:00", "11:00")

    occurrence = await service.update_occurrence(rule.id, WEDNESDAY, "14:00", "15:00")

    assert occurrence.id == f"{rule.id}-{WEDNESDAY}"
    assert (occurrence.start_time, occurrence.end_time) == ("14:00", "15:00")
    assert occurrence.is_exception is True
    stored = fake_slots.rules[rule.id]
    assert (stored.start_time, stored.end_time) == ("10:00", "11:00")

    this_week = await resolver.resolve_week(SUNDAY)
    next_week = await resolver.resolve_week(NEXT_SUNDAY)
    assert [(o.start_time, o.end_time, o.is_exception) for o in this_week] == [
        ("14:00", "15:00", True)
    ]
    assert [(o.date, o.start_time, o.end_time, o.is_exception) for o in next_week] == [
        (NEXT_WEDNESDAY, "10:00", "11:00", False)
    ]


@pytest.mark.asyncio
async def test_update_same_occurrence_twice_keeps_one_exception(service, fake_exceptions):
    rule = await service.create_rule(3, "10:00", "11:00")

    await service.update_occurrence(rule.id, WEDNESDAY, "12:00", "13:00")
    first_id = fake_exceptions.rows[(rule.id, WEDNESDAY)].id
    await service.update_occurrence(rule.id, WEDNESDAY, "15:00", "16:00")

    rows = list(fake_exceptions.rows.values())
    assert len(rows) == 1
    assert rows[0].id == first_id
    assert (rows[0].override_start, rows[0].override_end) == ("15:00", "16:00")


@pytest.mark.asyncio
async def test_update_falls_back_to_rule_times(service):
    rule = await service.create_rule(3, "10:00", "11:00")

    occurrence = await service.update_occurrence(rule.id, WEDNESDAY, start_time="10:30")

    assert (occurrence.start_time, occurrence.end_time) == ("10:30", "11:00")


@pytest.mark.asyncio
async def test_update_may_overlap_own_base_time_but_not_sibling(service):
    morning = await service.create_rule(1, "09:00", "10:00")
    await service.create_rule(1, "14:00", "15:00")

    moved = await service.update_occurrence(morning.id, MONDAY, "09:30", "10:30")
    assert moved.start_time == "09:30"

    with pytest.raises(ScheduleServiceError) as exc_info:
        await service.update_occurrence(morning.id, MONDAY, "13:30", "14:30")
    assert exc_info.value.reason == FailureReason.OVERLAP


@pytest.mark.asyncio
async def test_update_rejects_date_on_wrong_weekday(service, fake_exceptions):
    rule = await service.create_rule(1, "09:00", "10:00")

    with pytest.raises(ScheduleServiceError) as exc_info:
        await service.update_occurrence(rule.id, WEDNESDAY, "11:00", "12:00")

    assert exc_info.value.reason == FailureReason.WEEKDAY_MISMATCH
    assert exc_info.value.kind == ErrorKind.MALFORMED_INPUT
    assert fake_exceptions.rows == {}


@pytest.mark.asyncio
async def test_update_unknown_rule_is_not_found(service):
    with pytest.raises(ScheduleServiceError) as exc_info:
        await service.update_occurrence("missing", MONDAY, "09:00", "10:00")

    assert exc_info.value.kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_delete_occurrence_is_soft_and_per_date(service, resolver, fake_slots):
    rule = await service.create_rule(1, "09:00", "10:00")

    await service.delete_occurrence(rule.id, MONDAY)

    assert rule.id in fake_slots.rules
    assert await resolver.resolve_week(SUNDAY) == []
    next_week = await resolver.resolve_week(NEXT_SUNDAY)
    assert [o.date for o in next_week] == [NEXT_MONDAY]


@pytest.mark.asyncio
async def test_delete_after_update_overwrites_exception(service, fake_exceptions):
    rule = await service.create_rule(1, "09:00", "10:00")
    await service.update_occurrence(rule.id, MONDAY, "11:00", "12:00")

    await service.delete_occurrence(rule.id, MONDAY)

    row = fake_exceptions.rows[(rule.id, MONDAY)]
    assert row.kind == ExceptionKind.DELETED
    assert row.override_start is None and row.override_end is None


@pytest.mark.asyncio
async def test_delete_occurrence_validates_rule_and_date(service):
    rule = await service.create_rule(1, "09:00", "10:00")

    with pytest.raises(ScheduleServiceError) as missing:
        await service.delete_occurrence("missing", MONDAY)
    with pytest.raises(ScheduleServiceError) as malformed:
        await service.delete_occurrence(rule.id, "2024/06/03")

    assert missing.value.kind == ErrorKind.NOT_FOUND
    assert malformed.value.reason == FailureReason.MALFORMED_DATE


@pytest.mark.asyncio
async def test_delete_rule_cascades_to_exceptions(service, fake_slots, fake_exceptions):
    rule = await service.create_rule(1, "09:00", "10:00")
    await service.update_occurrence(rule.id, MONDAY, "11:00", "12:00")

    await service.delete_rule(rule.id)

    assert fake_slots.rules == {}
    assert fake_exceptions.rows == {}

    with pytest.raises(ScheduleServiceError) as exc_info:
        await service.delete_rule(rule.id)
    assert exc_info.value.kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_delete_rule_frees_capacity(service):
    first = await service.create_rule(5, "09:00", "10:00")
    await service.create_rule(5, "11:00", "12:00")

    await service.delete_rule(first.id)
    replacement = await service.create_rule(5, "13:00", "14:00")

    assert replacement.day_of_week == 5
    assert len(await service.list_rules()) == 2


@pytest.mark.asyncio
async def test_update_rejects_time_with_trailing_newline(service, fake_exceptions):
    rule = await service.create_rule(1, "09:00", "10:00")

    with pytest.raises(ScheduleServiceError) as exc_info:
        await service.update_occurrence(rule.id, MONDAY, "11:00\n", "12:00")

    assert exc_info.value.reason == FailureReason.MALFORMED_TIME
    assert fake_exceptions.rows == {}


@pytest.mark.asyncio
async def test_get_rule_returns_rule_or_not_found(service):
    rule = await service.create_rule(2, "09:00", "10:00")

    assert await service.get_rule(rule.id) == rule

    with pytest.raises(ScheduleServiceError) as exc_info:
        await service.get_rule("missing")
    assert exc_info.value.reason == FailureReason.RULE_NOT_FOUND


@pytest.mark.asyncio
async def test_list_rule_exceptions_only_returns_that_rules_changes(service):
    monday = await service.create_rule(1, "09:00", "10:00")
    wednesday = await service.create_rule(3, "09:00", "10:00")
    await service.delete_occurrence(monday.id, NEXT_MONDAY)
    await service.update_occurrence(monday.id, MONDAY, "11:00", "12:00")
    await service.delete_occurrence(wednesday.id, WEDNESDAY)

    changes = await service.list_rule_exceptions(monday.id)

    assert [(c.date, c.kind) for c in changes] == [
        (MONDAY, ExceptionKind.UPDATED),
        (NEXT_MONDAY, ExceptionKind.DELETED),
    ]
    with pytest.raises(ScheduleServiceError):
        await service.list_rule_exceptions("missing")
