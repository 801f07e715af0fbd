import asyncio
import uuid
from contextlib import asynccontextmanager

import pytest

from app.features.scheduling.api.router import get_recurrence_resolver, get_schedule_service
from app.features.scheduling.domain import (
    ExceptionKind,
    RecurringRule,
    SlotCandidate,
    SlotException,
)
from app.features.scheduling.services import RecurrenceResolver, ScheduleMutationService

# A known civil week: Sunday 2024-06-02 .. Saturday 2024-06-08
SUNDAY = "2024-06-02"
MONDAY = "2024-06-03"
WEDNESDAY = "2024-06-05"
NEXT_SUNDAY = "2024-06-09"
NEXT_MONDAY = "2024-06-10"
NEXT_WEDNESDAY = "2024-06-12"


class FakeExceptionStore:
    """In-memory stand-in for ExceptionRepository keyed by (rule_id, date)."""

    def __init__(self):
        self.rows: dict[tuple[str, str], SlotException] = {}

    async def find_by_rule_and_date(self, rule_id, on_date, *, connection=None):
        return self.rows.get((rule_id, on_date))

    async def find_by_rule(self, rule_id):
        return [row for (owner, _), row in sorted(self.rows.items()) if owner == rule_id]

    async def find_by_date_range(self, start_date, end_date):
        return [
            row
            for (_, on_date), row in sorted(self.rows.items())
            if start_date <= on_date <= end_date
        ]

    async def upsert(
        self, rule_id, on_date, kind, override_start=None, override_end=None, *, connection=None
    ):
        if kind == ExceptionKind.DELETED:
            override_start = override_end = None

        existing = self.rows.get((rule_id, on_date))
        row = SlotException(
            id=existing.id if existing else str(uuid.uuid4()),
            rule_id=rule_id,
            date=on_date,
            kind=ExceptionKind(kind),
            override_start=override_start,
            override_end=override_end,
        )
        self.rows[(rule_id, on_date)] = row
        return row

    def drop_rule(self, rule_id):
        for key in [key for key in self.rows if key[0] == rule_id]:
            del self.rows[key]


class FakeSlotStore:
    """In-memory stand-in for SlotRepository with per-weekday locking."""

    def __init__(self, exceptions: FakeExceptionStore):
        self.rules: dict[str, RecurringRule] = {}
        self.exceptions = exceptions
        self._locks: dict[int, asyncio.Lock] = {}

    @asynccontextmanager
    async def lock_day(self, day_of_week):
        lock = self._locks.setdefault(day_of_week, asyncio.Lock())
        async with lock:
            yield None

    async def create(self, candidate: SlotCandidate, *, connection=None):
        # Yield to the loop so concurrent creates really interleave
        await asyncio.sleep(0)
        rule = RecurringRule(
            id=str(uuid.uuid4()),
            day_of_week=candidate.day_of_week,
            start_time=candidate.start_time,
            end_time=candidate.end_time,
        )
        self.rules[rule.id] = rule
        return rule

    async def find_by_day_of_week(self, day_of_week, *, connection=None):
        await asyncio.sleep(0)
        return sorted(
            (rule for rule in self.rules.values() if rule.day_of_week == day_of_week),
            key=lambda rule: rule.start_time,
        )

    async def find_by_id(self, rule_id, *, connection=None):
        return self.rules.get(rule_id)

    async def find_all(self):
        return sorted(self.rules.values(), key=lambda rule: (rule.day_of_week, rule.start_time))

    async def delete(self, rule_id, *, connection=None):
        if self.rules.pop(rule_id, None) is None:
            return False
        self.exceptions.drop_rule(rule_id)
        return True


@pytest.fixture
def fake_exceptions():
    return FakeExceptionStore()


@pytest.fixture
def fake_slots(fake_exceptions):
    return FakeSlotStore(fake_exceptions)


@pytest.fixture
def service(fake_slots, fake_exceptions):
    return ScheduleMutationService(slots=fake_slots, exceptions=fake_exceptions)


@pytest.fixture
def resolver(fake_slots, fake_exceptions):
    return RecurrenceResolver(slots=fake_slots, exceptions=fake_exceptions)


@pytest.fixture
def apply_schedule_overrides(service, resolver):
    def _apply(app):
        app.dependency_overrides[get_schedule_service] = lambda: service
        app.dependency_overrides[get_recurrence_resolver] = lambda: resolver

    return _apply
