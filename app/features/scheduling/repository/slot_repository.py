"""
Persistence for recurring slot rules.

A narrow facade over the recurring_slots table: no business validation lives
here. Callers that must check-then-write (create, delete) do so inside
lock_day(), which serializes writers touching the same weekday.
"""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import psycopg

from app.db.helpers import DatabaseError, execute_query, fetch_all, fetch_one, with_db_retry
from app.db.pool import get_db_transaction
from app.features.scheduling.domain import RecurringRule, SlotCandidate
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

# First key of the two-int advisory lock; the weekday is the second
WEEKDAY_LOCK_NAMESPACE = 7301


def is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


class SlotRepository:
    """Persistence helpers backing recurring slot rules."""

    SELECT_COLUMNS = "id, day_of_week, start_time, end_time, created_at, updated_at"

    @classmethod
    @asynccontextmanager
    async def lock_day(cls, day_of_week: int) -> AsyncIterator[psycopg.AsyncConnection]:
        """
        Open a transaction holding the advisory lock for one weekday.

        The lock is released when the transaction commits or rolls back.
        Failures taking the lock or committing surface as DatabaseError.
        """
        try:
            async with await get_db_transaction() as conn:
                await conn.execute(
                    "SELECT pg_advisory_xact_lock(%s::int, %s::int)",
                    (WEEKDAY_LOCK_NAMESPACE, day_of_week),
                )
                yield conn

        except psycopg.Error as e:
            logger.error("Weekday lock transaction failed", day_of_week=day_of_week, error=str(e))
            raise DatabaseError(f"Transaction failed: {e}", operation="lock_day") from e

    @classmethod
    async def create(
        cls, candidate: SlotCandidate, *, connection: psycopg.AsyncConnection | None = None
    ) -> RecurringRule:
        query = f"""
            INSERT INTO recurring_slots (day_of_week, start_time, end_time)
            VALUES (%s, %s, %s)
            RETURNING {cls.SELECT_COLUMNS}
        """
        row = await fetch_one(
            query,
            (candidate.day_of_week, candidate.start_time, candidate.end_time),
            connection=connection,
        )
        rule = RecurringRule.from_row(row)
        logger.debug("Recurring slot inserted", rule_id=rule.id, day_of_week=rule.day_of_week)
        return rule

    @classmethod
    @with_db_retry(max_retries=2)
    async def find_by_day_of_week(
        cls, day_of_week: int, *, connection: psycopg.AsyncConnection | None = None
    ) -> list[RecurringRule]:
        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM recurring_slots
            WHERE day_of_week = %s
            ORDER BY start_time
        """
        rows = await fetch_all(query, (day_of_week,), connection=connection)
        return [RecurringRule.from_row(row) for row in rows]

    @classmethod
    @with_db_retry(max_retries=2)
    async def find_by_id(
        cls, rule_id: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> RecurringRule | None:
        # Not a UUID means it cannot exist; avoids a cast error in Postgres
        if not is_uuid(rule_id):
            return None

        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM recurring_slots
            WHERE id = %s::uuid
        """
        row = await fetch_one(query, (str(rule_id),), connection=connection)
        return RecurringRule.from_row(row) if row else None

    @classmethod
    @with_db_retry(max_retries=2)
    async def find_all(cls) -> list[RecurringRule]:
        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM recurring_slots
            ORDER BY day_of_week, start_time
        """
        rows = await fetch_all(query)
        return [RecurringRule.from_row(row) for row in rows]

    @classmethod
    async def delete(
        cls, rule_id: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> bool:
        """Delete a rule; its exceptions go with it through ON DELETE CASCADE."""
        if not is_uuid(rule_id):
            return False

        affected = await execute_query(
            "DELETE FROM recurring_slots WHERE id = %s::uuid",
            (str(rule_id),),
            connection=connection,
        )
        return affected > 0
