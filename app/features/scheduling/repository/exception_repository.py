"""
Persistence for per-date slot exceptions.
"""

import psycopg

from app.db.helpers import fetch_all, fetch_one, with_db_retry
from app.features.scheduling.domain import ExceptionKind, SlotException
from app.features.scheduling.repository.slot_repository import is_uuid
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class ExceptionRepository:
    """Persistence helpers backing slot exceptions keyed by (rule_id, date)."""

    SELECT_COLUMNS = """
        id, rule_id, date, kind, override_start, override_end,
        created_at, updated_at
    """

    @classmethod
    @with_db_retry(max_retries=2)
    async def find_by_rule_and_date(
        cls, rule_id: str, on_date: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> SlotException | None:
        # Not a UUID means no rule, so no exception either
        if not is_uuid(rule_id):
            return None

        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM slot_exceptions
            WHERE rule_id = %s::uuid
              AND date = %s::date
        """
        row = await fetch_one(query, (str(rule_id), on_date), connection=connection)
        return SlotException.from_row(row) if row else None

    @classmethod
    @with_db_retry(max_retries=2)
    async def find_by_date_range(cls, start_date: str, end_date: str) -> list[SlotException]:
        """Exceptions dated within [start_date, end_date], both inclusive."""
        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM slot_exceptions
            WHERE date BETWEEN %s::date AND %s::date
            ORDER BY date
        """
        rows = await fetch_all(query, (start_date, end_date))
        return [SlotException.from_row(row) for row in rows]

    @classmethod
    @with_db_retry(max_retries=2)
    async def find_by_rule(cls, rule_id: str) -> list[SlotException]:
        """Every exception recorded for one rule, oldest date first."""
        if not is_uuid(rule_id):
            return []

        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM slot_exceptions
            WHERE rule_id = %s::uuid
            ORDER BY date
        """
        rows = await fetch_all(query, (str(rule_id),))
        return [SlotException.from_row(row) for row in rows]

    @classmethod
    async def upsert(
        cls,
        rule_id: str,
        on_date: str,
        kind: ExceptionKind,
        override_start: str | None = None,
        override_end: str | None = None,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> SlotException:
        """
        Insert or overwrite the single exception for (rule_id, on_date).

        One atomic statement against the UNIQUE (rule_id, date) constraint, so
        concurrent edits of the same occurrence can never produce two rows.
        An existing row keeps its id and gets the new kind and overrides.
        """
        if kind == ExceptionKind.DELETED:
            override_start = override_end = None

        query = f"""
            INSERT INTO slot_exceptions (rule_id, date, kind, override_start, override_end)
            VALUES (%s::uuid, %s::date, %s, %s, %s)
            ON CONFLICT (rule_id, date) DO UPDATE
            SET kind = EXCLUDED.kind,
                override_start = EXCLUDED.override_start,
                override_end = EXCLUDED.override_end,
                updated_at = NOW()
            RETURNING {cls.SELECT_COLUMNS}
        """
        row = await fetch_one(
            query,
            (rule_id, on_date, str(kind), override_start, override_end),
            connection=connection,
        )
        exception = SlotException.from_row(row)

        logger.debug(
            "Slot exception upserted",
            exception_id=exception.id,
            rule_id=rule_id,
            date=on_date,
            kind=str(kind),
        )
        return exception
