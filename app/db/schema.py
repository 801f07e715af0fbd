# app/db/schema.py
"""
Table definitions for recurring slots and their per-date exceptions.

The uniqueness rules the scheduling domain relies on live here as storage
constraints: one exception per (rule_id, date), cascade delete from a rule
to its exceptions, and format checks on every HH:MM column.
"""

from app.db.helpers import execute_transaction
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

TIME_CHECK = r"'^[0-2][0-9]:[0-5][0-9]$'"

SCHEMA_STATEMENTS: list[str] = [
    f"""
    CREATE TABLE IF NOT EXISTS recurring_slots (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        day_of_week SMALLINT NOT NULL CHECK (day_of_week BETWEEN 0 AND 6),
        start_time VARCHAR(5) NOT NULL CHECK (start_time ~ {TIME_CHECK}),
        end_time VARCHAR(5) NOT NULL CHECK (end_time ~ {TIME_CHECK}),
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        CHECK (start_time < end_time),
        UNIQUE (day_of_week, start_time, end_time)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_recurring_slots_day ON recurring_slots (day_of_week)",
    f"""
    CREATE TABLE IF NOT EXISTS slot_exceptions (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        rule_id UUID NOT NULL REFERENCES recurring_slots (id) ON DELETE CASCADE,
        date DATE NOT NULL,
        kind VARCHAR(16) NOT NULL CHECK (kind IN ('updated', 'deleted')),
        override_start VARCHAR(5) CHECK (override_start IS NULL OR override_start ~ {TIME_CHECK}),
        override_end VARCHAR(5) CHECK (override_end IS NULL OR override_end ~ {TIME_CHECK}),
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        CHECK (kind = 'deleted' OR (override_start IS NOT NULL AND override_end IS NOT NULL)),
        UNIQUE (rule_id, date)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_slot_exceptions_date ON slot_exceptions (date)",
]


async def apply_schema() -> None:
    """Create the scheduling tables if they do not exist yet."""
    await execute_transaction([(statement, ()) for statement in SCHEMA_STATEMENTS])
    logger.info("Database schema ensured", statements=len(SCHEMA_STATEMENTS))
