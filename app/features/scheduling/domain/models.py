"""
Domain models for the scheduling feature.

RecurringRule is the single source of truth for a weekly slot; SlotException
overrides one dated occurrence of it; Occurrence is computed on demand by the
resolver and never stored.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum
from typing import Any


class ExceptionKind(StrEnum):
    UPDATED = "updated"
    DELETED = "deleted"


def _as_date_str(value: Any) -> str:
    # DATE columns come back from psycopg as datetime.date
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


@dataclass(slots=True)
class SlotCandidate:
    """Unsaved rule data as received from the request boundary."""

    day_of_week: int
    start_time: str
    end_time: str


@dataclass(slots=True)
class RecurringRule:
    """A standing weekly commitment (recurring_slots row)."""

    id: str
    day_of_week: int
    start_time: str
    end_time: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "RecurringRule":
        return cls(
            id=str(row["id"]),
            day_of_week=int(row["day_of_week"]),
            start_time=row["start_time"],
            end_time=row["end_time"],
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "day_of_week": self.day_of_week,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(slots=True)
class SlotException:
    """A per-date override of one rule's occurrence (slot_exceptions row)."""

    id: str
    rule_id: str
    date: str
    kind: ExceptionKind
    override_start: str | None = None
    override_end: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "SlotException":
        return cls(
            id=str(row["id"]),
            rule_id=str(row["rule_id"]),
            date=_as_date_str(row["date"]),
            kind=ExceptionKind(row["kind"]),
            override_start=row.get("override_start"),
            override_end=row.get("override_end"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    @property
    def key(self) -> tuple[str, str]:
        return (self.rule_id, self.date)


@dataclass(slots=True)
class Occurrence:
    """A concrete dated instance of a rule, possibly adjusted by an exception."""

    id: str
    date: str
    start_time: str
    end_time: str
    is_exception: bool
    original_rule_id: str

    @staticmethod
    def make_id(rule_id: str, on_date: str) -> str:
        return f"{rule_id}-{on_date}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "is_exception": self.is_exception,
            "original_rule_id": self.original_rule_id,
        }
