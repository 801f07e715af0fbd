"""
Closed error taxonomy for schedule operations.

Every failure the domain can report is a FailureReason, and every reason
belongs to exactly one ErrorKind. The HTTP layer maps kinds to status codes
through STATUS_BY_KIND; nothing inspects message text.
"""

from dataclasses import dataclass, field
from enum import StrEnum

from fastapi import status


class ErrorKind(StrEnum):
    MALFORMED_INPUT = "MalformedInput"
    INVALID_RANGE = "InvalidRange"
    CAPACITY_EXCEEDED = "CapacityExceeded"
    CONFLICT = "Conflict"
    NOT_FOUND = "NotFound"
    STORAGE_FAULT = "StorageFault"


class FailureReason(StrEnum):
    MALFORMED_TIME = "malformed_time"
    MALFORMED_DATE = "malformed_date"
    MALFORMED_REQUEST = "malformed_request"
    DAY_OUT_OF_RANGE = "day_out_of_range"
    WEEKDAY_MISMATCH = "weekday_mismatch"
    END_NOT_AFTER_START = "end_not_after_start"
    DURATION_OUT_OF_BOUNDS = "duration_out_of_bounds"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    OVERLAP = "overlap"
    RULE_NOT_FOUND = "rule_not_found"
    STORAGE_UNAVAILABLE = "storage_unavailable"


KIND_BY_REASON: dict[FailureReason, ErrorKind] = {
    FailureReason.MALFORMED_TIME: ErrorKind.MALFORMED_INPUT,
    FailureReason.MALFORMED_DATE: ErrorKind.MALFORMED_INPUT,
    FailureReason.MALFORMED_REQUEST: ErrorKind.MALFORMED_INPUT,
    FailureReason.DAY_OUT_OF_RANGE: ErrorKind.MALFORMED_INPUT,
    FailureReason.WEEKDAY_MISMATCH: ErrorKind.MALFORMED_INPUT,
    FailureReason.END_NOT_AFTER_START: ErrorKind.INVALID_RANGE,
    FailureReason.DURATION_OUT_OF_BOUNDS: ErrorKind.INVALID_RANGE,
    FailureReason.CAPACITY_EXCEEDED: ErrorKind.CAPACITY_EXCEEDED,
    FailureReason.OVERLAP: ErrorKind.CONFLICT,
    FailureReason.RULE_NOT_FOUND: ErrorKind.NOT_FOUND,
    FailureReason.STORAGE_UNAVAILABLE: ErrorKind.STORAGE_FAULT,
}

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.MALFORMED_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_RANGE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CAPACITY_EXCEEDED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.STORAGE_FAULT: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@dataclass(frozen=True, slots=True)
class ValidationFailure:
    """A typed reason an operation was refused."""

    reason: FailureReason
    message: str
    kind: ErrorKind = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "kind", KIND_BY_REASON[self.reason])

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def to_dict(self) -> dict[str, str]:
        return {"error": str(self.kind), "reason": str(self.reason), "message": self.message}


class ScheduleServiceError(Exception):
    """Raised by the mutation service when a request is refused before any write."""

    def __init__(self, failure: ValidationFailure, rule_id: str | None = None):
        super().__init__(failure.message)
        self.failure = failure
        self.rule_id = rule_id

    @property
    def kind(self) -> ErrorKind:
        return self.failure.kind

    @property
    def reason(self) -> FailureReason:
        return self.failure.reason
