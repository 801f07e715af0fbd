"""
Domain subpackage for the scheduling feature.
"""

from .errors import (
    ErrorKind,
    FailureReason,
    ScheduleServiceError,
    ValidationFailure,
)
from .models import (
    ExceptionKind,
    Occurrence,
    RecurringRule,
    SlotCandidate,
    SlotException,
)

__all__ = [
    "ErrorKind",
    "ExceptionKind",
    "FailureReason",
    "Occurrence",
    "RecurringRule",
    "ScheduleServiceError",
    "SlotCandidate",
    "SlotException",
    "ValidationFailure",
]
