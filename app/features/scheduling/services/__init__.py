"""
Service subpackage for the scheduling feature.
"""

from .mutation_service import ScheduleMutationService, schedule_service
from .resolver import RecurrenceResolver, recurrence_resolver, resolve_occurrences

__all__ = [
    "RecurrenceResolver",
    "ScheduleMutationService",
    "recurrence_resolver",
    "resolve_occurrences",
    "schedule_service",
]
