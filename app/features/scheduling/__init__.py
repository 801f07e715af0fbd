"""
Slot scheduling feature package.

Recurring weekly slots, per-date exceptions and the resolver that merges
them into concrete occurrences. Domain models, repositories, services and
the API router live side by side in this package.
"""

from .api.router import router as slots_router  # noqa: F401
from .domain.models import Occurrence, RecurringRule, SlotException  # noqa: F401
from .services.mutation_service import ScheduleMutationService, schedule_service  # noqa: F401
from .services.resolver import RecurrenceResolver, recurrence_resolver  # noqa: F401
