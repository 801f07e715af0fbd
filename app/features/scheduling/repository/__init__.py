"""
Repository subpackage for the scheduling feature.
"""

from .exception_repository import ExceptionRepository
from .slot_repository import SlotRepository

__all__ = ["ExceptionRepository", "SlotRepository"]
