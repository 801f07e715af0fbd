"""
API subpackage for the scheduling feature.
"""

from .router import router

__all__ = ["router"]
