# app/models/api/slot_request.py
"""
Slot API request models.
Used by routes for input parsing. Field contents (time and date formats,
weekday range) are checked by the scheduling validator so every refusal
carries a typed reason.
"""

from pydantic import BaseModel, Field


class CreateSlotRequest(BaseModel):
    """Request for creating a recurring weekly slot."""

    day_of_week: int = Field(..., description="Weekday, 0 = Sunday ... 6 = Saturday")
    start_time: str = Field(..., description="Start time, HH:MM (24h)")
    end_time: str = Field(..., description="End time, HH:MM (24h)")


class UpdateSlotRequest(BaseModel):
    """Request for changing one dated occurrence of a slot."""

    date: str = Field(..., description="Occurrence date, YYYY-MM-DD")
    start_time: str | None = Field(None, description="New start time (default: slot's own)")
    end_time: str | None = Field(None, description="New end time (default: slot's own)")
