# app/models/api/slot_response.py
"""
Slot API response models.
Used by routes for output formatting.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class RecurringRuleResponse(BaseModel):
    """Response model for a recurring weekly slot."""

    id: str = Field(..., description="Slot ID")
    day_of_week: int = Field(..., description="Weekday, 0 = Sunday")
    start_time: str = Field(..., description="Start time, HH:MM")
    end_time: str = Field(..., description="End time, HH:MM")
    created_at: datetime | None = Field(None, description="When the slot was created")
    updated_at: datetime | None = Field(None, description="When the slot was last updated")


class OccurrenceResponse(BaseModel):
    """Response model for one dated occurrence of a slot."""

    id: str = Field(..., description="Occurrence ID, '{slot_id}-{date}'")
    date: str = Field(..., description="Occurrence date, YYYY-MM-DD")
    start_time: str = Field(..., description="Start time, HH:MM")
    end_time: str = Field(..., description="End time, HH:MM")
    is_exception: bool = Field(..., description="True if changed for this date only")
    original_slot_id: str = Field(..., description="Recurring slot this occurrence comes from")


class WeekSlotsResponse(BaseModel):
    """Response for all occurrences in one week."""

    week_start: str = Field(..., description="Sunday the week starts on")
    week_end: str = Field(..., description="Saturday the week ends on")
    slots: list[OccurrenceResponse] = Field(..., description="Occurrences by date, then time")
    total_count: int = Field(..., description="Number of occurrences")


class RuleListResponse(BaseModel):
    """Response listing every recurring slot."""

    rules: list[RecurringRuleResponse] = Field(..., description="Slots by weekday, then time")
    total_count: int = Field(..., description="Number of slots")


class CreateSlotResponse(BaseModel):
    slot: RecurringRuleResponse


class UpdateSlotResponse(BaseModel):
    slot: OccurrenceResponse


class SlotExceptionResponse(BaseModel):
    """Response model for one per-date change to a slot."""

    id: str = Field(..., description="Exception ID")
    date: str = Field(..., description="Affected date, YYYY-MM-DD")
    kind: str = Field(..., description="'updated' or 'deleted'")
    override_start: str | None = Field(None, description="Replacement start time, HH:MM")
    override_end: str | None = Field(None, description="Replacement end time, HH:MM")


class RuleDetailResponse(BaseModel):
    """One recurring slot with every per-date change made to it."""

    slot: RecurringRuleResponse
    exceptions: list[SlotExceptionResponse] = Field(..., description="Changes by date")
