"""
Pydantic schemas for availability API.
"""

from datetime import date
from pydantic import BaseModel, Field


class SlotRead(BaseModel):
    """Bookable slot with provider display data."""
    provider_id: str
    start_time: str  # "HH:MM"
    end_time: str  # "HH:MM"
    doctor_name: str
    specialization: str | None = None
    consultation_fee: float | None = None

    model_config = {"from_attributes": True}


class SlotDetail(BaseModel):
    """Candidate slot with availability flag (inspection view)."""
    provider_id: str
    start_time: str
    end_time: str
    available: bool
    reason: str | None = None

    model_config = {"from_attributes": True}


class DiagnosticRead(BaseModel):
    provider_id: str | None = None
    source: str
    message: str

    model_config = {"from_attributes": True}


class DayAvailabilityResponse(BaseModel):
    """Available slots of a day, sorted by start_time."""
    date: date
    day_of_week: int = Field(description="0 = Sunday ... 6 = Saturday")
    duration_minutes: int
    slots: list[SlotRead]
    count: int
    applied_rule: str = Field(description="standard | override")
    message: str | None = None
    diagnostics: list[DiagnosticRead] = []

    model_config = {"from_attributes": True}


class DaySlotsResponse(BaseModel):
    """All candidate slots of a day, including unavailable ones."""
    date: date
    day_of_week: int
    duration_minutes: int
    slots: list[SlotDetail]
    total_slots: int
    available_slots: int
    applied_rule: str
    diagnostics: list[DiagnosticRead] = []

    model_config = {"from_attributes": True}


class DaySummary(BaseModel):
    slots: list[SlotRead]
    total_slots: int
    available_slots: int

    model_config = {"from_attributes": True}


class RangeAvailabilityResponse(BaseModel):
    """Per-date availability for a weekly selector."""
    start_date: date
    end_date: date
    duration_minutes: int
    applied_rule: str
    days: dict[date, DaySummary]

    model_config = {"from_attributes": True}
