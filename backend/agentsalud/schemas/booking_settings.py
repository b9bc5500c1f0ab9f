# backend/agentsalud/schemas/booking_settings.py

from typing import Optional
from pydantic import BaseModel, Field

WINDOW_TIME_PATTERN = r"^([01]?\d|2[0-3]):[0-5]\d$"


class BookingSettingsUpdate(BaseModel):
    advance_booking_hours: Optional[int] = Field(None, ge=0, le=72)
    max_advance_booking_days: Optional[int] = Field(None, ge=1, le=365)
    weekend_booking_enabled: Optional[bool] = None
    booking_window_start: Optional[str] = Field(None, pattern=WINDOW_TIME_PATTERN)
    booking_window_end: Optional[str] = Field(None, pattern=WINDOW_TIME_PATTERN)
    timezone: Optional[str] = None

    model_config = {"from_attributes": True}


class BookingSettingsRead(BaseModel):
    organization_id: str
    advance_booking_hours: int
    max_advance_booking_days: int
    weekend_booking_enabled: bool
    booking_window_start: str
    booking_window_end: str
    timezone: str
    min_duration_minutes: int
    max_duration_minutes: int

    model_config = {"from_attributes": True}
