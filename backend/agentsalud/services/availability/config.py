# backend/agentsalud/services/availability/config.py
"""
Booking configuration for availability calculation.
"""

import re
from dataclasses import dataclass, fields
from functools import lru_cache
from typing import Any, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ...config import settings
from .times import time_str_to_minutes


_WINDOW_TIME = re.compile(r"([01]?\d|2[0-3]):[0-5]\d")

# organizations.booking_settings JSON key → BookingConfig field
_SETTINGS_KEYS = {
    "advance_booking_hours": "min_advance_hours",
    "max_advance_booking_days": "max_advance_booking_days",
    "weekend_booking_enabled": "weekend_booking_enabled",
    "booking_window_start": "booking_window_start",
    "booking_window_end": "booking_window_end",
    "timezone": "timezone",
}


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the availability engine.

    Attributes:
        min_advance_hours: Lead time required under the standard rule (0-72)
        min_duration_minutes: Shortest bookable appointment
        max_duration_minutes: Longest bookable appointment
        default_duration_minutes: Duration used when the caller gives none
        max_advance_booking_days: How far ahead the standard rule allows (1-365)
        weekend_booking_enabled: Whether the standard rule allows Sat/Sun slots
        booking_window_start: Earliest slot start the standard rule allows ("HH:MM")
        booking_window_end: Latest slot start the standard rule allows ("HH:MM", inclusive)
        timezone: IANA zone of the organization; "now" and slot starts are compared in it
    """
    min_advance_hours: int = 4
    min_duration_minutes: int = 15
    max_duration_minutes: int = 240
    default_duration_minutes: int = 30
    max_advance_booking_days: int = 90
    weekend_booking_enabled: bool = True
    booking_window_start: str = "08:00"
    booking_window_end: str = "18:00"
    timezone: str = "America/Bogota"

    def __post_init__(self):
        """Validate configuration."""
        if not 0 <= self.min_advance_hours <= 72:
            raise ValueError(f"min_advance_hours must be within 0..72, got {self.min_advance_hours}")
        if not 1 <= self.max_advance_booking_days <= 365:
            raise ValueError(
                f"max_advance_booking_days must be within 1..365, got {self.max_advance_booking_days}"
            )
        if not 0 < self.min_duration_minutes <= self.max_duration_minutes:
            raise ValueError(
                f"invalid duration bounds {self.min_duration_minutes}..{self.max_duration_minutes}"
            )
        if not self.min_duration_minutes <= self.default_duration_minutes <= self.max_duration_minutes:
            raise ValueError(f"default_duration_minutes out of bounds: {self.default_duration_minutes}")
        for value in (self.booking_window_start, self.booking_window_end):
            if not isinstance(value, str) or not _WINDOW_TIME.fullmatch(value):
                raise ValueError(f"booking window times must be HH:MM, got {value!r}")
        start, end = self.booking_window
        if start >= end:
            raise ValueError(
                f"booking_window_start {self.booking_window_start} must be before "
                f"booking_window_end {self.booking_window_end}"
            )
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone: {self.timezone!r}") from None

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def booking_window(self) -> tuple[int, int]:
        """(start, end) of the booking window in minutes since midnight."""
        return (
            time_str_to_minutes(self.booking_window_start),
            time_str_to_minutes(self.booking_window_end),
        )

    def duration_in_bounds(self, duration_minutes: int) -> bool:
        return self.min_duration_minutes <= duration_minutes <= self.max_duration_minutes

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], base: "BookingConfig | None" = None) -> "BookingConfig":
        """
        Build a config from organizations.booking_settings JSON.

        Unknown keys are ignored; missing keys keep the values of `base`.
        Raises ValueError if the resulting config is invalid.
        """
        base = base or get_booking_config()
        values = {f.name: getattr(base, f.name) for f in fields(cls)}

        for key, value in data.items():
            field_name = _SETTINGS_KEYS.get(key, key)
            if field_name in values and value is not None:
                values[field_name] = value

        return cls(**values)

    def to_mapping(self) -> dict[str, Any]:
        return {
            "advance_booking_hours": self.min_advance_hours,
            "max_advance_booking_days": self.max_advance_booking_days,
            "weekend_booking_enabled": self.weekend_booking_enabled,
            "booking_window_start": self.booking_window_start,
            "booking_window_end": self.booking_window_end,
            "timezone": self.timezone,
        }


@lru_cache
def get_booking_config() -> BookingConfig:
    """
    Get default booking configuration (singleton).

    Per-organization values are layered on top via BookingConfig.from_mapping().
    """
    return BookingConfig(
        min_advance_hours=settings.min_advance_hours,
        timezone=settings.default_timezone,
    )
