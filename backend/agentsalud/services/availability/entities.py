# backend/agentsalud/services/availability/entities.py
"""
Value types flowing through the availability pipeline.

Times are kept as minutes since midnight inside the core;
`start_time` / `end_time` properties render "HH:MM" for the boundary.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from .times import minutes_to_time_str


REASON_BOOKED = "slot already booked"
REASON_ADVANCE = "minimum advance booking not met"
REASON_BEYOND_HORIZON = "beyond maximum advance booking window"
REASON_WEEKEND = "weekend booking not enabled"
REASON_BLOCKED = "provider not available"
REASON_OUTSIDE_WINDOW = "outside booking window hours"
REASON_PAST = "slot start time has passed"

# Appointment statuses that occupy provider time
OCCUPYING_STATUSES = ("confirmed", "pending")


class Role(str, Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    STAFF = "staff"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


PRIVILEGED_ROLES = frozenset({Role.DOCTOR, Role.STAFF, Role.ADMIN, Role.SUPERADMIN})


@dataclass(frozen=True)
class WeeklyAvailabilityBlock:
    """One recurring availability window ("09:00"-"13:00" every Monday)."""
    provider_id: str
    day_of_week: int  # 0 = Sunday
    start_time: str
    end_time: str
    is_active: bool = True


@dataclass(frozen=True)
class BookedInterval:
    """A pending/confirmed appointment occupying provider time."""
    provider_id: str
    date: date
    start_time: str
    end_time: str


@dataclass(frozen=True)
class BlockedPeriod:
    """Vacation, sick leave, etc. Absolute datetimes, may span several days."""
    provider_id: str
    start: datetime
    end: datetime
    reason: str | None = None
    block_type: str | None = None

    @property
    def label(self) -> str:
        return self.reason or self.block_type or REASON_BLOCKED


@dataclass(frozen=True, order=True)
class Interval:
    """Half-open [start, end) in minutes since midnight."""
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass
class CandidateSlot:
    provider_id: str
    date: date
    start: int
    end: int
    available: bool = True
    unavailable_reason: str | None = None

    @property
    def start_time(self) -> str:
        return minutes_to_time_str(self.start)

    @property
    def end_time(self) -> str:
        return minutes_to_time_str(self.end)

    @property
    def key(self) -> tuple[str, int]:
        return self.provider_id, self.start

    def mark_unavailable(self, reason: str) -> None:
        """Flag the slot; the first recorded reason is kept."""
        if self.available:
            self.available = False
            self.unavailable_reason = reason


@dataclass(frozen=True)
class BookingRequestContext:
    organization_id: str
    date: date
    duration_minutes: int
    requester_role: Role = Role.PATIENT
    apply_standard_advance_rule: bool = False
    doctor_id: str | None = None
    service_id: str | None = None


@dataclass(frozen=True)
class Diagnostic:
    """Structured note about an input row that was excluded."""
    provider_id: str | None
    source: str  # "schedule" | "booking" | "blocked_period"
    message: str
