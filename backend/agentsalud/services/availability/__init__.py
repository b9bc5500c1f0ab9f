# backend/agentsalud/services/availability/__init__.py
"""
Availability calculation module.

Pure core: merger → generator → conflicts → policy (no I/O).
Around it: repository (DB reads), settings_store (Redis-cached org rules).
"""

from .config import BookingConfig, get_booking_config
from .engine import (
    AvailabilityResult,
    calculate_availability,
    calculate_range_availability,
    compute_day_availability,
    compute_provider_day,
)
from .entities import (
    BlockedPeriod,
    BookedInterval,
    BookingRequestContext,
    CandidateSlot,
    Diagnostic,
    Interval,
    Role,
    WeeklyAvailabilityBlock,
)
from .errors import InvalidRequestError
from .invalidator import invalidate_booking_settings
from .settings_store import BookingSettingsStore, load_booking_config

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "AvailabilityResult",
    "calculate_availability",
    "calculate_range_availability",
    "compute_day_availability",
    "compute_provider_day",
    "BlockedPeriod",
    "BookedInterval",
    "BookingRequestContext",
    "CandidateSlot",
    "Diagnostic",
    "Interval",
    "Role",
    "WeeklyAvailabilityBlock",
    "InvalidRequestError",
    "invalidate_booking_settings",
    "BookingSettingsStore",
    "load_booking_config",
]
