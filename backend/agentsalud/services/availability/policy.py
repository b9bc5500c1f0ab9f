# backend/agentsalud/services/availability/policy.py
"""
Role-conditional booking horizon.

Two rules, selected once per request:

StandardRule  patients, or any caller forcing standard rules:
              a slot starting less than min_advance_hours from now is
              unavailable, on any date. Slots starting outside the booking
              window hours, beyond max_advance_booking_days, or (optionally)
              on a weekend are unavailable too.
OverrideRule  doctor / staff / admin / superadmin booking internally:
              no lead time, only slots that already started are dropped.

"now" and slot starts are absolute instants in the organization's
timezone, compared by subtraction (never by "is it today").
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from .config import BookingConfig
from .entities import (
    PRIVILEGED_ROLES,
    REASON_ADVANCE,
    REASON_BEYOND_HORIZON,
    REASON_OUTSIDE_WINDOW,
    REASON_PAST,
    REASON_WEEKEND,
    BookingRequestContext,
    CandidateSlot,
    Role,
)
from .errors import InvalidRequestError
from .times import as_local, is_weekend, slot_instant


@dataclass(frozen=True)
class StandardRule:
    name = "standard"

    def apply(
        self,
        slots: list[CandidateSlot],
        config: BookingConfig,
        now: datetime,
    ) -> None:
        tz = config.zone
        now_utc = as_local(now, tz).astimezone(timezone.utc)
        today = as_local(now, tz).date()
        min_lead = timedelta(hours=config.min_advance_hours)
        last_date = today + timedelta(days=config.max_advance_booking_days)
        window_start, window_end = config.booking_window

        for slot in slots:
            start = slot_instant(slot.date, slot.start, tz).astimezone(timezone.utc)
            if start - now_utc < min_lead:
                slot.mark_unavailable(REASON_ADVANCE)
            elif not window_start <= slot.start <= window_end:
                slot.mark_unavailable(REASON_OUTSIDE_WINDOW)
            elif slot.date > last_date:
                slot.mark_unavailable(REASON_BEYOND_HORIZON)
            elif not config.weekend_booking_enabled and is_weekend(slot.date):
                slot.mark_unavailable(REASON_WEEKEND)


@dataclass(frozen=True)
class OverrideRule:
    name = "override"

    def apply(
        self,
        slots: list[CandidateSlot],
        config: BookingConfig,
        now: datetime,
    ) -> None:
        tz = config.zone
        now_utc = as_local(now, tz).astimezone(timezone.utc)

        for slot in slots:
            if slot_instant(slot.date, slot.start, tz).astimezone(timezone.utc) <= now_utc:
                slot.mark_unavailable(REASON_PAST)


HorizonRule = StandardRule | OverrideRule


def select_rule(context: BookingRequestContext) -> HorizonRule:
    role = Role(context.requester_role)
    if context.apply_standard_advance_rule or role not in PRIVILEGED_ROLES:
        return StandardRule()
    return OverrideRule()


def validate_context(context: BookingRequestContext, config: BookingConfig) -> None:
    """Raise InvalidRequestError for out-of-bounds duration, bad date or role."""
    if isinstance(context.duration_minutes, bool) or not isinstance(context.duration_minutes, int):
        raise InvalidRequestError(f"duration must be an integer, got {context.duration_minutes!r}")
    if not config.duration_in_bounds(context.duration_minutes):
        raise InvalidRequestError(
            f"duration must be between {config.min_duration_minutes} and "
            f"{config.max_duration_minutes} minutes, got {context.duration_minutes}"
        )
    if isinstance(context.date, datetime) or not isinstance(context.date, date):
        raise InvalidRequestError(f"date must be a calendar date, got {context.date!r}")
    try:
        Role(context.requester_role)
    except ValueError:
        raise InvalidRequestError(f"unknown role: {context.requester_role!r}") from None


def apply_booking_horizon(
    slots: list[CandidateSlot],
    context: BookingRequestContext,
    config: BookingConfig,
    now: datetime | None = None,
) -> list[CandidateSlot]:
    """
    Annotate slots with the horizon rule for this request.

    Never raises for rejected slots; they come back with available=False
    and a reason. Result is sorted by start time.
    """
    validate_context(context, config)
    now = now or datetime.now(config.zone)

    select_rule(context).apply(slots, config, now)

    return sorted(slots, key=lambda s: (s.date, s.start, s.provider_id))
