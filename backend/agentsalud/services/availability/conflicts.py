# backend/agentsalud/services/availability/conflicts.py
"""
Conflict detection against booked appointments and blocked periods.

Overlap is strict: [10:00, 10:30) does not conflict with a booking
ending at 10:00 or starting at 10:30.

Conflicting slots stay in the list with available=False so callers can
tell "no slots" from "all slots busy".
"""

import logging
from datetime import timezone, tzinfo

from .entities import REASON_BOOKED, BlockedPeriod, BookedInterval, CandidateSlot, Diagnostic, Interval
from .times import as_local, slot_instant, time_str_to_minutes

logger = logging.getLogger(__name__)


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return start_a < end_b and end_a > start_b


def dedupe_slots(slots: list[CandidateSlot]) -> list[CandidateSlot]:
    """Collapse duplicates on (provider_id, start); first occurrence wins."""
    seen: set[tuple[str, int]] = set()
    unique = []
    for slot in slots:
        if slot.key in seen:
            continue
        seen.add(slot.key)
        unique.append(slot)
    return unique


def booked_to_interval(booked: BookedInterval) -> Interval:
    start = time_str_to_minutes(booked.start_time)
    end = time_str_to_minutes(booked.end_time)
    if end <= start:
        raise ValueError(f"end {booked.end_time} is not after start {booked.start_time}")
    return Interval(start, end)


def filter_conflicts(
    candidates: list[CandidateSlot],
    booked: list[BookedInterval],
    diagnostics: list[Diagnostic] | None = None,
) -> list[CandidateSlot]:
    """
    Mark candidates overlapping a booked interval of the same provider and date.

    Returns the same list. Applying it twice is the same as applying it once.
    """
    busy: dict[tuple[str, object], list[Interval]] = {}
    for item in booked:
        try:
            interval = booked_to_interval(item)
        except ValueError as e:
            logger.warning(f"Skipping booked interval of provider {item.provider_id}: {e}")
            if diagnostics is not None:
                diagnostics.append(Diagnostic(item.provider_id, "booking", str(e)))
            continue
        busy.setdefault((item.provider_id, item.date), []).append(interval)

    for slot in candidates:
        for interval in busy.get((slot.provider_id, slot.date), ()):
            if overlaps(slot.start, slot.end, interval.start, interval.end):
                slot.mark_unavailable(REASON_BOOKED)
                break

    return candidates


def filter_blocked_periods(
    candidates: list[CandidateSlot],
    periods: list[BlockedPeriod],
    tz: tzinfo,
    diagnostics: list[Diagnostic] | None = None,
) -> list[CandidateSlot]:
    """
    Mark candidates overlapping a provider's blocked period (vacation, sick leave).

    Periods are absolute and may span days; naive datetimes are read in tz.
    """
    by_provider: dict[str, list[tuple]] = {}
    for period in periods:
        start = as_local(period.start, tz).astimezone(timezone.utc)
        end = as_local(period.end, tz).astimezone(timezone.utc)
        if end <= start:
            logger.warning(f"Skipping blocked period of provider {period.provider_id}: end is not after start")
            if diagnostics is not None:
                diagnostics.append(
                    Diagnostic(period.provider_id, "blocked_period", "end is not after start")
                )
            continue
        by_provider.setdefault(period.provider_id, []).append((start, end, period.label))

    if not by_provider:
        return candidates

    for slot in candidates:
        spans = by_provider.get(slot.provider_id)
        if not spans:
            continue
        slot_start = slot_instant(slot.date, slot.start, tz).astimezone(timezone.utc)
        slot_end = slot_instant(slot.date, slot.end, tz).astimezone(timezone.utc)
        for start, end, label in spans:
            if slot_start < end and slot_end > start:
                slot.mark_unavailable(label)
                break

    return candidates
