# backend/agentsalud/services/availability/generator.py

from datetime import date

from .entities import CandidateSlot, Interval


def generate_slots(
    interval: Interval,
    duration_minutes: int,
    provider_id: str,
    target_date: date,
) -> list[CandidateSlot]:
    """
    Cut an interval into back-to-back slots of duration_minutes.

    No trailing partial slot: 09:00-10:00 at 40 min yields only 09:00-09:40.
    """
    if duration_minutes <= 0:
        raise ValueError(f"duration_minutes must be positive, got {duration_minutes}")

    slots = []
    t = interval.start
    while t + duration_minutes <= interval.end:
        slots.append(CandidateSlot(provider_id, target_date, t, t + duration_minutes))
        t += duration_minutes

    return slots
