# backend/agentsalud/services/availability/engine.py
"""
Availability calculation for one organization on one or more days.

Pipeline per (provider, date):
  weekly blocks → merge → slots of `duration` → de-dup (provider, start)
  → blocked periods → booked appointments

Then for the whole day:
  → booking horizon (StandardRule / OverrideRule) → sorted by start time

Every (provider, date) pair is independent, so the per-provider step can be
fanned out over an Executor without any locking.
"""

import asyncio
import logging
from collections import defaultdict
from concurrent.futures import Executor
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Callable

from sqlalchemy.orm import Session

from .config import BookingConfig
from .conflicts import dedupe_slots, filter_blocked_periods, filter_conflicts
from .entities import (
    BlockedPeriod,
    BookedInterval,
    BookingRequestContext,
    CandidateSlot,
    Diagnostic,
    WeeklyAvailabilityBlock,
)
from .generator import generate_slots
from .merger import merge_blocks
from .policy import apply_booking_horizon, validate_context
from .repository import get_blocked_periods, get_booked_intervals, get_weekly_blocks_for_days
from .times import date_range, day_of_week

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityResult:
    date: date
    duration_minutes: int
    slots: list[CandidateSlot] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def day_of_week(self) -> int:
        return day_of_week(self.date)

    @property
    def available_slots(self) -> list[CandidateSlot]:
        return [s for s in self.slots if s.available]


@dataclass
class DayInputs:
    blocks: list[WeeklyAvailabilityBlock]
    booked: list[BookedInterval]
    periods: list[BlockedPeriod]


@dataclass(frozen=True)
class _ProviderDayTask:
    provider_id: str
    target_date: date
    duration_minutes: int
    blocks: list[WeeklyAvailabilityBlock]
    booked: list[BookedInterval]
    periods: list[BlockedPeriod]
    config: BookingConfig


def compute_provider_day(
    provider_id: str,
    target_date: date,
    duration_minutes: int,
    blocks: list[WeeklyAvailabilityBlock],
    booked: list[BookedInterval],
    periods: list[BlockedPeriod] | None = None,
    config: BookingConfig | None = None,
) -> tuple[list[CandidateSlot], list[Diagnostic]]:
    """Candidate slots of one provider on one date, with conflicts marked."""
    diagnostics: list[Diagnostic] = []

    intervals = merge_blocks(blocks, diagnostics)
    candidates: list[CandidateSlot] = []
    for interval in intervals:
        candidates.extend(generate_slots(interval, duration_minutes, provider_id, target_date))
    candidates = dedupe_slots(candidates)

    if periods:
        zone = (config or BookingConfig()).zone
        filter_blocked_periods(candidates, periods, zone, diagnostics)
    filter_conflicts(candidates, booked, diagnostics)

    logger.debug(
        f"provider={provider_id} date={target_date} intervals={len(intervals)} "
        f"candidates={len(candidates)}"
    )
    return candidates, diagnostics


def _run_task(task: _ProviderDayTask) -> tuple[list[CandidateSlot], list[Diagnostic]]:
    return compute_provider_day(
        task.provider_id,
        task.target_date,
        task.duration_minutes,
        task.blocks,
        task.booked,
        task.periods,
        task.config,
    )


def compute_day_availability(
    context: BookingRequestContext,
    blocks: list[WeeklyAvailabilityBlock],
    booked: list[BookedInterval],
    config: BookingConfig,
    now: datetime | None = None,
    periods: list[BlockedPeriod] | None = None,
    executor: Executor | None = None,
) -> AvailabilityResult:
    """
    Availability of all providers for context.date.

    Inputs must already be filtered to the day (active blocks of the weekday,
    pending/confirmed bookings of the date). Providers are those with blocks.
    """
    validate_context(context, config)

    blocks_by_provider: dict[str, list[WeeklyAvailabilityBlock]] = defaultdict(list)
    for block in blocks:
        blocks_by_provider[block.provider_id].append(block)

    booked_by_provider: dict[str, list[BookedInterval]] = defaultdict(list)
    for item in booked:
        if item.date == context.date:
            booked_by_provider[item.provider_id].append(item)

    periods_by_provider: dict[str, list[BlockedPeriod]] = defaultdict(list)
    for period in periods or ():
        periods_by_provider[period.provider_id].append(period)

    tasks = [
        _ProviderDayTask(
            provider_id=provider_id,
            target_date=context.date,
            duration_minutes=context.duration_minutes,
            blocks=blocks_by_provider[provider_id],
            booked=booked_by_provider.get(provider_id, []),
            periods=periods_by_provider.get(provider_id, []),
            config=config,
        )
        for provider_id in sorted(blocks_by_provider)
    ]

    results = executor.map(_run_task, tasks) if executor is not None else map(_run_task, tasks)

    slots: list[CandidateSlot] = []
    diagnostics: list[Diagnostic] = []
    for provider_slots, provider_diagnostics in results:
        slots.extend(provider_slots)
        diagnostics.extend(provider_diagnostics)

    slots = apply_booking_horizon(dedupe_slots(slots), context, config, now)

    return AvailabilityResult(
        date=context.date,
        duration_minutes=context.duration_minutes,
        slots=slots,
        diagnostics=diagnostics,
    )


def compute_range_availability(
    context: BookingRequestContext,
    dates: list[date],
    inputs: DayInputs,
    config: BookingConfig,
    now: datetime | None = None,
    executor: Executor | None = None,
) -> dict[date, AvailabilityResult]:
    """
    compute_day_availability for each date.

    `inputs` may hold blocks of several weekdays and bookings of several
    dates; each day only sees its own.
    """
    now = now or datetime.now(config.zone)

    blocks_by_dow: dict[int, list[WeeklyAvailabilityBlock]] = defaultdict(list)
    for block in inputs.blocks:
        blocks_by_dow[block.day_of_week].append(block)

    results = {}
    for target_date in dates:
        day_context = replace(context, date=target_date)
        results[target_date] = compute_day_availability(
            day_context,
            blocks_by_dow.get(day_of_week(target_date), []),
            inputs.booked,
            config,
            now=now,
            periods=inputs.periods,
            executor=executor,
        )

    return results


# ── Database-backed entry points ────────────────────────────────────────


def _read(session_factory: Callable[[], Session], fn, *args):
    """Run one repository query in its own session."""
    db = session_factory()
    try:
        return fn(db, *args)
    finally:
        db.close()


async def load_inputs(
    session_factory: Callable[[], Session],
    organization_id: str,
    provider_ids: list[str],
    date_start: date,
    date_end: date,
) -> DayInputs:
    """Fetch schedules, bookings and blocked periods concurrently."""
    days_of_week = {day_of_week(d) for d in date_range(date_start, date_end)}

    blocks, booked, periods = await asyncio.gather(
        asyncio.to_thread(_read, session_factory, get_weekly_blocks_for_days, provider_ids, days_of_week),
        asyncio.to_thread(
            _read, session_factory, get_booked_intervals,
            organization_id, provider_ids, date_start, date_end,
        ),
        asyncio.to_thread(_read, session_factory, get_blocked_periods, provider_ids, date_start, date_end),
    )
    return DayInputs(blocks=blocks, booked=booked, periods=periods)


async def calculate_range_availability(
    session_factory: Callable[[], Session],
    context: BookingRequestContext,
    date_start: date,
    date_end: date,
    provider_ids: list[str],
    config: BookingConfig,
    now: datetime | None = None,
) -> dict[date, AvailabilityResult]:
    validate_context(context, config)
    inputs = await load_inputs(session_factory, context.organization_id, provider_ids, date_start, date_end)
    return compute_range_availability(context, date_range(date_start, date_end), inputs, config, now)


async def calculate_availability(
    session_factory: Callable[[], Session],
    context: BookingRequestContext,
    provider_ids: list[str],
    config: BookingConfig,
    now: datetime | None = None,
) -> AvailabilityResult:
    """Availability of the given providers on context.date."""
    results = await calculate_range_availability(
        session_factory, context, context.date, context.date, provider_ids, config, now
    )
    return results[context.date]
