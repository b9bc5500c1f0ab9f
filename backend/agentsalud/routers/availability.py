"""
Availability API endpoints.

GET /availability/day    - bookable slots of a day (available only)
GET /availability/slots  - every candidate slot of a day with reasons
GET /availability/range  - per-date availability for a weekly selector

The caller's role comes from the authenticated request handler upstream
and is trusted as given.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db, get_session_factory
from ..redis_client import get_redis
from ..schemas.availability import (
    DayAvailabilityResponse,
    DaySlotsResponse,
    DaySummary,
    DiagnosticRead,
    RangeAvailabilityResponse,
    SlotDetail,
    SlotRead,
)
from ..services.availability import (
    BookingConfig,
    BookingRequestContext,
    CandidateSlot,
    InvalidRequestError,
    Role,
    calculate_availability,
    calculate_range_availability,
    load_booking_config,
)
from ..services.availability.policy import select_rule, validate_context
from ..services.availability.repository import ProviderInfo, get_providers, get_service
from ..services.availability.times import as_local

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/availability", tags=["availability"])

MAX_RANGE_DAYS = 31


def get_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _ResolvedQuery:
    config: BookingConfig
    context: BookingRequestContext
    providers: dict[str, ProviderInfo]
    fee_override: float | None
    message: str | None
    today: date


def _resolve(
    db: Session,
    redis: Redis | None,
    now: datetime,
    organization_id: str,
    target_date: date,
    duration: int | None,
    doctor_id: str | None,
    service_id: str | None,
    role: Role,
    standard_rule: bool,
) -> _ResolvedQuery:
    """Load org rules and providers, validate the request (sync, runs in a thread)."""
    config = load_booking_config(db, organization_id, redis)
    if config is None:
        raise HTTPException(status_code=404, detail="Organization not found")

    context = BookingRequestContext(
        organization_id=organization_id,
        date=target_date,
        duration_minutes=duration if duration is not None else config.default_duration_minutes,
        requester_role=role,
        apply_standard_advance_rule=standard_rule,
        doctor_id=doctor_id,
        service_id=service_id,
    )
    try:
        validate_context(context, config)
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))

    providers = get_providers(db, organization_id, service_id=service_id, doctor_id=doctor_id)

    message = None
    if not providers:
        if doctor_id:
            message = "Specified doctor not found or not available"
        elif service_id:
            message = "No doctors available for this service"
        else:
            message = "No doctors found in organization"

    fee_override = None
    if service_id:
        service = get_service(db, service_id)
        if service and service.price is not None:
            fee_override = service.price

    return _ResolvedQuery(
        config=config,
        context=context,
        providers={p.id: p for p in providers},
        fee_override=fee_override,
        message=message,
        today=as_local(now, config.zone).date(),
    )


def _slot_read(slot: CandidateSlot, resolved: _ResolvedQuery) -> SlotRead:
    provider = resolved.providers[slot.provider_id]
    return SlotRead(
        provider_id=slot.provider_id,
        start_time=slot.start_time,
        end_time=slot.end_time,
        doctor_name=provider.name,
        specialization=provider.specialization,
        consultation_fee=(
            resolved.fee_override if resolved.fee_override is not None else provider.consultation_fee
        ),
    )


async def _day_result(
    db: Session,
    session_factory,
    redis: Redis | None,
    now: datetime,
    **query,
):
    resolved = await asyncio.to_thread(_resolve, db, redis, now, **query)

    if resolved.context.date < resolved.today:
        raise HTTPException(status_code=400, detail="Date cannot be in the past")

    try:
        result = await calculate_availability(
            session_factory,
            resolved.context,
            list(resolved.providers),
            resolved.config,
            now,
        )
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return resolved, result


@router.get("/day", response_model=DayAvailabilityResponse)
async def get_day_availability(
    organization_id: str,
    target_date: date = Query(..., alias="date"),
    duration: int | None = None,
    doctor_id: str | None = None,
    service_id: str | None = None,
    role: Role = Role.PATIENT,
    standard_rule: bool = False,
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory),
    redis: Redis | None = Depends(get_redis),
    now: datetime = Depends(get_now),
):
    """Bookable slots for a day, sorted by start time."""
    resolved, result = await _day_result(
        db, session_factory, redis, now,
        organization_id=organization_id,
        target_date=target_date,
        duration=duration,
        doctor_id=doctor_id,
        service_id=service_id,
        role=role,
        standard_rule=standard_rule,
    )

    available = result.available_slots
    message = resolved.message
    if message is None and not result.slots:
        message = "No schedules for this day"
    elif message is None and not available:
        message = "No available slots for this date"

    logger.info(
        f"availability org={organization_id} date={target_date} role={role.value} "
        f"candidates={len(result.slots)} available={len(available)}"
    )

    return DayAvailabilityResponse(
        date=result.date,
        day_of_week=result.day_of_week,
        duration_minutes=result.duration_minutes,
        slots=[_slot_read(s, resolved) for s in available],
        count=len(available),
        applied_rule=select_rule(resolved.context).name,
        message=message,
        diagnostics=[DiagnosticRead(**vars(d)) for d in result.diagnostics],
    )


@router.get("/slots", response_model=DaySlotsResponse)
async def get_day_slots(
    organization_id: str,
    target_date: date = Query(..., alias="date"),
    duration: int | None = None,
    doctor_id: str | None = None,
    service_id: str | None = None,
    role: Role = Role.PATIENT,
    standard_rule: bool = False,
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory),
    redis: Redis | None = Depends(get_redis),
    now: datetime = Depends(get_now),
):
    """Every candidate slot with available flag and reason (admin/debug view)."""
    resolved, result = await _day_result(
        db, session_factory, redis, now,
        organization_id=organization_id,
        target_date=target_date,
        duration=duration,
        doctor_id=doctor_id,
        service_id=service_id,
        role=role,
        standard_rule=standard_rule,
    )

    return DaySlotsResponse(
        date=result.date,
        day_of_week=result.day_of_week,
        duration_minutes=result.duration_minutes,
        slots=[
            SlotDetail(
                provider_id=s.provider_id,
                start_time=s.start_time,
                end_time=s.end_time,
                available=s.available,
                reason=s.unavailable_reason,
            )
            for s in result.slots
        ],
        total_slots=len(result.slots),
        available_slots=len(result.available_slots),
        applied_rule=select_rule(resolved.context).name,
        diagnostics=[DiagnosticRead(**vars(d)) for d in result.diagnostics],
    )


@router.get("/range", response_model=RangeAvailabilityResponse)
async def get_range_availability(
    organization_id: str,
    start_date: date,
    end_date: date,
    duration: int | None = None,
    doctor_id: str | None = None,
    service_id: str | None = None,
    role: Role = Role.PATIENT,
    standard_rule: bool = False,
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory),
    redis: Redis | None = Depends(get_redis),
    now: datetime = Depends(get_now),
):
    """Availability per date in [start_date, end_date], past dates skipped."""
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must be before or equal to end_date")

    resolved = await asyncio.to_thread(
        _resolve, db, redis, now,
        organization_id=organization_id,
        target_date=start_date,
        duration=duration,
        doctor_id=doctor_id,
        service_id=service_id,
        role=role,
        standard_rule=standard_rule,
    )

    start_date = max(start_date, resolved.today)
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="Date range is entirely in the past")
    if end_date - start_date >= timedelta(days=MAX_RANGE_DAYS):
        raise HTTPException(status_code=400, detail=f"Date range cannot exceed {MAX_RANGE_DAYS} days")

    try:
        results = await calculate_range_availability(
            session_factory,
            resolved.context,
            start_date,
            end_date,
            list(resolved.providers),
            resolved.config,
            now,
        )
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))

    days = {}
    for day, result in results.items():
        available = result.available_slots
        days[day] = DaySummary(
            slots=[_slot_read(s, resolved) for s in available],
            total_slots=len(result.slots),
            available_slots=len(available),
        )

    return RangeAvailabilityResponse(
        start_date=start_date,
        end_date=end_date,
        duration_minutes=resolved.context.duration_minutes,
        applied_rule=select_rule(resolved.context).name,
        days=days,
    )
