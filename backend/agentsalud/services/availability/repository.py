# backend/agentsalud/services/availability/repository.py
"""
Database reads feeding the availability core.

Each function returns plain entities (no ORM objects leak into the core).
Schedules come back filtered to is_active and the requested weekday;
bookings to pending/confirmed on the requested date.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from sqlalchemy.orm import Session

from ...models.tables import (
    Appointments,
    AvailabilityBlocks,
    DoctorAvailability,
    Doctors,
    DoctorServices,
    Organizations,
    Services,
)
from .entities import OCCUPYING_STATUSES, BlockedPeriod, BookedInterval, WeeklyAvailabilityBlock


@dataclass(frozen=True)
class ProviderInfo:
    """Display metadata attached by the HTTP layer; the core only sees id."""
    id: str
    name: str
    specialization: str | None
    consultation_fee: float | None


def get_organization(db: Session, organization_id: str):
    return db.query(Organizations).filter(
        Organizations.id == organization_id,
        Organizations.is_active.is_(True),
    ).first()


def get_service(db: Session, service_id: str):
    return db.query(Services).filter(
        Services.id == service_id,
        Services.is_active.is_(True),
    ).first()


def get_providers(
    db: Session,
    organization_id: str,
    service_id: str | None = None,
    doctor_id: str | None = None,
) -> list[ProviderInfo]:
    """Available doctors of the organization, optionally narrowed by service and doctor."""
    query = db.query(Doctors).filter(
        Doctors.organization_id == organization_id,
        Doctors.is_available.is_(True),
    )

    if service_id:
        query = query.join(DoctorServices, DoctorServices.doctor_id == Doctors.id).filter(
            DoctorServices.service_id == service_id
        )
    if doctor_id:
        query = query.filter(Doctors.id == doctor_id)

    providers = []
    for doctor in query.order_by(Doctors.id).all():
        profile = doctor.profile
        if profile:
            name = f"Dr. {profile.first_name} {profile.last_name}"
        else:
            name = f"Dr. {doctor.specialization or doctor.id}"
        providers.append(ProviderInfo(
            id=doctor.id,
            name=name,
            specialization=doctor.specialization,
            consultation_fee=doctor.consultation_fee,
        ))

    return providers


def get_booked_intervals(
    db: Session,
    organization_id: str,
    provider_ids: list[str],
    date_start: date,
    date_end: date | None = None,
) -> list[BookedInterval]:
    """Pending/confirmed appointments of the providers in [date_start, date_end]."""
    if not provider_ids:
        return []

    date_end = date_end or date_start
    rows = (
        db.query(Appointments)
        .filter(
            Appointments.organization_id == organization_id,
            Appointments.doctor_id.in_(provider_ids),
            Appointments.appointment_date >= date_start,
            Appointments.appointment_date <= date_end,
            Appointments.status.in_(OCCUPYING_STATUSES),
        )
        .all()
    )
    return [
        BookedInterval(
            provider_id=row.doctor_id,
            date=row.appointment_date,
            start_time=row.start_time,
            end_time=row.end_time,
        )
        for row in rows
    ]


def get_blocked_periods(
    db: Session,
    provider_ids: list[str],
    date_start: date,
    date_end: date | None = None,
) -> list[BlockedPeriod]:
    """Blocked periods touching [date_start, date_end] (wall-clock, org timezone)."""
    if not provider_ids:
        return []

    date_end = date_end or date_start
    window_start = datetime.combine(date_start, time.min)
    window_end = datetime.combine(date_end + timedelta(days=1), time.min)

    rows = (
        db.query(AvailabilityBlocks)
        .filter(
            AvailabilityBlocks.doctor_id.in_(provider_ids),
            AvailabilityBlocks.start_datetime < window_end,
            AvailabilityBlocks.end_datetime > window_start,
        )
        .all()
    )
    return [
        BlockedPeriod(
            provider_id=row.doctor_id,
            start=row.start_datetime,
            end=row.end_datetime,
            reason=row.reason,
            block_type=row.block_type,
        )
        for row in rows
    ]


def get_weekly_blocks_for_days(
    db: Session,
    provider_ids: list[str],
    days_of_week: set[int],
) -> list[WeeklyAvailabilityBlock]:
    """Active schedule rows of the providers for the given weekdays (0 = Sunday)."""
    if not provider_ids or not days_of_week:
        return []

    rows = (
        db.query(DoctorAvailability)
        .filter(
            DoctorAvailability.doctor_id.in_(provider_ids),
            DoctorAvailability.day_of_week.in_(sorted(days_of_week)),
            DoctorAvailability.is_active.is_(True),
        )
        .all()
    )
    return [
        WeeklyAvailabilityBlock(
            provider_id=row.doctor_id,
            day_of_week=row.day_of_week,
            start_time=row.start_time,
            end_time=row.end_time,
            is_active=row.is_active,
        )
        for row in rows
    ]
