# backend/agentsalud/routers/booking_settings.py

import json
import logging

from fastapi import APIRouter, Depends, HTTPException
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..redis_client import get_redis
from ..schemas.booking_settings import BookingSettingsRead, BookingSettingsUpdate
from ..services.availability import BookingConfig, invalidate_booking_settings, load_booking_config
from ..services.availability.repository import get_organization
from ..services.availability.settings_store import config_from_organization

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations", tags=["booking_settings"])


def _to_read(organization_id: str, config: BookingConfig) -> BookingSettingsRead:
    return BookingSettingsRead(
        organization_id=organization_id,
        advance_booking_hours=config.min_advance_hours,
        max_advance_booking_days=config.max_advance_booking_days,
        weekend_booking_enabled=config.weekend_booking_enabled,
        booking_window_start=config.booking_window_start,
        booking_window_end=config.booking_window_end,
        timezone=config.timezone,
        min_duration_minutes=config.min_duration_minutes,
        max_duration_minutes=config.max_duration_minutes,
    )


@router.get("/{organization_id}/booking-settings", response_model=BookingSettingsRead)
def get_booking_settings(
    organization_id: str,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    config = load_booking_config(db, organization_id, redis)
    if config is None:
        raise HTTPException(status_code=404, detail="Not found")
    return _to_read(organization_id, config)


@router.put("/{organization_id}/booking-settings", response_model=BookingSettingsRead)
def update_booking_settings(
    organization_id: str,
    data: BookingSettingsUpdate,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    obj = get_organization(db, organization_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    current = config_from_organization(obj)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    try:
        config = BookingConfig.from_mapping(changes, base=current)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    stored = config.to_mapping()
    timezone = stored.pop("timezone")
    obj.booking_settings = json.dumps(stored)
    obj.timezone = timezone
    db.commit()

    invalidate_booking_settings(redis, [organization_id])
    logger.info(f"Booking settings updated for organization {organization_id}: {changes}")

    return _to_read(organization_id, config)
