# backend/agentsalud/services/availability/settings_store.py
"""
Redis cache for per-organization booking settings.

Key format: booking:settings:{organization_id}
Value: JSON of BookingConfig.to_mapping(), expires after ttl seconds.

The availability computation itself is never cached; only the
organization's rule set is, since every request reads it.
"""

import json
import logging
from typing import Any

from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from ...config import settings
from .config import BookingConfig, get_booking_config
from .repository import get_organization

logger = logging.getLogger(__name__)


class BookingSettingsStore:
    """Redis storage wrapper for organization booking settings."""

    KEY_PREFIX = "booking:settings"

    def __init__(self, redis: Redis, ttl_seconds: int | None = None):
        self.redis = redis
        self.ttl_seconds = ttl_seconds or settings.booking_settings_ttl_seconds

    def _key(self, organization_id: str) -> str:
        return f"{self.KEY_PREFIX}:{organization_id}"

    def get(self, organization_id: str) -> dict[str, Any] | None:
        """Cached settings mapping, or None on miss."""
        raw = self.redis.get(self._key(organization_id))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return None

    def store(self, organization_id: str, config: BookingConfig) -> None:
        self.redis.setex(
            self._key(organization_id),
            self.ttl_seconds,
            json.dumps(config.to_mapping()),
        )

    def delete(self, organization_ids: list[str]) -> int:
        """Delete cached settings. Returns number of deleted keys."""
        if not organization_ids:
            return 0
        return self.redis.delete(*[self._key(org_id) for org_id in organization_ids])


def config_from_organization(organization) -> BookingConfig:
    """
    BookingConfig for an organization row.

    Invalid stored JSON falls back to defaults (keeping the org timezone if valid).
    """
    defaults = get_booking_config()
    base = defaults
    if organization.timezone:
        try:
            base = BookingConfig.from_mapping({"timezone": organization.timezone}, base=defaults)
        except ValueError:
            logger.warning(f"Organization {organization.id} has unknown timezone {organization.timezone!r}")

    if not organization.booking_settings:
        return base

    try:
        data = json.loads(organization.booking_settings)
        if not isinstance(data, dict):
            raise ValueError("booking_settings must be a JSON object")
        return BookingConfig.from_mapping(data, base=base)
    except (ValueError, TypeError) as e:
        logger.warning(f"Invalid booking_settings for organization {organization.id}, using defaults: {e}")
        return base


def load_booking_config(
    db: Session,
    organization_id: str,
    redis: Redis | None = None,
) -> BookingConfig | None:
    """
    Resolve the organization's BookingConfig: Redis → database → defaults.

    Returns None if the organization does not exist.
    """
    store = BookingSettingsStore(redis) if redis is not None else None

    if store is not None:
        try:
            cached = store.get(organization_id)
            if cached is not None:
                return BookingConfig.from_mapping(cached)
        except RedisError as e:
            logger.warning(f"Booking settings cache read failed for {organization_id}: {e}")
        except (ValueError, TypeError):
            logger.warning(f"Discarding invalid cached booking settings for {organization_id}")

    organization = get_organization(db, organization_id)
    if not organization:
        return None

    config = config_from_organization(organization)

    if store is not None:
        try:
            store.store(organization_id, config)
        except RedisError as e:
            logger.warning(f"Booking settings cache write failed for {organization_id}: {e}")

    return config
