# backend/agentsalud/services/availability/invalidator.py
"""
Cache invalidation for organization booking settings.

Triggers:
✓ booking_settings updated through the API
✓ organization timezone changed

Does NOT trigger:
✗ Schedules, appointments, blocked periods (availability is computed on the fly)
"""

import logging

from redis import Redis
from redis.exceptions import RedisError

from .settings_store import BookingSettingsStore

logger = logging.getLogger(__name__)


def invalidate_booking_settings(
    redis: Redis | None,
    organization_ids: list[str],
) -> int:
    """
    Drop cached settings for the organizations.

    Returns:
        Number of deleted cache keys (0 without Redis or on Redis failure)
    """
    if redis is None:
        return 0

    store = BookingSettingsStore(redis)
    try:
        return store.delete(organization_ids)
    except RedisError as e:
        logger.error(f"Failed to invalidate booking settings for {organization_ids}: {e}")
        return 0
