"""Per-lead cached views (follow-up list, activity feed).

Every view key carries the lead's view version. A mutation bumps the version
synchronously after commit, so a read that follows a write always misses. A
slow reader that loaded rows before the write can only store them under the
old version, which nobody reads again.
"""
import json
import logging
from typing import Optional

from app.core.config import settings
from app.core.metrics import cache_hits, cache_misses
from app.core.redis import get_redis_or_none

logger = logging.getLogger(__name__)

FOLLOW_UPS_VIEW = "follow_ups"
ACTIVITIES_VIEW = "activities"


def _version_key(lead_id: str) -> str:
    return f"lead:{lead_id}:version"


def _view_key(lead_id: str, view: str, version: int) -> str:
    return f"lead:{lead_id}:{view}:v{version}"


async def lead_view_version(lead_id: str) -> Optional[int]:
    """Current view version of a lead, or None when the cache is unavailable."""
    redis = get_redis_or_none()
    if redis is None:
        return None
    try:
        current = await redis.get(_version_key(lead_id))
    except Exception as e:
        logger.warning(f"Cache version lookup failed for lead {lead_id}: {e}")
        return None
    return int(current) if current else 0


async def get_cached_view(lead_id: str, view: str, version: Optional[int] = None) -> Optional[list]:
    redis = get_redis_or_none()
    if redis is None:
        return None
    if version is None:
        version = await lead_view_version(lead_id)
        if version is None:
            return None
    try:
        cached = await redis.get(_view_key(lead_id, view, version))
    except Exception as e:
        logger.warning(f"Cache retrieval failed for {view} of lead {lead_id}: {e}")
        return None
    if cached:
        cache_hits.labels(view=view).inc()
        return json.loads(cached)
    cache_misses.labels(view=view).inc()
    return None


async def set_cached_view(lead_id: str, view: str, data: list, version: Optional[int] = None) -> None:
    """Store a view under the version that was current before its rows were loaded."""
    redis = get_redis_or_none()
    if redis is None:
        return
    if version is None:
        version = await lead_view_version(lead_id)
        if version is None:
            return
    try:
        await redis.set(
            _view_key(lead_id, view, version),
            json.dumps(data, default=str),
            ex=settings.VIEW_CACHE_TTL
        )
    except Exception as e:
        logger.warning(f"Cache write failed for {view} of lead {lead_id}: {e}")


async def invalidate_lead_views(lead_id: str) -> None:
    redis = get_redis_or_none()
    if redis is None:
        return
    try:
        await redis.incr(_version_key(lead_id))
    except Exception as e:
        # stale entries still expire after VIEW_CACHE_TTL
        logger.warning(f"Cache invalidation failed for lead {lead_id}: {e}")
