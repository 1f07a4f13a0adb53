"""Per-lead timeline combining activity records and follow-ups.

Activities sort by when they happened, follow-ups by when they are (or were)
scheduled. The merge is pure and recomputed on every read.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import PartialDataError, TransientIOError
from app.core.metrics import timeline_degraded
from app.core.result import Result
from app.models.base import as_utc
from app.services.activities import list_activities
from app.services.follow_ups import list_follow_ups
from app.services.leads import get_lead

logger = logging.getLogger(__name__)

ACTIVITY = "activity"
FOLLOW_UP = "followup"


@dataclass(frozen=True)
class TimelineItem:
    kind: str
    item: Any
    timestamp: datetime


@dataclass
class Timeline:
    lead_id: str
    items: List[TimelineItem]
    warnings: List[PartialDataError] = field(default_factory=list)

    @property
    def incomplete(self) -> bool:
        return bool(self.warnings)


def merge_timeline(activities: Iterable, follow_ups: Iterable) -> List[TimelineItem]:
    tagged = [TimelineItem(ACTIVITY, a, as_utc(a.created_at)) for a in activities]
    tagged += [TimelineItem(FOLLOW_UP, f, as_utc(f.scheduled_at)) for f in follow_ups]
    # sorted() keeps equal keys in their original order even with reverse=True
    return sorted(tagged, key=lambda entry: entry.timestamp, reverse=True)


async def build_timeline(db: AsyncSession, lead_id: str) -> Result[Timeline]:
    """Load both feeds for a lead and merge them, tolerating one missing feed."""
    lead_result = await get_lead(db, lead_id)
    if not lead_result.ok:
        return Result.failure(lead_result.error)

    activities_result = await list_activities(db, lead_id)
    follow_ups_result = await list_follow_ups(db, lead_id)

    if not activities_result.ok and not follow_ups_result.ok:
        logger.error(f"Timeline for lead {lead_id} unavailable, both feeds failed")
        return Result.failure(TransientIOError("Timeline temporarily unavailable, please retry"))

    warnings = []
    activities: list = []
    follow_ups: list = []

    if activities_result.ok:
        activities = activities_result.value
    else:
        timeline_degraded.labels(missing_feed="activities").inc()
        warnings.append(PartialDataError(
            "Activity history could not be loaded; timeline may be incomplete",
            {"feed": "activities", "cause": activities_result.error.code}
        ))

    if follow_ups_result.ok:
        follow_ups = follow_ups_result.value
    else:
        timeline_degraded.labels(missing_feed="follow_ups").inc()
        warnings.append(PartialDataError(
            "Follow-ups could not be loaded; timeline may be incomplete",
            {"feed": "follow_ups", "cause": follow_ups_result.error.code}
        ))

    if warnings:
        logger.warning(f"Timeline for lead {lead_id} served with {len(warnings)} missing feed(s)")

    return Result.success(Timeline(lead_id, merge_timeline(activities, follow_ups), warnings))
