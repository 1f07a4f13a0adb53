"""Append-only activity records for lead and follow-up mutations.

Each helper only adds the record to the session; it is committed in the same
transaction as the mutation it describes.
"""
import logging
from typing import Any, Iterable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.activity import Activity
from app.core.enums import ActivityType
from app.core.metrics import activities_created
from app.services.lead_status import status_label

logger = logging.getLogger(__name__)


async def log_activity(
    db: AsyncSession,
    lead_id: str,
    activity_type: ActivityType,
    description: str,
    user_id: Optional[str] = None,
    metadata: Optional[dict] = None
) -> Activity:
    activity = Activity(
        lead_id=lead_id,
        user_id=user_id,
        activity_type=str(activity_type),
        description=description,
        activity_metadata=metadata or None,
    )
    db.add(activity)
    await db.flush()
    activities_created.labels(activity_type=str(activity_type)).inc()
    logger.debug(f"Activity {activity_type} recorded for lead {lead_id}")
    return activity


async def log_lead_created(
    db: AsyncSession,
    lead: Any,
    user_id: Optional[str] = None
) -> Activity:
    metadata = {"source": lead.source}
    if lead.channel_partner_id:
        metadata["channel_partner_id"] = lead.channel_partner_id
    if user_id is None:
        description = f"Lead {lead.name} submitted an inquiry"
    else:
        description = f"Lead {lead.name} created"
    return await log_activity(db, lead.id, ActivityType.LEAD_CREATED, description, user_id, metadata)


async def log_lead_updated(
    db: AsyncSession,
    lead_id: str,
    user_id: Optional[str],
    fields: Iterable[str]
) -> Activity:
    changed = sorted(fields)
    if changed:
        description = "Updated " + ", ".join(f.replace("_", " ") for f in changed)
    else:
        description = "Lead details saved"
    return await log_activity(
        db, lead_id, ActivityType.LEAD_UPDATED, description, user_id, {"fields": changed}
    )


async def log_status_changed(
    db: AsyncSession,
    lead_id: str,
    user_id: Optional[str],
    old_status: str,
    new_status: str
) -> Activity:
    description = f"Status changed from {status_label(old_status)} to {status_label(new_status)}"
    return await log_activity(
        db, lead_id, ActivityType.STATUS_CHANGED, description, user_id,
        {"from": str(old_status), "to": str(new_status)}
    )


async def log_follow_up_scheduled(
    db: AsyncSession,
    follow_up: Any,
    user_id: Optional[str]
) -> Activity:
    description = f"{str(follow_up.type).capitalize()} follow-up scheduled"
    return await log_activity(
        db, follow_up.lead_id, ActivityType.FOLLOW_UP_SCHEDULED, description, user_id,
        {"follow_up_id": follow_up.id, "scheduled_at": follow_up.scheduled_at.isoformat()}
    )


async def log_follow_up_completed(
    db: AsyncSession,
    follow_up: Any,
    user_id: Optional[str]
) -> Activity:
    description = f"{str(follow_up.type).capitalize()} follow-up completed"
    return await log_activity(
        db, follow_up.lead_id, ActivityType.FOLLOW_UP_COMPLETED, description, user_id,
        {"follow_up_id": follow_up.id}
    )


async def log_follow_up_cancelled(
    db: AsyncSession,
    follow_up: Any,
    user_id: Optional[str]
) -> Activity:
    description = f"{str(follow_up.type).capitalize()} follow-up cancelled"
    return await log_activity(
        db, follow_up.lead_id, ActivityType.FOLLOW_UP_CANCELLED, description, user_id,
        {"follow_up_id": follow_up.id}
    )
