"""Follow-up scheduling and resolution.

A follow-up is stored as pending, completed or cancelled. Only a pending
follow-up can be resolved, and both outcomes are final. "Overdue" is never
stored: it is how a pending follow-up whose time has passed is displayed.
"""
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core import activity_log
from app.core.cache import invalidate_lead_views
from app.core.config import settings
from app.core.enums import FollowUpBadge, FollowUpStatus
from app.core.errors import InvalidStateError, NotFoundError, ValidationError, catch_transient
from app.core.metrics import follow_ups_resolved, track_db_operation
from app.core.result import Result
from app.models.base import as_utc, utcnow
from app.models.follow_up import FollowUp
from app.models.lead import Lead
from app.schemas.follow_up import FollowUpCreate

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def follow_up_badge(follow_up, now: Optional[datetime] = None) -> FollowUpBadge:
    status = FollowUpStatus(follow_up.status)
    if status == FollowUpStatus.COMPLETED:
        return FollowUpBadge.COMPLETED
    if status == FollowUpStatus.CANCELLED:
        return FollowUpBadge.CANCELLED
    now = as_utc(now) if now else utcnow()
    if as_utc(follow_up.scheduled_at) < now:
        return FollowUpBadge.OVERDUE
    return FollowUpBadge.PENDING


def _ordering_key(follow_up):
    created = follow_up.created_at
    return (as_utc(follow_up.scheduled_at), as_utc(created) if created else _EPOCH)


def order_follow_ups(follow_ups: Iterable) -> list:
    """Newest scheduled first; equal times fall back to newest created first."""
    return sorted(follow_ups, key=_ordering_key, reverse=True)


def latest_follow_up(follow_ups: Iterable):
    ordered = order_follow_ups(follow_ups)
    return ordered[0] if ordered else None


@track_db_operation("get", "follow_ups")
@catch_transient
async def get_follow_up(db: AsyncSession, follow_up_id: str) -> Result[FollowUp]:
    follow_up = await db.get(FollowUp, follow_up_id)
    if follow_up is None:
        return Result.failure(NotFoundError("Follow-up", follow_up_id))
    return Result.success(follow_up)


@track_db_operation("list", "follow_ups")
@catch_transient
async def list_follow_ups(db: AsyncSession, lead_id: str) -> Result[List[FollowUp]]:
    if await db.get(Lead, lead_id) is None:
        return Result.failure(NotFoundError("Lead", lead_id))
    res = await db.execute(select(FollowUp).where(FollowUp.lead_id == lead_id))
    return Result.success(order_follow_ups(res.scalars().all()))


@track_db_operation("create", "follow_ups")
@catch_transient
async def create_follow_up(
    db: AsyncSession,
    lead_id: str,
    payload: FollowUpCreate,
    acting_user_id: str,
    now: Optional[datetime] = None
) -> Result[FollowUp]:
    if await db.get(Lead, lead_id) is None:
        return Result.failure(NotFoundError("Lead", lead_id))

    scheduled_at = as_utc(payload.scheduled_at)
    now = as_utc(now) if now else utcnow()
    if settings.REJECT_PAST_FOLLOW_UPS and scheduled_at < now:
        return Result.failure(ValidationError(
            "Follow-up cannot be scheduled in the past",
            {"scheduled_at": "Must be a future date and time"}
        ))

    follow_up = FollowUp(
        lead_id=lead_id,
        user_id=acting_user_id,
        scheduled_at=scheduled_at,
        status=FollowUpStatus.PENDING.value,
        type=payload.type.value,
        notes=payload.notes,
        reminder=payload.reminder,
    )
    db.add(follow_up)
    await db.flush()
    await activity_log.log_follow_up_scheduled(db, follow_up, acting_user_id)
    await db.commit()
    await db.refresh(follow_up)
    await invalidate_lead_views(lead_id)

    logger.info(f"Follow-up {follow_up.id} ({follow_up.type}) scheduled for lead {lead_id}")
    return Result.success(follow_up)


@track_db_operation("update", "follow_ups")
@catch_transient
async def resolve_follow_up(
    db: AsyncSession,
    follow_up_id: str,
    outcome: str,
    acting_user_id: str,
    notes: Optional[str] = None,
    now: Optional[datetime] = None
) -> Result[FollowUp]:
    """Move a pending follow-up to completed or cancelled."""
    try:
        target = FollowUpStatus(outcome)
    except ValueError:
        target = None
    if target not in (FollowUpStatus.COMPLETED, FollowUpStatus.CANCELLED):
        return Result.failure(ValidationError(
            "Invalid follow-up outcome", {"status": "Must be completed or cancelled"}
        ))

    follow_up = await db.get(FollowUp, follow_up_id)
    if follow_up is None:
        return Result.failure(NotFoundError("Follow-up", follow_up_id))

    if follow_up.status != FollowUpStatus.PENDING.value:
        return Result.failure(InvalidStateError(
            f"Follow-up is already {follow_up.status}",
            {"id": follow_up.id, "status": follow_up.status}
        ))

    follow_up.status = target.value
    if target == FollowUpStatus.COMPLETED:
        follow_up.completed_at = as_utc(now) if now else utcnow()
    if notes is not None:
        follow_up.notes = notes

    if target == FollowUpStatus.COMPLETED:
        await activity_log.log_follow_up_completed(db, follow_up, acting_user_id)
    elif settings.EMIT_CANCEL_ACTIVITY:
        await activity_log.log_follow_up_cancelled(db, follow_up, acting_user_id)

    await db.commit()
    await db.refresh(follow_up)
    await invalidate_lead_views(follow_up.lead_id)

    follow_ups_resolved.labels(outcome=target.value).inc()
    return Result.success(follow_up)
