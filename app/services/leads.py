import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core import activity_log
from app.core.auth_utils import filter_by_user
from app.core.cache import invalidate_lead_views
from app.core.config import settings
from app.core.enums import LeadSource, LeadStatus
from app.core.errors import NotFoundError, ValidationError, catch_transient
from app.core.metrics import lead_status_changes, track_db_operation
from app.core.result import Result
from app.models.lead import Lead
from app.models.user import User
from app.schemas.lead import LeadCreate, LeadUpdate, PublicLeadCreate
from app.services.lead_status import transition
from app.services.referrals import attribute_referral

logger = logging.getLogger(__name__)


@track_db_operation("get", "leads")
@catch_transient
async def get_lead(db: AsyncSession, lead_id: str) -> Result[Lead]:
    lead = await db.get(Lead, lead_id)
    if lead is None:
        return Result.failure(NotFoundError("Lead", lead_id))
    return Result.success(lead)


async def _check_assignee(db: AsyncSession, user_id: Optional[str]) -> Optional[ValidationError]:
    if user_id is None:
        return None
    if await db.get(User, user_id) is None:
        return ValidationError("Unknown agent", {"assigned_agent_id": f"No user with id {user_id}"})
    return None


@track_db_operation("create", "leads")
@catch_transient
async def create_public_lead(db: AsyncSession, payload: PublicLeadCreate) -> Result[Lead]:
    """Inbound inquiry from the public landing page, optionally with a referral code."""
    attribution = (await attribute_referral(db, payload.referral_code)).value

    lead = Lead(
        name=payload.name,
        phone=payload.phone,
        email=payload.email,
        budget=payload.budget,
        notes=payload.notes,
        status=LeadStatus.NEW.value,
        source=(LeadSource.REFERRAL if attribution.attributed else LeadSource.WEBSITE).value,
        referral_code=attribution.referral_code,
        channel_partner_id=attribution.channel_partner_id,
        submitted_from=payload.submitted_from,
    )
    db.add(lead)
    await db.flush()
    await activity_log.log_lead_created(db, lead)
    await db.commit()
    await db.refresh(lead)

    logger.info(f"Public lead {lead.id} created (partner={lead.channel_partner_id or 'none'})")
    return Result.success(lead)


@track_db_operation("create", "leads")
@catch_transient
async def create_lead(db: AsyncSession, payload: LeadCreate, acting_user_id: str) -> Result[Lead]:
    """Lead entered manually from the dashboard."""
    assignee = payload.assigned_agent_id or acting_user_id
    error = await _check_assignee(db, assignee)
    if error:
        return Result.failure(error)

    lead = Lead(
        name=payload.name,
        phone=payload.phone,
        email=payload.email,
        budget=payload.budget,
        notes=payload.notes,
        status=LeadStatus.NEW.value,
        source=payload.source.value if payload.source else None,
        assigned_agent_id=assignee,
        created_by=acting_user_id,
        submitted_from="dashboard",
    )
    db.add(lead)
    await db.flush()
    await activity_log.log_lead_created(db, lead, acting_user_id)
    await db.commit()
    await db.refresh(lead)
    return Result.success(lead)


@track_db_operation("list", "leads")
@catch_transient
async def list_leads(
    db: AsyncSession,
    status: Optional[LeadStatus] = None,
    search: Optional[str] = None,
    viewer: Optional[User] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> Result[List[Lead]]:
    q = select(Lead)

    if viewer is not None:
        q = filter_by_user(q, Lead, viewer)

    if status:
        q = q.where(Lead.status == LeadStatus(status).value)

    if search:
        pattern = f"%{search.strip()}%"
        q = q.where(or_(
            Lead.name.ilike(pattern),
            Lead.phone.contains(search.strip()),
            Lead.email.ilike(pattern),
        ))

    q = q.order_by(Lead.created_at.desc())
    if limit is not None:
        q = q.limit(limit).offset(offset)
    res = await db.execute(q)
    return Result.success(list(res.scalars().all()))


@track_db_operation("update", "leads")
@catch_transient
async def update_lead(
    db: AsyncSession,
    lead_id: str,
    payload: LeadUpdate,
    acting_user_id: Optional[str]
) -> Result[Lead]:
    """Apply a partial update; every successful update leaves at least one activity."""
    lead = await db.get(Lead, lead_id)
    if lead is None:
        return Result.failure(NotFoundError("Lead", lead_id))

    changes = payload.model_dump(exclude_unset=True)
    requested_status = changes.pop("status", None)

    old_status = lead.status
    new_status = old_status
    if requested_status is not None:
        res = transition(old_status, requested_status, strict=settings.STRICT_STATUS_TRANSITIONS)
        if not res.ok:
            return Result.failure(res.error)
        new_status = res.value.value

    if "assigned_agent_id" in changes:
        error = await _check_assignee(db, changes["assigned_agent_id"])
        if error:
            return Result.failure(error)

    changed_fields = []
    for field, value in changes.items():
        if isinstance(value, LeadSource):
            value = value.value
        if getattr(lead, field) != value:
            setattr(lead, field, value)
            changed_fields.append(field)

    status_changed = new_status != old_status
    if status_changed:
        lead.status = new_status
        await activity_log.log_status_changed(db, lead.id, acting_user_id, old_status, new_status)
    if changed_fields or not status_changed:
        await activity_log.log_lead_updated(db, lead.id, acting_user_id, changed_fields)

    await db.commit()
    await db.refresh(lead)
    await invalidate_lead_views(lead.id)

    if status_changed:
        lead_status_changes.labels(from_status=old_status, to_status=new_status).inc()
    return Result.success(lead)
