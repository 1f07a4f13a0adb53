from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List

from app.db.session import get_db
from app.models.lead import Lead
from app.schemas.activity import ActivityOut
from app.schemas.lead import LeadCreate, LeadOut, LeadStatsOut, LeadUpdate, PublicLeadCreate
from app.schemas.timeline import TimelineOut
from app.core.cache import ACTIVITIES_VIEW, get_cached_view, lead_view_version, set_cached_view
from app.core.enums import LeadStatus
from app.core.security import get_current_user
from app.utils.idempotency import get_idempotent, set_idempotent
from app.core.rate_limit import check_rate_limit
from app.core.auth_utils import check_ownership, raise_for_result
from app.core.response_builders import (
    build_activity_response_list,
    build_lead_response,
    build_lead_response_list,
    build_stats_response,
    build_timeline_response,
)
from app.services import leads as lead_service
from app.services.activities import list_activities
from app.services.lead_stats import calculate_lead_stats
from app.services.timeline import build_timeline

router = APIRouter(prefix="/leads", tags=["leads"])


async def load_visible_lead(db: AsyncSession, lead_id: str, current_user) -> Lead:
    lead = raise_for_result(await lead_service.get_lead(db, lead_id))
    check_ownership(lead, current_user)
    return lead


@router.post("/public", response_model=LeadOut)
async def create_public_lead(
    payload: PublicLeadCreate,
    idempotency_key: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
):
    """Inquiry from the public landing page. No authentication."""
    prev = await get_idempotent("public_lead", idempotency_key)
    if prev:
        return prev

    lead = raise_for_result(await lead_service.create_public_lead(db, payload))

    out = build_lead_response(lead)
    await set_idempotent("public_lead", idempotency_key, out.model_dump(mode="json"))
    return out


@router.post("/", response_model=LeadOut)
async def create_lead(
    payload: LeadCreate,
    idempotency_key: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(current_user.id)

    prev = await get_idempotent(f"lead:{current_user.id}", idempotency_key)
    if prev:
        return prev

    lead = raise_for_result(await lead_service.create_lead(db, payload, current_user.id))

    out = build_lead_response(lead)
    await set_idempotent(f"lead:{current_user.id}", idempotency_key, out.model_dump(mode="json"))
    return out


@router.get("/", response_model=List[LeadOut])
async def list_leads(
    status: Optional[LeadStatus] = Query(None),
    q: Optional[str] = Query(None, max_length=120),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    leads = raise_for_result(await lead_service.list_leads(
        db, status=status, search=q, viewer=current_user, limit=limit, offset=offset
    ))
    return build_lead_response_list(leads)


@router.get("/stats", response_model=LeadStatsOut)
async def lead_stats(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    leads = raise_for_result(await lead_service.list_leads(db, viewer=current_user))
    return build_stats_response(calculate_lead_stats(leads))


@router.get("/{lead_id}", response_model=LeadOut)
async def get_lead(
    lead_id: str,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    lead = await load_visible_lead(db, lead_id, current_user)
    return build_lead_response(lead)


@router.put("/{lead_id}", response_model=LeadOut)
async def update_lead(
    lead_id: str,
    payload: LeadUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """Update contact fields and/or status of a lead"""
    await check_rate_limit(current_user.id)
    await load_visible_lead(db, lead_id, current_user)

    lead = raise_for_result(await lead_service.update_lead(db, lead_id, payload, current_user.id))
    return build_lead_response(lead)


@router.get("/{lead_id}/activities", response_model=List[ActivityOut])
async def list_lead_activities(
    lead_id: str,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await load_visible_lead(db, lead_id, current_user)

    version = await lead_view_version(lead_id)
    cached = await get_cached_view(lead_id, ACTIVITIES_VIEW, version)
    if cached is not None:
        return [ActivityOut.model_validate(item) for item in cached]

    activities = raise_for_result(await list_activities(db, lead_id))
    out = build_activity_response_list(activities)
    await set_cached_view(lead_id, ACTIVITIES_VIEW, [a.model_dump(mode="json") for a in out], version)
    return out


@router.get("/{lead_id}/timeline", response_model=TimelineOut)
async def lead_timeline(
    lead_id: str,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await load_visible_lead(db, lead_id, current_user)

    timeline = raise_for_result(await build_timeline(db, lead_id))
    return build_timeline_response(timeline)
