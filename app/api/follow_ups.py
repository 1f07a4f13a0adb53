import logging
from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List
from kombu.exceptions import OperationalError as BrokerError

from app.db.session import get_db
from app.schemas.follow_up import FollowUpCreate, FollowUpOut, FollowUpUpdate
from app.core.cache import FOLLOW_UPS_VIEW, get_cached_view, lead_view_version, set_cached_view
from app.core.security import get_current_user
from app.utils.idempotency import get_idempotent, set_idempotent
from app.core.rate_limit import check_rate_limit
from app.core.auth_utils import check_ownership, raise_for_result
from app.core.response_builders import build_follow_up_response, build_follow_up_response_list, with_display_status
from app.services import follow_ups as follow_up_service
from app.services.leads import get_lead
from app.services.tasks import schedule_reminder
from app.api.leads import load_visible_lead

logger = logging.getLogger(__name__)

router = APIRouter(tags=["follow-ups"])


@router.post("/leads/{lead_id}/follow-ups", response_model=FollowUpOut)
async def create_follow_up(
    lead_id: str,
    payload: FollowUpCreate,
    idempotency_key: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(current_user.id)
    await load_visible_lead(db, lead_id, current_user)

    scope = f"follow_up:{current_user.id}:{lead_id}"
    prev = await get_idempotent(scope, idempotency_key)
    if prev:
        return with_display_status(FollowUpOut.model_validate(prev))

    follow_up = raise_for_result(await follow_up_service.create_follow_up(
        db, lead_id, payload, current_user.id
    ))

    if follow_up.reminder:
        try:
            schedule_reminder(follow_up)
        except BrokerError as e:
            logger.error(f"Could not queue reminder for follow-up {follow_up.id}: {e}")

    out = build_follow_up_response(follow_up)
    await set_idempotent(scope, idempotency_key, out.model_dump(mode="json"))
    return out


@router.get("/leads/{lead_id}/follow-ups", response_model=List[FollowUpOut])
async def list_follow_ups(
    lead_id: str,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await load_visible_lead(db, lead_id, current_user)

    # badges depend on the clock, so cached rows are re-badged on every read
    version = await lead_view_version(lead_id)
    cached = await get_cached_view(lead_id, FOLLOW_UPS_VIEW, version)
    if cached is not None:
        return [with_display_status(FollowUpOut.model_validate(item)) for item in cached]

    follow_ups = raise_for_result(await follow_up_service.list_follow_ups(db, lead_id))
    out = build_follow_up_response_list(follow_ups)
    await set_cached_view(
        lead_id,
        FOLLOW_UPS_VIEW,
        [f.model_dump(mode="json", exclude={"display_status"}) for f in out],
        version
    )
    return out


@router.put("/follow-ups/{follow_up_id}", response_model=FollowUpOut)
async def update_follow_up(
    follow_up_id: str,
    payload: FollowUpUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """Complete or cancel a pending follow-up"""
    await check_rate_limit(current_user.id)

    follow_up = raise_for_result(await follow_up_service.get_follow_up(db, follow_up_id))
    lead = raise_for_result(await get_lead(db, follow_up.lead_id))
    check_ownership(lead, current_user)

    follow_up = raise_for_result(await follow_up_service.resolve_follow_up(
        db, follow_up_id, payload.status, current_user.id, notes=payload.notes
    ))
    return build_follow_up_response(follow_up)
