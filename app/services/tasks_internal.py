import logging
from app.core.enums import FollowUpStatus
from app.db.session import AsyncSessionLocal
from app.models.follow_up import FollowUp
from app.models.lead import Lead
from app.services.webhook import send_webhook

logger = logging.getLogger(__name__)


async def send_follow_up_reminder_async(follow_up_id: str) -> bool:
    """Notify about an upcoming follow-up if it is still pending"""
    async with AsyncSessionLocal() as db:
        follow_up = await db.get(FollowUp, follow_up_id)
        if not follow_up:
            logger.info(f"Reminder skipped, follow-up {follow_up_id} no longer exists")
            return False
        if follow_up.status != FollowUpStatus.PENDING.value or not follow_up.reminder:
            logger.info(f"Reminder skipped, follow-up {follow_up_id} is {follow_up.status}")
            return False

        lead = await db.get(Lead, follow_up.lead_id)
        payload = {
            "event": "follow_up.reminder",
            "follow_up_id": follow_up.id,
            "lead_id": follow_up.lead_id,
            "lead_name": lead.name if lead else None,
            "lead_phone": lead.phone if lead else None,
            "user_id": follow_up.user_id,
            "type": follow_up.type,
            "scheduled_at": follow_up.scheduled_at.isoformat(),
            "notes": follow_up.notes,
        }

    return await send_webhook(payload)
