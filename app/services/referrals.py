"""Channel partner attribution for inbound leads.

An unknown or missing referral code is a normal outcome: the lead is simply
created without a partner. Resolution only reads the users table.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.enums import UserRole
from app.core.errors import TRANSIENT_EXCEPTIONS
from app.core.result import Result
from app.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attribution:
    referral_code: Optional[str] = None
    channel_partner_id: Optional[str] = None

    @property
    def attributed(self) -> bool:
        return self.channel_partner_id is not None


def normalize_referral_code(code: Optional[str]) -> Optional[str]:
    if code is None:
        return None
    code = code.strip().upper()
    return code or None


async def attribute_referral(db: AsyncSession, referral_code: Optional[str]) -> Result[Attribution]:
    code = normalize_referral_code(referral_code)
    if code is None:
        return Result.success(Attribution())

    try:
        res = await db.execute(
            select(User.id).where(
                User.referral_code == code,
                User.role == UserRole.CHANNEL_PARTNER,
            )
        )
        partner_id = res.scalars().first()
    except TRANSIENT_EXCEPTIONS as e:
        logger.warning(f"Referral lookup for {code} failed, creating lead unattributed: {e}")
        await db.rollback()
        return Result.success(Attribution(referral_code=code))

    if partner_id is None:
        logger.info(f"Referral code {code} did not match a channel partner")
        return Result.success(Attribution(referral_code=code))

    return Result.success(Attribution(referral_code=code, channel_partner_id=partner_id))
