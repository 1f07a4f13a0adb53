from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from app.core.errors import catch_transient
from app.core.metrics import track_db_operation
from app.core.result import Result
from app.models.activity import Activity


@track_db_operation("list", "activities")
@catch_transient
async def list_activities(db: AsyncSession, lead_id: str) -> Result[List[Activity]]:
    """Activity feed for a lead, newest first."""
    res = await db.execute(
        select(Activity)
        .where(Activity.lead_id == lead_id)
        .options(selectinload(Activity.user))
        .order_by(Activity.created_at.desc())
    )
    return Result.success(list(res.scalars().all()))
