from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime
from app.core.enums import FollowUpBadge, FollowUpStatus, FollowUpType


class FollowUpCreate(BaseModel):
    scheduled_at: datetime
    type: FollowUpType
    notes: Optional[str] = Field(default=None, max_length=2000)
    reminder: bool = False


class FollowUpUpdate(BaseModel):
    status: Literal["completed", "cancelled"]
    notes: Optional[str] = Field(default=None, max_length=2000)


class FollowUpOut(BaseModel):
    id: str
    lead_id: str
    user_id: str
    scheduled_at: datetime
    completed_at: Optional[datetime] = None
    status: FollowUpStatus
    type: FollowUpType
    notes: Optional[str] = None
    reminder: bool
    display_status: Optional[FollowUpBadge] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
