from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ActivityUser(BaseModel):
    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None


class ActivityOut(BaseModel):
    id: str
    lead_id: str
    activity_type: str
    description: Optional[str] = None
    metadata: Optional[dict] = None
    created_at: datetime
    user: Optional[ActivityUser] = None
