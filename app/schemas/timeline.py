from pydantic import BaseModel, Field
from typing import Annotated, List, Literal, Union
from app.schemas.activity import ActivityOut
from app.schemas.follow_up import FollowUpOut


class ActivityEntry(BaseModel):
    kind: Literal["activity"] = "activity"
    activity: ActivityOut


class FollowUpEntry(BaseModel):
    kind: Literal["followup"] = "followup"
    follow_up: FollowUpOut


TimelineEntry = Annotated[Union[ActivityEntry, FollowUpEntry], Field(discriminator="kind")]


class TimelineWarning(BaseModel):
    code: str
    message: str


class TimelineOut(BaseModel):
    lead_id: str
    entries: List[TimelineEntry]
    incomplete: bool = False
    warnings: List[TimelineWarning] = []
