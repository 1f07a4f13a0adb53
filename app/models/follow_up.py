from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.models.base import BaseModel
from app.core.enums import FollowUpStatus

class FollowUp(BaseModel):
    __tablename__ = "follow_ups"

    lead_id = Column(ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(ForeignKey("users.id"), nullable=False)

    lead = relationship("Lead", backref="follow_ups")

    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(16), nullable=False, default=FollowUpStatus.PENDING.value)
    type = Column(String(16), nullable=False)
    notes = Column(Text, nullable=True)
    reminder = Column(Boolean, nullable=False, default=False)
