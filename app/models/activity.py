from sqlalchemy import Column, String, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from app.models.base import BaseModel

class Activity(BaseModel):
    __tablename__ = "activities"

    lead_id = Column(ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(ForeignKey("users.id"), nullable=True)

    lead = relationship("Lead", backref="activities")
    user = relationship("User", backref="activities")

    activity_type = Column(String(32), nullable=False)
    description = Column(Text)
    activity_metadata = Column("metadata", JSON, nullable=True)
