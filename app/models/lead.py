from sqlalchemy import Column, String, Text, ForeignKey
from sqlalchemy.orm import relationship
from app.models.base import BaseModel
from app.core.enums import LeadStatus

class Lead(BaseModel):
    __tablename__ = "leads"
    name = Column(String(120), nullable=False)
    phone = Column(String(40), nullable=False)
    email = Column(String(120))
    status = Column(String(32), nullable=False, default=LeadStatus.NEW.value, index=True)
    source = Column(String(32))
    budget = Column(String(32))  # numeric string, never a float
    notes = Column(Text)

    assigned_agent_id = Column(ForeignKey("users.id"), nullable=True, index=True)
    created_by = Column(ForeignKey("users.id"), nullable=True)

    # metadata bag, kept as explicit columns
    referral_code = Column(String(32))
    channel_partner_id = Column(ForeignKey("users.id"), nullable=True, index=True)
    submitted_from = Column(String(64))

    creator = relationship("User", foreign_keys=[created_by])
    channel_partner = relationship("User", foreign_keys=[channel_partner_id])
