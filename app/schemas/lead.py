from decimal import Decimal, InvalidOperation
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, Union
from datetime import datetime
from app.core.enums import LeadSource, LeadStatus

MAX_BUDGET_LENGTH = 32  # width of leads.budget


def normalize_budget(value: Union[str, int, float, Decimal, None]) -> Optional[str]:
    """Budgets travel as numeric strings so amounts never pass through a float column."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("Budget must be a number")
    raw = str(value).strip().replace(",", "")
    if raw == "":
        return None
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        raise ValueError("Budget must be a number")
    if not amount.is_finite():
        raise ValueError("Budget must be a number")
    if amount < 0:
        raise ValueError("Budget cannot be negative")
    text = format(amount.normalize(), "f")
    if len(text) > MAX_BUDGET_LENGTH:
        raise ValueError(f"Budget must fit in {MAX_BUDGET_LENGTH} digits")
    return text


def _blank_to_none(value):
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


class LeadMetadata(BaseModel):
    referral_code: Optional[str] = None
    channel_partner_id: Optional[str] = None
    submitted_from: Optional[str] = None


class LeadBase(BaseModel):
    name: str = Field(min_length=2, max_length=120)
    phone: str = Field(min_length=10, max_length=40)
    email: Optional[EmailStr] = None
    budget: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name", "phone", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="before")
    @classmethod
    def empty_email(cls, v):
        return _blank_to_none(v)

    @field_validator("budget", mode="before")
    @classmethod
    def check_budget(cls, v):
        return normalize_budget(v)


class PublicLeadCreate(LeadBase):
    referral_code: Optional[str] = Field(default=None, max_length=32)
    submitted_from: Optional[str] = Field(default="website", max_length=64)

    @field_validator("referral_code", mode="before")
    @classmethod
    def empty_code(cls, v):
        return _blank_to_none(v)


class LeadCreate(LeadBase):
    source: Optional[LeadSource] = None
    assigned_agent_id: Optional[str] = None

    @field_validator("source", mode="before")
    @classmethod
    def empty_source(cls, v):
        return _blank_to_none(v)


class LeadUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=120)
    phone: Optional[str] = Field(default=None, min_length=10, max_length=40)
    email: Optional[EmailStr] = None
    status: Optional[LeadStatus] = None
    source: Optional[LeadSource] = None
    budget: Optional[str] = None
    notes: Optional[str] = None
    assigned_agent_id: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def name_not_blank(cls, v):
        if v is None:
            raise ValueError("Name cannot be removed")
        return v.strip() if isinstance(v, str) else v

    @field_validator("phone", mode="before")
    @classmethod
    def phone_not_blank(cls, v):
        if v is None:
            raise ValueError("Phone cannot be removed")
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", "source", mode="before")
    @classmethod
    def blank_fields(cls, v):
        return _blank_to_none(v)

    @field_validator("budget", mode="before")
    @classmethod
    def check_budget(cls, v):
        return normalize_budget(v)


class LeadOut(BaseModel):
    id: str
    name: str
    phone: str
    phone_display: str
    email: Optional[str]
    status: LeadStatus
    status_label: str
    status_color: str
    source: Optional[str]
    budget: Optional[str]
    budget_display: Optional[str]
    notes: Optional[str]
    assigned_agent_id: Optional[str]
    created_by: Optional[str]
    metadata: Optional[LeadMetadata]
    created_at: datetime
    updated_at: Optional[datetime] = None


class LeadStatsOut(BaseModel):
    total: int
    converted: int
    pending: int
    this_month: int
    hot: int
    conversion_rate: int
    unassigned: int
    active_partners: int
    total_value: str
    total_value_display: str
    by_status: dict
