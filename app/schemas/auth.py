from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional
from app.core.enums import UserRole


class LoginIn(BaseModel):
    username: str
    password: str


class RegisterIn(BaseModel):
    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=8)
    full_name: Optional[str] = Field(default=None, max_length=120)
    email: Optional[EmailStr] = None
    role: Literal["agent", "channel_partner"] = "agent"


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserOut(BaseModel):
    id: str
    username: str
    role: UserRole
    full_name: Optional[str] = None
    email: Optional[str] = None
    referral_code: Optional[str] = None
