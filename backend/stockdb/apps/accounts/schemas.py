# backend/stockdb/apps/accounts/schemas.py

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from .models import MembershipRole


# ---------------------------------------------------------------------------
# ORGANIZATIONS
# ---------------------------------------------------------------------------


class OrganizationRead(BaseModel):
    id: str
    name: str
    slug: str
    created_at: datetime

    class Config:
        from_attributes = True


class MembershipRead(BaseModel):
    org_id: str
    role: MembershipRole
    organization: Optional[OrganizationRead] = None

    class Config:
        from_attributes = True


class BootstrapResult(BaseModel):
    org_id: str
    role: MembershipRole
    created: bool = False


# ---------------------------------------------------------------------------
# USERS
# ---------------------------------------------------------------------------


class UserRead(BaseModel):
    id: str
    email: EmailStr
    full_name: Optional[str] = None
    is_active: bool
    email_confirmed: bool
    created_at: datetime
    last_login_at: Optional[datetime] = None
    memberships: List[MembershipRead] = Field(default_factory=list)

    class Config:
        from_attributes = True


class UserProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None


class PasswordChange(BaseModel):
    new_password: str
    confirm_password: str


# ---------------------------------------------------------------------------
# AUTH
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead
    org_id: str
    role: MembershipRole


class AuthErrorDetail(BaseModel):
    """User-facing message pair shown by the sign-in screen."""

    title: str
    message: str
