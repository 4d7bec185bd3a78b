"""
LocalBiz Backend — Auth Schemas
=================================

What:  Payloads for registration, login, email checks and session lookup.
How:   Request fields are optional at the schema level so that missing or
       malformed values reach AuthService, which reports them with the
       messages the registration and login forms display.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from localbiz.models.common import as_utc
from localbiz.models.user import User
from localbiz.schemas.common import CamelModel


# ── Requests ──────────────────────────────────────────────────────────────


class BusinessRegisterRequest(CamelModel):
    business_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class CheckEmailRequest(CamelModel):
    email: Optional[str] = None


# ── Profiles ──────────────────────────────────────────────────────────────


class UserProfile(CamelModel):
    """A consumer profile as returned inside login and session payloads."""

    uid: str
    email: str
    first_name: str
    last_name: str
    profile_pic_url: Optional[str] = None
    user_type: str = "user"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, user: User) -> "UserProfile":
        return cls(
            uid=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            profile_pic_url=user.profile_pic_url,
            user_type=user.user_type,
            created_at=as_utc(user.created_at),
            updated_at=as_utc(user.updated_at),
        )


# ── Responses ─────────────────────────────────────────────────────────────


class RegisteredUser(CamelModel):
    uid: str
    first_name: str
    last_name: str
    email: str
    profile_pic_url: Optional[str] = None


class UserRegisterResponse(CamelModel):
    message: str = "User registered successfully"
    user: RegisteredUser


class RegisteredBusiness(CamelModel):
    uid: str
    business_name: str
    email: str
    verified: bool = False


class BusinessRegisterResponse(CamelModel):
    message: str = "Business account registered successfully"
    business: RegisteredBusiness


class CheckEmailResponse(CamelModel):
    exists: bool
    message: str


class SessionToken(CamelModel):
    token: str
    expires_at: datetime


class LoginUser(CamelModel):
    uid: str
    email: str
    user_data: Dict[str, Any] = Field(description="Consumer profile or business document")


class LoginResponse(CamelModel):
    success: bool = True
    message: str = "Login successful"
    user: LoginUser
    session: SessionToken


class SessionResponse(CamelModel):
    """The signed-in account as seen by the client's auth state."""

    uid: str
    email: str
    user_type: str
    user_data: Optional[Dict[str, Any]] = None
