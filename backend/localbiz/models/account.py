"""
LocalBiz Backend — Account & Session Models
=============================================

What:  Credentials (`accounts`) and bearer sessions (`auth_sessions`).
How:   One account per email; the consumer profile (`users`) or business
       document (`businesses`) shares the account's id.
Who:   Used by AuthService for registration, login and session lookup.

Table Design:
    - email is stored lower-cased and unique (case-insensitive login)
    - password_hash is a passlib pbkdf2_sha256 hash, never the password
    - account_type records which profile table holds the profile
    - disabled accounts are refused at login with 403
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from localbiz.database import Base
from localbiz.models.common import new_id, utcnow


class Account(Base):
    """Authentication identity for a consumer or a business owner."""

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        comment="Lower-cased login email",
    )

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Values: 'user' | 'business'
    account_type: Mapped[str] = mapped_column(String(20), nullable=False)

    disabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, type='{self.account_type}')>"


class AuthSession(Base):
    """
    An opaque bearer token issued at login.

    Lifecycle:
        1. Created by POST /api/auth/login (expires after session_ttl_hours)
        2. Presented as `Authorization: Bearer <token>` on later requests
        3. Deleted on logout, or on first use after expiry
    """

    __tablename__ = "auth_sessions"

    token: Mapped[str] = mapped_column(String(128), primary_key=True)

    account_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_auth_sessions_account_id", "account_id"),
    )

    def __repr__(self) -> str:
        return f"<AuthSession(account_id={self.account_id}, expires_at='{self.expires_at}')>"
