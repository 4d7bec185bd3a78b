"""
LocalBiz Backend — Business Document Model
============================================

What:  ORM model for the `businesses` table: one registered business with
       its profile, contact details, location, opening hours, services and
       images.
Who:   Created at business registration; updated by the owner's profile
       editor and image uploads; read by search, detail pages and analytics.

Nested document fields are JSON columns:
    address          {street, city, state, zipCode, country}
    social_links     {facebook, instagram, twitter, linkedin, youtube}
    business_hours   {monday: {open, close, closed}, ..., sunday: {...}}
    services         [{name, description, price}]
    images           [url, ...]
    google_map_location {lat, lng}

Query Patterns:
    - Search: WHERE category = :c ORDER BY business_name | created_at
      → idx_businesses_category, idx_businesses_created_at
    - Competitors: WHERE category = :c
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from localbiz.database import Base
from localbiz.models.common import utcnow


class Business(Base):
    """A business listed in the directory."""

    __tablename__ = "businesses"

    # Same value as accounts.id
    id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        primary_key=True,
    )

    email: Mapped[str] = mapped_column(String(320), nullable=False)
    business_name: Mapped[str] = mapped_column(String(100), nullable=False)
    user_type: Mapped[str] = mapped_column(String(20), nullable=False, default="business")
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # ── Profile ───────────────────────────────────────────────────────────
    business_icon: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    tagline: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # ── Gallery ───────────────────────────────────────────────────────────
    images: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # ── Contact ───────────────────────────────────────────────────────────
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    social_links: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    # ── Location ──────────────────────────────────────────────────────────
    address: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    google_map_location: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    google_map_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    # ── Hours & Services ──────────────────────────────────────────────────
    business_hours: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    services: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_businesses_category", "category"),
        Index("idx_businesses_created_at", "created_at"),
    )

    @property
    def city(self) -> Optional[str]:
        return (self.address or {}).get("city")

    @property
    def state(self) -> Optional[str]:
        return (self.address or {}).get("state")

    def __repr__(self) -> str:
        return f"<Business(id={self.id}, name='{self.business_name}', category='{self.category}')>"
