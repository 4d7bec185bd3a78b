"""
LocalBiz Backend — Analytics Event Model
==========================================

What:  Append-only log of "view" and "search" interactions with businesses.
Who:   Written by POST /api/analytics; scanned by the ranking and
       per-business dashboards in AnalyticsService.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from localbiz.database import Base
from localbiz.models.common import new_id, utcnow

EVENT_TYPES = ("view", "search")


class AnalyticsEvent(Base):
    __tablename__ = "analytics_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    business_id: Mapped[str] = mapped_column(String(36), nullable=False)

    # Values: 'view' | 'search'
    event_type: Mapped[str] = mapped_column(String(20), nullable=False)

    # Only set for search events
    search_query: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user_agent: Mapped[str] = mapped_column(String(512), nullable=False, default="unknown")

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_analytics_events_business_id", "business_id"),
    )

    def __repr__(self) -> str:
        return f"<AnalyticsEvent(business_id={self.business_id}, type='{self.event_type}')>"
