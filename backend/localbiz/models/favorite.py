"""
LocalBiz Backend — Favorite Model
==================================

What:  A user-to-business bookmark (`favorites` table).
How:   At most one row per (user_id, business_id), enforced by a unique
       constraint on top of the service-level existence check.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from localbiz.database import Base
from localbiz.models.common import new_id, utcnow


class Favorite(Base):
    __tablename__ = "favorites"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )

    # Not a foreign key: favorites synced from an anonymous local list may
    # reference businesses that were removed since.
    business_id: Mapped[str] = mapped_column(String(36), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("user_id", "business_id", name="uq_favorites_user_business"),
        Index("idx_favorites_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Favorite(user_id={self.user_id}, business_id={self.business_id})>"
