"""
LocalBiz Backend — Chat & Message Models
==========================================

What:  Two-participant message threads (`chats`) and their messages
       (`messages`).
How:   A chat always pairs one consumer (user_id) with one business
       (business_id). Per-participant display data and unread counters are
       plain columns so updates are tracked by the ORM.
Who:   ChatService creates chats, appends messages and maintains counters.

Query Patterns:
    - Find existing chat: WHERE (user_id, business_id) in either order
    - Inbox: WHERE user_id = :me OR business_id = :me
             ORDER BY last_message_at DESC
    - Thread: WHERE chat_id = :c ORDER BY created_at ASC
"""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from localbiz.database import Base
from localbiz.models.common import new_id, utcnow


class Chat(Base):
    """A message thread between a consumer and a business."""

    __tablename__ = "chats"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    business_id: Mapped[str] = mapped_column(String(36), nullable=False)

    # ── Participant display data ─────────────────────────────────────────
    user_name: Mapped[str] = mapped_column(String(200), nullable=False, default="User")
    business_name: Mapped[str] = mapped_column(String(200), nullable=False, default="Business")
    user_avatar: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    business_avatar: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    # ── Thread summary ────────────────────────────────────────────────────
    last_message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    last_message_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    user_unread_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    business_unread_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_chats_user_id", "user_id"),
        Index("idx_chats_business_id", "business_id"),
        Index("idx_chats_last_message_at", "last_message_at"),
    )

    @property
    def participants(self) -> List[str]:
        return [self.user_id, self.business_id]

    def has_participant(self, account_id: str) -> bool:
        return account_id in (self.user_id, self.business_id)

    def other_participant(self, account_id: str) -> str:
        return self.business_id if account_id == self.user_id else self.user_id

    def name_of(self, account_id: str) -> str:
        return self.user_name if account_id == self.user_id else self.business_name

    def unread_for(self, account_id: str) -> int:
        if account_id == self.user_id:
            return self.user_unread_count or 0
        return self.business_unread_count or 0

    def set_unread(self, account_id: str, value: int) -> None:
        if account_id == self.user_id:
            self.user_unread_count = value
        else:
            self.business_unread_count = value

    def unread_map(self) -> Dict[str, int]:
        return {
            self.user_id: self.user_unread_count or 0,
            self.business_id: self.business_unread_count or 0,
        }

    def __repr__(self) -> str:
        return f"<Chat(id={self.id}, user={self.user_id}, business={self.business_id})>"


class Message(Base):
    """One message inside a chat."""

    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    chat_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("chats.id", ondelete="CASCADE"),
        nullable=False,
    )

    sender_id: Mapped[str] = mapped_column(String(36), nullable=False)

    text: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("idx_messages_chat_id_created_at", "chat_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, chat_id={self.chat_id}, sender={self.sender_id})>"
