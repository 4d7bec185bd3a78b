"""
LocalBiz Backend — Chat Schemas
=================================

What:  Chat threads, messages and the unread-counter payload.
How:   Per-participant data is exposed as maps keyed by account id
       (`participantNames`, `participantAvatars`, `unreadCount`).
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from localbiz.models.chat import Chat, Message
from localbiz.models.common import as_utc
from localbiz.schemas.common import CamelModel


class CreateChatRequest(CamelModel):
    user_id: Optional[str] = None
    business_id: Optional[str] = None
    user_name: Optional[str] = None
    business_name: Optional[str] = None
    user_avatar: Optional[str] = None
    business_avatar: Optional[str] = None


class CreateChatResponse(CamelModel):
    success: bool = True
    chat_id: str
    message: str


class ChatSummary(CamelModel):
    id: str
    participants: List[str]
    participant_names: Dict[str, str]
    participant_avatars: Dict[str, Optional[str]]
    last_message: str
    last_message_timestamp: datetime
    unread_count: Dict[str, int]
    created_at: datetime

    @classmethod
    def from_model(cls, chat: Chat) -> "ChatSummary":
        return cls(
            id=chat.id,
            participants=chat.participants,
            participant_names={chat.user_id: chat.user_name, chat.business_id: chat.business_name},
            participant_avatars={chat.user_id: chat.user_avatar, chat.business_id: chat.business_avatar},
            last_message=chat.last_message or "",
            last_message_timestamp=as_utc(chat.last_message_at),
            unread_count=chat.unread_map(),
            created_at=as_utc(chat.created_at),
        )


class ChatListResponse(CamelModel):
    success: bool = True
    chats: List[ChatSummary]


class SendMessageRequest(CamelModel):
    text: Optional[str] = None


class MessageItem(CamelModel):
    id: str
    chat_id: str
    sender_id: str
    text: str
    timestamp: datetime
    read: bool

    @classmethod
    def from_model(cls, message: Message) -> "MessageItem":
        return cls(
            id=message.id,
            chat_id=message.chat_id,
            sender_id=message.sender_id,
            text=message.text,
            timestamp=as_utc(message.created_at),
            read=message.read,
        )


class MessageListResponse(CamelModel):
    success: bool = True
    messages: List[MessageItem]


class SendMessageResponse(CamelModel):
    success: bool = True
    message: MessageItem


class MarkReadResponse(CamelModel):
    success: bool = True
    marked: int = Field(description="Messages flipped to read")


class UnreadSummary(CamelModel):
    """Badge payload: total unread plus a preview of the latest unread thread."""
    unread_count: int = 0
    latest_sender_name: str = ""
    latest_message: str = ""
