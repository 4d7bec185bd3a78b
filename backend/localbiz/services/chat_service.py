"""
LocalBiz Backend — Chat Service
=================================

What:  Consumer ↔ business message threads and the unread badge.
How:   A chat row carries both participants, their display data, the last
       message preview and one unread counter per participant. Sending a
       message bumps the recipient's counter; reading a thread zeroes the
       reader's counter and flips the other side's messages to read.
Who:   Called by routes/chats.py. Every operation is performed on behalf of
       the session account and refuses chats it does not take part in.

Unread badge:
    unread_summary() totals the caller's counters across all chats and
    previews the most recently active chat that still has unread messages
    (preview cut to 100 characters + "..."). unread_events() re-computes it
    on an interval and yields a new value only when the total changes; the
    route streams those values as Server-Sent Events.
"""

import asyncio
import json
import logging
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from localbiz.exceptions import (
    DatabaseError,
    LocalBizError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from localbiz.models.chat import Chat, Message
from localbiz.models.common import utcnow
from localbiz.schemas.chat import (
    ChatListResponse,
    ChatSummary,
    CreateChatRequest,
    CreateChatResponse,
    MarkReadResponse,
    MessageItem,
    MessageListResponse,
    SendMessageResponse,
    UnreadSummary,
)

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000
PREVIEW_LENGTH = 100


def preview(text: str) -> str:
    if len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH] + "..."
    return text


def format_sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


class ChatService:

    # ── Helpers ───────────────────────────────────────────────────────────

    async def get_chat_for(self, db: AsyncSession, chat_id: str, account_id: str) -> Chat:
        """
        Load a chat the account takes part in.

        Raises:
            NotFoundError: unknown chat (→ 404)
            PermissionDeniedError: the account is not a participant (→ 403)
        """
        chat = await db.get(Chat, chat_id)
        if chat is None:
            raise NotFoundError(resource="chat", resource_id=chat_id, message="Chat not found")
        if not chat.has_participant(account_id):
            raise PermissionDeniedError(message="You are not a participant in this chat")
        return chat

    async def _chats_of(self, db: AsyncSession, account_id: str) -> List[Chat]:
        result = await db.execute(
            select(Chat)
            .where(or_(Chat.user_id == account_id, Chat.business_id == account_id))
            .order_by(Chat.last_message_at.desc(), Chat.id)
        )
        return list(result.scalars().all())

    # ── Threads ───────────────────────────────────────────────────────────

    async def create_chat(
        self, db: AsyncSession, account_id: str, payload: CreateChatRequest
    ) -> CreateChatResponse:
        """
        Return the chat between the two participants, creating it if needed.

        An existing chat matches in either participant order.
        """
        if not payload.user_id or not payload.business_id:
            raise ValidationError(message="User ID and Business ID are required")
        if account_id not in (payload.user_id, payload.business_id):
            raise PermissionDeniedError(message="You can only start chats you take part in")

        try:
            result = await db.execute(
                select(Chat).where(
                    or_(
                        and_(Chat.user_id == payload.user_id, Chat.business_id == payload.business_id),
                        and_(Chat.user_id == payload.business_id, Chat.business_id == payload.user_id),
                    )
                ).limit(1)
            )
            existing = result.scalar_one_or_none()
            if existing is not None:
                return CreateChatResponse(chat_id=existing.id, message="Chat already exists")

            now = utcnow()
            chat = Chat(
                user_id=payload.user_id,
                business_id=payload.business_id,
                user_name=payload.user_name or "User",
                business_name=payload.business_name or "Business",
                user_avatar=payload.user_avatar or None,
                business_avatar=payload.business_avatar or None,
                last_message="",
                last_message_at=now,
                user_unread_count=0,
                business_unread_count=0,
                created_at=now,
            )
            db.add(chat)
            await db.flush()
        except LocalBizError:
            raise
        except Exception as e:
            logger.error("Failed to create chat: %s", str(e), exc_info=True)
            raise DatabaseError(message="Failed to create chat")

        logger.info("Chat %s created between %s and %s", chat.id, chat.user_id, chat.business_id)
        return CreateChatResponse(chat_id=chat.id, message="Chat created successfully")

    async def list_chats(self, db: AsyncSession, account_id: str) -> ChatListResponse:
        """The account's chats, most recent activity first."""
        try:
            chats = await self._chats_of(db, account_id)
        except Exception as e:
            logger.error("Failed to list chats for %s: %s", account_id, str(e))
            raise DatabaseError(message="Failed to fetch chats")
        return ChatListResponse(chats=[ChatSummary.from_model(c) for c in chats])

    # ── Messages ──────────────────────────────────────────────────────────

    async def list_messages(self, db: AsyncSession, chat_id: str, account_id: str) -> MessageListResponse:
        await self.get_chat_for(db, chat_id, account_id)
        result = await db.execute(
            select(Message)
            .where(Message.chat_id == chat_id)
            .order_by(Message.created_at.asc(), Message.id)
        )
        return MessageListResponse(messages=[MessageItem.from_model(m) for m in result.scalars().all()])

    async def send_message(
        self, db: AsyncSession, chat_id: str, account_id: str, text: Optional[str]
    ) -> SendMessageResponse:
        """
        Append a message and update the thread summary.

        Raises:
            ValidationError: blank text or more than 2000 characters
        """
        body = (text or "").strip()
        if not body:
            raise ValidationError(message="Message text is required", field="text")
        if len(body) > MAX_MESSAGE_LENGTH:
            raise ValidationError(
                message=f"Message must not exceed {MAX_MESSAGE_LENGTH} characters", field="text"
            )

        chat = await self.get_chat_for(db, chat_id, account_id)

        try:
            now = utcnow()
            message = Message(chat_id=chat.id, sender_id=account_id, text=body, created_at=now, read=False)
            db.add(message)

            recipient = chat.other_participant(account_id)
            chat.last_message = body
            chat.last_message_at = now
            chat.set_unread(recipient, chat.unread_for(recipient) + 1)
            await db.flush()
        except Exception as e:
            logger.error("Failed to send message in chat %s: %s", chat_id, str(e), exc_info=True)
            raise DatabaseError(message="Failed to send message", context={"chat_id": chat_id})

        logger.info("Message %s sent in chat %s", message.id, chat_id)
        return SendMessageResponse(message=MessageItem.from_model(message))

    async def mark_read(self, db: AsyncSession, chat_id: str, account_id: str) -> MarkReadResponse:
        """Zero the caller's counter and mark the other side's messages read."""
        chat = await self.get_chat_for(db, chat_id, account_id)

        result = await db.execute(
            update(Message)
            .where(
                Message.chat_id == chat.id,
                Message.sender_id != account_id,
                Message.read.is_(False),
            )
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        chat.set_unread(account_id, 0)
        await db.flush()
        return MarkReadResponse(marked=result.rowcount or 0)

    # ── Unread badge ──────────────────────────────────────────────────────

    async def unread_summary(self, db: AsyncSession, account_id: str) -> UnreadSummary:
        chats = await self._chats_of(db, account_id)

        total = 0
        latest_sender = ""
        latest_message = ""
        # Oldest activity first, so the most recent unread chat wins the preview
        for chat in reversed(chats):
            count = chat.unread_for(account_id)
            total += count
            if count > 0 and chat.last_message:
                latest_sender = chat.name_of(chat.other_participant(account_id))
                latest_message = chat.last_message

        return UnreadSummary(
            unread_count=total,
            latest_sender_name=latest_sender,
            latest_message=preview(latest_message),
        )

    async def unread_events(
        self,
        session_factory: Callable[[], AsyncSession],
        account_id: str,
        poll_interval: float = 2.0,
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
        max_events: Optional[int] = None,
    ) -> AsyncIterator[str]:
        """
        Yield SSE frames with the unread summary whenever the total changes.

        The first frame is always sent. Each poll uses a short-lived session
        so the stream never holds a connection between polls.

        Args:
            session_factory: async_sessionmaker (or equivalent) to poll with
            is_disconnected: coroutine function reporting client disconnect
            max_events: stop after this many frames (None = until disconnect)
        """
        last_total: Optional[int] = None
        sent = 0
        while True:
            if is_disconnected is not None and await is_disconnected():
                logger.debug("Unread stream closed by client for %s", account_id)
                return

            async with session_factory() as db:
                summary = await self.unread_summary(db, account_id)

            if summary.unread_count != last_total:
                last_total = summary.unread_count
                sent += 1
                yield format_sse("unread", summary.model_dump(by_alias=True))
                if max_events is not None and sent >= max_events:
                    return

            await asyncio.sleep(poll_interval)


# ── Singleton Instance ────────────────────────────────────────────────────
chat_service = ChatService()
