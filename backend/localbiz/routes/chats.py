"""
LocalBiz Backend — Chat Route Handlers
========================================

What:  Chat creation, inbox, messages, read receipts and the unread badge
       (JSON snapshot and Server-Sent Events stream).
Who:   Messages pages, the "Message business" button and the navbar badge.

SSE:
    GET /api/chats/unread/stream emits `event: unread` frames whose data is
    the same JSON as GET /api/chats/unread, first immediately and then each
    time the unread total changes. EventSource cannot send headers, so the
    token may be passed as `?token=`.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from localbiz.database import get_db_session, get_session_factory
from localbiz.dependencies import get_current_account, get_stream_account
from localbiz.models.account import Account
from localbiz.schemas.chat import (
    ChatListResponse,
    CreateChatRequest,
    CreateChatResponse,
    MarkReadResponse,
    MessageListResponse,
    SendMessageRequest,
    SendMessageResponse,
    UnreadSummary,
)
from localbiz.schemas.common import ErrorResponse
from localbiz.services.chat_service import chat_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Chats"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}

UNREAD_POLL_SECONDS = 2.0

CHAT_RESPONSES = {
    401: {"description": "Not signed in", "model": ErrorResponse},
    403: {"description": "Not a participant", "model": ErrorResponse},
    404: {"description": "Chat not found", "model": ErrorResponse},
}


@router.post(
    "/chat/create",
    response_model=CreateChatResponse,
    responses={400: {"description": "Missing ids", "model": ErrorResponse}, **CHAT_RESPONSES},
    summary="Open (or reuse) a chat between a user and a business",
)
async def create_chat(
    payload: CreateChatRequest,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> CreateChatResponse:
    return await chat_service.create_chat(db, account.id, payload)


@router.get(
    "/chats",
    response_model=ChatListResponse,
    responses={401: CHAT_RESPONSES[401]},
    summary="The signed-in account's chats, most recent first",
)
async def list_chats(
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> ChatListResponse:
    return await chat_service.list_chats(db, account.id)


@router.get(
    "/chats/unread",
    response_model=UnreadSummary,
    responses={401: CHAT_RESPONSES[401]},
    summary="Unread badge: total count and latest preview",
)
async def unread_summary(
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> UnreadSummary:
    return await chat_service.unread_summary(db, account.id)


@router.get(
    "/chats/unread/stream",
    responses={200: {"content": {"text/event-stream": {}}}, 401: CHAT_RESPONSES[401]},
    summary="Unread badge as Server-Sent Events",
)
async def unread_stream(
    request: Request,
    account: Account = Depends(get_stream_account),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> StreamingResponse:
    logger.info("Unread stream opened for %s", account.id)
    return StreamingResponse(
        chat_service.unread_events(
            session_factory,
            account.id,
            poll_interval=UNREAD_POLL_SECONDS,
            is_disconnected=request.is_disconnected,
        ),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get(
    "/chats/{chat_id}/messages",
    response_model=MessageListResponse,
    responses=CHAT_RESPONSES,
    summary="Messages of a chat, oldest first",
)
async def list_messages(
    chat_id: str,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> MessageListResponse:
    return await chat_service.list_messages(db, chat_id, account.id)


@router.post(
    "/chats/{chat_id}/messages",
    status_code=201,
    response_model=SendMessageResponse,
    responses={400: {"description": "Blank or too long", "model": ErrorResponse}, **CHAT_RESPONSES},
    summary="Send a message",
)
async def send_message(
    chat_id: str,
    payload: SendMessageRequest,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> SendMessageResponse:
    return await chat_service.send_message(db, chat_id, account.id, payload.text)


@router.post(
    "/chats/{chat_id}/read",
    response_model=MarkReadResponse,
    responses=CHAT_RESPONSES,
    summary="Mark a chat as read for the signed-in account",
)
async def mark_read(
    chat_id: str,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> MarkReadResponse:
    return await chat_service.mark_read(db, chat_id, account.id)
