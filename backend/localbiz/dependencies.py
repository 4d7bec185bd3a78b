"""
LocalBiz Backend — Request Dependencies
=========================================

What:  Session authentication for protected routes.
How:   Reads `Authorization: Bearer <token>` (HTTPBearer with auto_error
       off, so a missing header becomes our own 401 response) and resolves
       it through AuthService. The unread SSE stream also accepts the token
       as a `token` query parameter because browser EventSource cannot set
       headers. The stream resolves its token on a short session of its
       own instead of the request-scoped one.
"""

from typing import Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from localbiz.database import get_db_session, get_session_factory
from localbiz.exceptions import PermissionDeniedError
from localbiz.models.account import Account
from localbiz.services.auth_service import auth_service

bearer_scheme = HTTPBearer(auto_error=False)


def bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    return credentials.credentials if credentials else None


async def get_current_account(
    token: Optional[str] = Depends(bearer_token),
    db: AsyncSession = Depends(get_db_session),
) -> Account:
    """The signed-in account; 401 when the token is missing or expired."""
    return await auth_service.resolve_session(db, token)


async def get_stream_account(
    token: Optional[str] = Depends(bearer_token),
    query_token: Optional[str] = Query(default=None, alias="token"),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> Account:
    """
    Resolve the stream token on a short session of its own.

    The session is closed before the response starts, so a long-lived stream
    holds no pooled connection between polls.
    """
    async with session_factory() as db:
        account = await auth_service.resolve_session(db, token or query_token)
        await db.commit()
    return account


def ensure_owner(account: Account, owner_id: Optional[str]) -> None:
    """
    Refuse acting on another account's data.

    A missing `owner_id` is left to the service, which reports it as 400.
    """
    if owner_id and owner_id != account.id:
        raise PermissionDeniedError(message="You can only manage your own account's data")
