"""
LocalBiz Backend — Favorite Route Handlers
============================================

What:  GET / POST / DELETE /api/favorites for the signed-in user.
How:   `userId` must be the session account (403 otherwise). POST with a
       `favorites` list syncs the anonymous local list after login; POST
       without it adds one business.
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from localbiz.database import get_db_session
from localbiz.dependencies import ensure_owner, get_current_account
from localbiz.models.account import Account
from localbiz.schemas.common import ErrorResponse, SuccessResponse
from localbiz.schemas.favorite import (
    FavoriteAddResponse,
    FavoriteListResponse,
    FavoriteRequest,
    FavoriteSyncResponse,
)
from localbiz.services.favorite_service import favorite_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Favorites"])

AUTH_RESPONSES = {
    400: {"description": "Missing ids", "model": ErrorResponse},
    401: {"description": "Not signed in", "model": ErrorResponse},
    403: {"description": "userId is not the signed-in account", "model": ErrorResponse},
}


@router.get(
    "/favorites",
    response_model=FavoriteListResponse,
    responses=AUTH_RESPONSES,
    summary="List the user's favorites",
)
async def list_favorites(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> FavoriteListResponse:
    ensure_owner(account, user_id)
    return await favorite_service.list_favorites(db, user_id)


@router.post(
    "/favorites",
    response_model=Union[FavoriteSyncResponse, FavoriteAddResponse],
    responses={**AUTH_RESPONSES, 400: {"description": "Missing ids or already a favorite", "model": ErrorResponse}},
    summary="Add a favorite, or sync a local favorites list",
)
async def add_favorite(
    payload: FavoriteRequest,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> Union[FavoriteSyncResponse, FavoriteAddResponse]:
    ensure_owner(account, payload.user_id)
    if payload.favorites is not None:
        return await favorite_service.sync_favorites(db, payload.user_id, payload.favorites)
    return await favorite_service.add_favorite(db, payload.user_id, payload.business_id)


@router.delete(
    "/favorites",
    response_model=SuccessResponse,
    responses={**AUTH_RESPONSES, 404: {"description": "Favorite not found", "model": ErrorResponse}},
    summary="Remove a favorite",
)
async def remove_favorite(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    business_id: Optional[str] = Query(default=None, alias="businessId"),
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    ensure_owner(account, user_id)
    await favorite_service.remove_favorite(db, user_id, business_id)
    return SuccessResponse(message="Removed from favorites")
