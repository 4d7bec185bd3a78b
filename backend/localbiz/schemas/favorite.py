"""
LocalBiz Backend — Favorite Schemas
=====================================
"""

from datetime import datetime
from typing import List, Optional

from localbiz.schemas.common import CamelModel


class FavoriteRequest(CamelModel):
    """
    Body of POST /api/favorites.

    With `favorites` set the request is a sync of the anonymous local list;
    otherwise it adds the single (`user_id`, `business_id`) pair.
    """
    user_id: Optional[str] = None
    business_id: Optional[str] = None
    favorites: Optional[List[str]] = None


class FavoriteItem(CamelModel):
    id: str
    user_id: str
    business_id: str
    created_at: datetime


class FavoriteListResponse(CamelModel):
    success: bool = True
    favorites: List[FavoriteItem]


class FavoriteAddResponse(CamelModel):
    success: bool = True
    favorite_id: str
    message: str = "Added to favorites"


class SyncedFavorite(CamelModel):
    business_id: str
    id: str


class FavoriteSyncResponse(CamelModel):
    success: bool = True
    message: str
    synced: List[SyncedFavorite]
