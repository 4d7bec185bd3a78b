"""
LocalBiz Backend — Favorite Service
=====================================

What:  A user's bookmarked businesses: list, add, remove, and the sync that
       merges an anonymous visitor's locally stored favorites on login.
How:   One `favorites` row per (user, business) pair; sync inserts only
       the pairs that are missing and reports what it inserted.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from localbiz.exceptions import DatabaseError, LocalBizError, NotFoundError, ValidationError
from localbiz.models.common import as_utc
from localbiz.models.favorite import Favorite
from localbiz.schemas.favorite import (
    FavoriteAddResponse,
    FavoriteItem,
    FavoriteListResponse,
    FavoriteSyncResponse,
    SyncedFavorite,
)

logger = logging.getLogger(__name__)


def _to_item(favorite: Favorite) -> FavoriteItem:
    return FavoriteItem(
        id=favorite.id,
        user_id=favorite.user_id,
        business_id=favorite.business_id,
        created_at=as_utc(favorite.created_at),
    )


class FavoriteService:

    async def _find(self, db: AsyncSession, user_id: str, business_id: str) -> Optional[Favorite]:
        result = await db.execute(
            select(Favorite).where(
                Favorite.user_id == user_id,
                Favorite.business_id == business_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_favorites(self, db: AsyncSession, user_id: Optional[str]) -> FavoriteListResponse:
        if not user_id:
            raise ValidationError(message="User ID is required", field="userId")
        try:
            result = await db.execute(
                select(Favorite)
                .where(Favorite.user_id == user_id)
                .order_by(Favorite.created_at.desc())
            )
            favorites = [_to_item(f) for f in result.scalars().all()]
        except Exception as e:
            logger.error("Database error listing favorites for %s: %s", user_id, str(e))
            raise DatabaseError(message="Failed to fetch favorites", context={"user_id": user_id})
        return FavoriteListResponse(favorites=favorites)

    async def add_favorite(
        self, db: AsyncSession, user_id: Optional[str], business_id: Optional[str]
    ) -> FavoriteAddResponse:
        """
        Raises:
            ValidationError: missing ids, or the pair already exists
        """
        if not user_id or not business_id:
            raise ValidationError(message="User ID and Business ID are required")

        try:
            if await self._find(db, user_id, business_id) is not None:
                raise ValidationError(message="Business already in favorites", field="businessId")

            favorite = Favorite(user_id=user_id, business_id=business_id)
            db.add(favorite)
            await db.flush()
        except LocalBizError:
            raise
        except Exception as e:
            logger.error("Failed to add favorite %s/%s: %s", user_id, business_id, str(e))
            raise DatabaseError(message="Failed to add favorite", context={"user_id": user_id})

        logger.info("User %s favorited business %s", user_id, business_id)
        return FavoriteAddResponse(favorite_id=favorite.id)

    async def sync_favorites(
        self, db: AsyncSession, user_id: Optional[str], business_ids: List[str]
    ) -> FavoriteSyncResponse:
        """
        Merge a locally stored favorites list into the user's favorites.

        Pairs that already exist (or repeat within the list) are skipped.
        """
        if not user_id:
            raise ValidationError(message="User ID is required", field="userId")

        synced: List[SyncedFavorite] = []
        try:
            result = await db.execute(
                select(Favorite.business_id).where(Favorite.user_id == user_id)
            )
            existing = set(result.scalars().all())

            for business_id in business_ids:
                if not business_id or business_id in existing:
                    continue
                favorite = Favorite(user_id=user_id, business_id=business_id)
                db.add(favorite)
                await db.flush()
                existing.add(business_id)
                synced.append(SyncedFavorite(business_id=business_id, id=favorite.id))
        except Exception as e:
            logger.error("Failed to sync favorites for %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(message="Failed to add favorite", context={"user_id": user_id})

        logger.info("Synced %d favorites for user %s", len(synced), user_id)
        return FavoriteSyncResponse(message=f"{len(synced)} favorites synced", synced=synced)

    async def remove_favorite(
        self, db: AsyncSession, user_id: Optional[str], business_id: Optional[str]
    ) -> None:
        """
        Raises:
            NotFoundError: the pair does not exist (→ 404 "Favorite not found")
        """
        if not user_id or not business_id:
            raise ValidationError(message="User ID and Business ID are required")

        favorite = await self._find(db, user_id, business_id)
        if favorite is None:
            raise NotFoundError(resource="favorite", message="Favorite not found")

        await db.delete(favorite)
        await db.flush()
        logger.info("User %s unfavorited business %s", user_id, business_id)


# ── Singleton Instance ────────────────────────────────────────────────────
favorite_service = FavoriteService()
