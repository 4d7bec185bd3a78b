"""
LocalBiz Backend — Business Service
=====================================

What:  Business document reads and owner-side edits: profile updates,
       icon and gallery uploads, gallery removals.
Who:   Called by routes/businesses.py. Ownership (session account ==
       business id) is checked by the routes before calling in.

Partial update rules (update_profile):
    - businessName          applied only when non-empty
    - scalar profile fields applied when present; empty string → null
    - address parts         any part present → whole address replaced,
                            missing parts → null
    - social links          same rule as the address
    - businessHours         replaced when present; blank times → null
    - services              replaced when present
    - updated_at            always refreshed

Image files:
    A replaced icon or removed gallery file is deleted from storage only
    after the document change is committed.
"""

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from localbiz.exceptions import DatabaseError, LocalBizError, NotFoundError, ValidationError
from localbiz.models.business import Business
from localbiz.models.common import utcnow
from localbiz.schemas.business import (
    WEEKDAYS,
    BusinessDocument,
    DayHours,
    DeleteImageResponse,
    UpdateProfileRequest,
    UpdateProfileResponse,
    UploadImageResponse,
)
from localbiz.services.file_service import BUSINESS_GALLERY, BUSINESS_ICONS, file_service

logger = logging.getLogger(__name__)

# Request field → model attribute, applied when present (empty → None)
SCALAR_FIELDS = {
    "tagline": "tagline",
    "description": "description",
    "category": "category",
    "phone": "phone",
    "contact_email": "contact_email",
    "website": "website",
    "google_map_url": "google_map_url",
}

# Request field → stored JSON key
ADDRESS_FIELDS = {
    "street": "street",
    "city": "city",
    "state": "state",
    "zip_code": "zipCode",
    "country": "country",
}

SOCIAL_FIELDS = ("facebook", "instagram", "twitter", "linkedin", "youtube")


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value or None


def normalize_hours(hours: Dict[str, DayHours]) -> Dict[str, Dict]:
    """Keep known weekdays only; blank open/close times become null."""
    normalized = {}
    for day, value in hours.items():
        key = day.lower()
        if key not in WEEKDAYS:
            continue
        normalized[key] = {
            "open": _blank_to_none((value.open or "").strip()),
            "close": _blank_to_none((value.close or "").strip()),
            "closed": bool(value.closed),
        }
    return normalized


class BusinessService:

    async def get_model(self, db: AsyncSession, business_id: str) -> Business:
        business = await db.get(Business, business_id)
        if business is None:
            raise NotFoundError(resource="business", resource_id=business_id, message="Business not found")
        return business

    async def get_business(self, db: AsyncSession, business_id: str) -> BusinessDocument:
        """
        Raises:
            NotFoundError: no business with this id (→ 404)
        """
        try:
            return BusinessDocument.from_model(await self.get_model(db, business_id))
        except LocalBizError:
            raise
        except Exception as e:
            logger.error("Database error fetching business %s: %s", business_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the business. Please try again.",
                context={"business_id": business_id},
            )

    async def update_profile(
        self, db: AsyncSession, payload: UpdateProfileRequest
    ) -> UpdateProfileResponse:
        """
        Apply a partial update to the business document `payload.uid`.

        Only keys present in the request body count as "present"
        (`model_fields_set`), so an omitted field is never cleared.
        """
        if not payload.uid:
            raise ValidationError(message="User ID is required", field="uid")

        present = payload.model_fields_set

        try:
            business = await self.get_model(db, payload.uid)

            if payload.business_name and payload.business_name.strip():
                business.business_name = payload.business_name.strip()

            for field, attr in SCALAR_FIELDS.items():
                if field in present:
                    setattr(business, attr, _blank_to_none(getattr(payload, field)))

            if "google_map_location" in present:
                location = payload.google_map_location
                business.google_map_location = location.model_dump() if location else None

            if present & set(ADDRESS_FIELDS):
                business.address = {
                    key: _blank_to_none(getattr(payload, field))
                    for field, key in ADDRESS_FIELDS.items()
                }

            if present & set(SOCIAL_FIELDS):
                business.social_links = {
                    name: _blank_to_none(getattr(payload, name)) for name in SOCIAL_FIELDS
                }

            if "business_hours" in present:
                hours = payload.business_hours
                business.business_hours = normalize_hours(hours) if hours is not None else None

            if "services" in present:
                business.services = [
                    service.model_dump(mode="json")
                    for service in (payload.services or [])
                    if service.name and service.name.strip()
                ]

            business.updated_at = utcnow()
            await db.flush()

        except LocalBizError:
            raise
        except Exception as e:
            logger.error("Profile update failed for %s: %s", payload.uid, str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to update profile",
                context={"business_id": payload.uid},
            )

        logger.info("Business %s profile updated: %s", business.id, ", ".join(sorted(present - {"uid"})))
        return UpdateProfileResponse(business=BusinessDocument.from_model(business))

    async def upload_image(
        self,
        db: AsyncSession,
        uid: Optional[str],
        image_type: Optional[str],
        upload: Optional[Tuple[bytes, Optional[str], Optional[str]]],
    ) -> UploadImageResponse:
        """
        Store an icon or gallery image for a business.

        `image_type == "icon"` replaces the business icon (the previous icon
        file is removed); any other value appends to the gallery.

        Args:
            upload: (content, filename, content_type) or None when no file was sent
        """
        if upload is None:
            raise ValidationError(message="No file provided", field="file")
        if not uid:
            raise ValidationError(message="User ID is required", field="uid")

        content, filename, content_type = upload
        extension = file_service.validate_image(content, filename, content_type)

        business = await self.get_model(db, uid)
        is_icon = image_type == "icon"
        folder = BUSINESS_ICONS if is_icon else BUSINESS_GALLERY

        image_url = await file_service.store_image(folder, uid, content, extension)

        try:
            if is_icon:
                previous = business.business_icon
                business.business_icon = image_url
            else:
                previous = None
                # Reassign so the JSON column is flagged dirty
                business.images = list(business.images or []) + [image_url]
            business.updated_at = utcnow()
            await db.commit()
        except Exception as e:
            await file_service.delete_by_url(image_url)
            logger.error("Failed to attach image to business %s: %s", uid, str(e), exc_info=True)
            raise DatabaseError(message="Failed to upload image", context={"business_id": uid})

        if previous and previous != image_url:
            await file_service.delete_by_url(previous)

        logger.info("Business %s %s uploaded: %s", uid, "icon" if is_icon else "gallery image", image_url)
        return UploadImageResponse(image_url=image_url)

    async def delete_gallery_image(
        self, db: AsyncSession, uid: Optional[str], image_url: Optional[str]
    ) -> DeleteImageResponse:
        """
        Remove one image from the gallery and delete its stored file.

        Raises:
            NotFoundError: the business does not exist, or the image is not
                           in its gallery
        """
        if not uid or not image_url:
            raise ValidationError(message="User ID and image URL are required")

        business = await self.get_model(db, uid)
        images: List[str] = list(business.images or [])
        if image_url not in images:
            raise NotFoundError(resource="image", message="Image not found in gallery")

        images.remove(image_url)
        try:
            business.images = images
            business.updated_at = utcnow()
            await db.commit()
        except Exception as e:
            logger.error("Failed to remove image from business %s: %s", uid, str(e), exc_info=True)
            raise DatabaseError(message="Failed to delete image", context={"business_id": uid})

        await file_service.delete_by_url(image_url)
        logger.info("Business %s gallery image removed: %s", uid, image_url)
        return DeleteImageResponse(images=images)


# ── Singleton Instance ────────────────────────────────────────────────────
business_service = BusinessService()
