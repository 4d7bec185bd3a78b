"""
LocalBiz Backend — Business Schemas
=====================================

What:  The business document as returned to clients, its nested parts, and
       the profile editor's update payload.
Who:   Business detail, search results, analytics rankings and the owner's
       profile editor.
"""

from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import Field

from localbiz.models.business import Business
from localbiz.models.common import as_utc
from localbiz.schemas.common import CamelModel

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


# ── Nested document parts ─────────────────────────────────────────────────


class Address(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class SocialLinks(CamelModel):
    facebook: Optional[str] = None
    instagram: Optional[str] = None
    twitter: Optional[str] = None
    linkedin: Optional[str] = None
    youtube: Optional[str] = None


class DayHours(CamelModel):
    open: Optional[str] = None
    close: Optional[str] = None
    closed: bool = False


class ServiceItem(CamelModel):
    name: str
    description: str = ""
    price: Optional[Union[float, str]] = None


class GeoPoint(CamelModel):
    lat: float
    lng: float


# ── Business document ─────────────────────────────────────────────────────


class BusinessDocument(CamelModel):
    """A business as shown on detail pages and in search results."""

    uid: str
    email: str
    business_name: str
    user_type: str = "business"
    verified: bool = False
    business_icon: Optional[str] = None
    tagline: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    phone: Optional[str] = None
    contact_email: Optional[str] = None
    website: Optional[str] = None
    social_links: Optional[SocialLinks] = None
    address: Optional[Address] = None
    google_map_location: Optional[GeoPoint] = None
    google_map_url: Optional[str] = None
    business_hours: Optional[Dict[str, DayHours]] = None
    services: List[ServiceItem] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, business: Business) -> "BusinessDocument":
        return cls(
            uid=business.id,
            email=business.email,
            business_name=business.business_name,
            user_type=business.user_type,
            verified=business.verified,
            business_icon=business.business_icon,
            tagline=business.tagline,
            description=business.description,
            category=business.category,
            images=list(business.images or []),
            phone=business.phone,
            contact_email=business.contact_email,
            website=business.website,
            social_links=business.social_links,
            address=business.address,
            google_map_location=business.google_map_location,
            google_map_url=business.google_map_url,
            business_hours=business.business_hours,
            services=list(business.services or []),
            created_at=as_utc(business.created_at),
            updated_at=as_utc(business.updated_at),
        )


# ── Profile editor ────────────────────────────────────────────────────────


class UpdateProfileRequest(CamelModel):
    """
    Partial update of a business document.

    Only keys present in the request body are applied; see
    BusinessService.update_profile for the exact rules.
    """

    uid: Optional[str] = None
    business_name: Optional[str] = None
    tagline: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    phone: Optional[str] = None
    contact_email: Optional[str] = None
    website: Optional[str] = None
    google_map_url: Optional[str] = None
    google_map_location: Optional[GeoPoint] = None

    # Address parts (flattened in the editor form)
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None

    # Social links
    facebook: Optional[str] = None
    instagram: Optional[str] = None
    twitter: Optional[str] = None
    linkedin: Optional[str] = None
    youtube: Optional[str] = None

    business_hours: Optional[Dict[str, DayHours]] = None
    services: Optional[List[ServiceItem]] = None


class UpdateProfileResponse(CamelModel):
    success: bool = True
    message: str = "Business profile updated successfully"
    business: BusinessDocument


class UploadImageResponse(CamelModel):
    success: bool = True
    image_url: str
    message: str = "Image uploaded successfully"


class DeleteImageResponse(CamelModel):
    success: bool = True
    message: str = "Image deleted successfully"
    images: List[str]
