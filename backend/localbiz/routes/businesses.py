"""
LocalBiz Backend — Business Route Handlers
============================================

What:  Public business detail plus the owner's profile editor and image
       management.
Who:   Business detail page (public) and the business profile page (owner).

Ownership:
    Edits require a session whose account id equals the business id
    (`uid`); anything else is 403.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from localbiz.database import get_db_session
from localbiz.dependencies import ensure_owner, get_current_account
from localbiz.models.account import Account
from localbiz.routes.auth import read_upload
from localbiz.schemas.business import (
    BusinessDocument,
    DeleteImageResponse,
    UpdateProfileRequest,
    UpdateProfileResponse,
    UploadImageResponse,
)
from localbiz.schemas.common import ErrorResponse
from localbiz.services.business_service import business_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Businesses"])


@router.get(
    "/businesses/{business_id}",
    response_model=BusinessDocument,
    responses={404: {"description": "Business not found", "model": ErrorResponse}},
    summary="Get a business document",
)
async def get_business(
    business_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> BusinessDocument:
    return await business_service.get_business(db, business_id)


@router.put(
    "/business/update-profile",
    response_model=UpdateProfileResponse,
    responses={
        400: {"description": "Missing uid", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
        403: {"description": "Not the owner", "model": ErrorResponse},
        404: {"description": "Business not found", "model": ErrorResponse},
    },
    summary="Partially update the owner's business profile",
    description=(
        "Only keys present in the body are applied. Address parts and social links "
        "replace the whole address / link set when any of them is present."
    ),
)
async def update_profile(
    payload: UpdateProfileRequest,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> UpdateProfileResponse:
    ensure_owner(account, payload.uid)
    return await business_service.update_profile(db, payload)


@router.post(
    "/business/upload-image",
    response_model=UploadImageResponse,
    responses={
        400: {"description": "Missing file/uid, bad type or too large", "model": ErrorResponse},
        403: {"description": "Not the owner", "model": ErrorResponse},
    },
    summary="Upload a business icon or gallery image",
    description="`type=icon` replaces the icon; any other type appends to the gallery.",
)
async def upload_image(
    file: Optional[UploadFile] = File(default=None),
    uid: Optional[str] = Form(default=None),
    image_type: Optional[str] = Form(default=None, alias="type"),
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> UploadImageResponse:
    ensure_owner(account, uid)
    upload = await read_upload(file)
    return await business_service.upload_image(db, uid, image_type, upload)


@router.delete(
    "/business/images",
    response_model=DeleteImageResponse,
    responses={
        403: {"description": "Not the owner", "model": ErrorResponse},
        404: {"description": "Image not in gallery", "model": ErrorResponse},
    },
    summary="Remove a gallery image",
)
async def delete_image(
    uid: Optional[str] = Query(default=None),
    image_url: Optional[str] = Query(default=None, alias="imageUrl"),
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> DeleteImageResponse:
    ensure_owner(account, uid)
    return await business_service.delete_gallery_image(db, uid, image_url)
