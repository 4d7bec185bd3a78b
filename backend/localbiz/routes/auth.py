"""
LocalBiz Backend — Auth Route Handlers
========================================

What:  Registration, email availability, login/logout, session and public
       user lookup.
How:   Extracts form or JSON fields and delegates to AuthService.
Who:   Called by the register, business-register and login pages and by the
       client's auth state on page load.

Endpoints:
    POST /api/auth/register/user       multipart (optional profile picture)
    POST /api/auth/register/business   JSON
    POST /api/auth/check-email
    POST /api/auth/login               → bearer session token
    POST /api/auth/logout
    GET  /api/auth/session             → the signed-in account
    GET  /api/auth/user/{user_id}      → public profile lookup
"""

import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from localbiz.database import get_db_session
from localbiz.dependencies import bearer_token, get_current_account
from localbiz.models.account import Account
from localbiz.schemas.auth import (
    BusinessRegisterRequest,
    BusinessRegisterResponse,
    CheckEmailRequest,
    CheckEmailResponse,
    LoginRequest,
    LoginResponse,
    SessionResponse,
    UserRegisterResponse,
)
from localbiz.schemas.common import ErrorResponse, SuccessResponse
from localbiz.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


async def read_upload(file: Optional[UploadFile]) -> Optional[Tuple[bytes, Optional[str], Optional[str]]]:
    """
    Read an optional multipart file into (content, filename, content_type).

    Browsers submit an empty part for an untouched file input; that counts
    as no file.
    """
    if file is None:
        return None
    try:
        content = await file.read()
    finally:
        await file.close()
    if not content and not file.filename:
        return None
    return content, file.filename, file.content_type


@router.post(
    "/register/user",
    status_code=201,
    response_model=UserRegisterResponse,
    responses={400: {"description": "Invalid input or email in use", "model": ErrorResponse}},
    summary="Register a consumer account",
    description=(
        "Multipart form with firstName, lastName, email, password and an optional "
        "profilePic (JPEG, PNG or WebP, max 5MB)."
    ),
)
async def register_user(
    first_name: Optional[str] = Form(default=None, alias="firstName"),
    last_name: Optional[str] = Form(default=None, alias="lastName"),
    email: Optional[str] = Form(default=None),
    password: Optional[str] = Form(default=None),
    profile_pic: Optional[UploadFile] = File(default=None, alias="profilePic"),
    db: AsyncSession = Depends(get_db_session),
) -> UserRegisterResponse:
    upload = await read_upload(profile_pic)
    return await auth_service.register_user(
        db,
        first_name=first_name,
        last_name=last_name,
        email=email,
        password=password,
        profile_pic=upload,
    )


@router.post(
    "/register/business",
    status_code=201,
    response_model=BusinessRegisterResponse,
    responses={400: {"description": "Invalid input or email in use", "model": ErrorResponse}},
    summary="Register a business owner account",
)
async def register_business(
    payload: BusinessRegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> BusinessRegisterResponse:
    return await auth_service.register_business(
        db,
        business_name=payload.business_name,
        email=payload.email,
        password=payload.password,
    )


@router.post(
    "/check-email",
    response_model=CheckEmailResponse,
    responses={400: {"description": "Missing or malformed email", "model": ErrorResponse}},
    summary="Check whether an email is already registered",
)
async def check_email(
    payload: CheckEmailRequest,
    db: AsyncSession = Depends(get_db_session),
) -> CheckEmailResponse:
    return await auth_service.check_email(db, payload.email)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Missing or malformed input", "model": ErrorResponse},
        401: {"description": "Invalid email or password", "model": ErrorResponse},
        403: {"description": "Account disabled", "model": ErrorResponse},
        404: {"description": "No profile for this account", "model": ErrorResponse},
        429: {"description": "Too many failed attempts", "model": ErrorResponse},
    },
    summary="Sign in and obtain a session token",
    description=(
        "Returns the account's profile (consumer profile or business document) and "
        "a bearer token to send as `Authorization: Bearer <token>`."
    ),
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    return await auth_service.login(db, payload.email, payload.password)


@router.post(
    "/logout",
    response_model=SuccessResponse,
    responses={401: {"description": "Not signed in", "model": ErrorResponse}},
    summary="Revoke the current session token",
)
async def logout(
    account: Account = Depends(get_current_account),
    token: Optional[str] = Depends(bearer_token),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    await auth_service.logout(db, token)
    logger.info("Account %s logged out", account.id)
    return SuccessResponse(message="Logged out successfully")


@router.get(
    "/session",
    response_model=SessionResponse,
    responses={401: {"description": "Not signed in", "model": ErrorResponse}},
    summary="Current signed-in account",
)
async def get_session(
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> SessionResponse:
    return await auth_service.session_info(db, account)


@router.get(
    "/user/{user_id}",
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Public profile of a consumer or business",
    description="Business document first, then consumer profile, then the account email only.",
)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    return await auth_service.get_user_info(db, user_id)
