"""
LocalBiz Backend — Analytics Route Handlers
=============================================

What:  POST /api/analytics                 record a view/search event
       GET  /api/analytics/top-businesses  homepage ranking by category
       GET  /api/analytics/business        one business's dashboard
Who:   Business cards and detail pages (tracking), the homepage featured
       section and the business dashboard.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from localbiz.database import get_db_session
from localbiz.schemas.analytics import (
    BusinessAnalyticsResponse,
    TopBusinessesResponse,
    TrackEventRequest,
)
from localbiz.schemas.common import ErrorResponse, SuccessResponse
from localbiz.services.analytics_service import analytics_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.post(
    "",
    response_model=SuccessResponse,
    responses={400: {"description": "Missing ids or invalid event type", "model": ErrorResponse}},
    summary="Track a view or search event",
)
async def track_event(
    payload: TrackEventRequest,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    return await analytics_service.track_event(
        db,
        business_id=payload.business_id,
        event_type=payload.event_type,
        search_query=payload.search_query,
        user_agent=request.headers.get("user-agent"),
    )


@router.get(
    "/top-businesses",
    response_model=TopBusinessesResponse,
    summary="Most viewed/searched businesses in the busiest categories",
)
async def top_businesses(
    limit: int = Query(default=4, ge=1, le=50),
    top_categories: int = Query(default=3, alias="topCategories", ge=1, le=50),
    db: AsyncSession = Depends(get_db_session),
) -> TopBusinessesResponse:
    return await analytics_service.top_businesses(db, limit=limit, top_categories=top_categories)


@router.get(
    "/business",
    response_model=BusinessAnalyticsResponse,
    responses={
        400: {"description": "Missing businessId", "model": ErrorResponse},
        404: {"description": "Business not found", "model": ErrorResponse},
    },
    summary="Dashboard analytics for one business",
)
async def business_analytics(
    business_id: Optional[str] = Query(default=None, alias="businessId"),
    db: AsyncSession = Depends(get_db_session),
) -> BusinessAnalyticsResponse:
    return await analytics_service.business_analytics(db, business_id)
