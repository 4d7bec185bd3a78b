"""
LocalBiz Backend — Search Route Handlers
==========================================

What:  GET  /api/search/businesses  → filtered, sorted, paginated results
       POST /api/search/businesses  → distinct filter options
Who:   The search page and its filter sidebar.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from localbiz.config import settings
from localbiz.database import get_db_session
from localbiz.schemas.common import ErrorResponse
from localbiz.schemas.search import FilterOptions, SearchResponse
from localbiz.services.search_service import search_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/search", tags=["Search"])


@router.get(
    "/businesses",
    response_model=SearchResponse,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="Search businesses",
    description=(
        "Free-text query over name, description, category and tagline; exact city/state; "
        "service name/description substring; sort by name or createdAt."
    ),
)
async def search_businesses(
    response: Response,
    q: str = Query(default="", description="Case-insensitive text query"),
    category: str = Query(default="", description="Exact category"),
    city: str = Query(default=""),
    state: str = Query(default=""),
    services: str = Query(default="", description="Service name or description substring"),
    sort_by: str = Query(default="createdAt", alias="sortBy", pattern="^(name|createdAt)$"),
    sort_order: str = Query(default="desc", alias="sortOrder", pattern="^(asc|desc)$"),
    page: int = Query(default=1, ge=1),
    page_size: Optional[int] = Query(
        default=None, alias="pageSize", ge=1, le=settings.search_max_page_size,
    ),
    db: AsyncSession = Depends(get_db_session),
) -> SearchResponse:
    result = await search_service.search(
        db,
        q=q,
        category=category,
        city=city,
        state=state,
        services=services,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=page_size,
    )
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.post(
    "/businesses",
    response_model=FilterOptions,
    summary="Available search filter values",
)
async def filter_options(db: AsyncSession = Depends(get_db_session)) -> FilterOptions:
    return await search_service.filter_options(db)
