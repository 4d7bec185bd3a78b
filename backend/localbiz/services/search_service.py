"""
LocalBiz Backend — Search Service
===================================

What:  Business search with filters, sorting and offset pagination, plus
       the distinct filter values for the search sidebar.
How:   Category filter and sort order run in SQL. City, state, the free-text
       query and the services filter run in Python over the JSON document
       fields, after which the filtered list is paginated.

Query plan (category + default sort):
    SELECT * FROM businesses WHERE category = :c ORDER BY created_at DESC
    → idx_businesses_category, idx_businesses_created_at

Matching rules:
    q         case-insensitive substring of name, description, category
              or tagline
    services  case-insensitive substring of any service name or description
    city      exact match on address.city
    state     exact match on address.state
"""

import logging
import math
from typing import Iterable, List, Optional

from sqlalchemy import asc, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from localbiz.config import settings
from localbiz.exceptions import DatabaseError
from localbiz.models.business import Business
from localbiz.schemas.business import BusinessDocument
from localbiz.schemas.search import FilterOptions, SearchResponse

logger = logging.getLogger(__name__)

SORT_FIELDS = {"name": Business.business_name, "createdAt": Business.created_at}


def _contains(value: Optional[str], needle: str) -> bool:
    return bool(value) and needle in value.lower()


def matches_query(business: Business, q: str) -> bool:
    needle = q.lower()
    return (
        _contains(business.business_name, needle)
        or _contains(business.description, needle)
        or _contains(business.category, needle)
        or _contains(business.tagline, needle)
    )


def matches_service(business: Business, term: str) -> bool:
    needle = term.lower()
    return any(
        _contains(service.get("name"), needle) or _contains(service.get("description"), needle)
        for service in (business.services or [])
    )


def filter_businesses(
    businesses: Iterable[Business],
    q: str = "",
    city: str = "",
    state: str = "",
    services: str = "",
) -> List[Business]:
    """Apply the in-memory filters, preserving the incoming order."""
    results = list(businesses)
    if city:
        results = [b for b in results if b.city == city]
    if state:
        results = [b for b in results if b.state == state]
    if q:
        results = [b for b in results if matches_query(b, q)]
    if services:
        results = [b for b in results if matches_service(b, services)]
    return results


class SearchService:

    async def search(
        self,
        db: AsyncSession,
        q: str = "",
        category: str = "",
        city: str = "",
        state: str = "",
        services: str = "",
        sort_by: str = "createdAt",
        sort_order: str = "desc",
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> SearchResponse:
        """
        Search businesses and return one page of results.

        Args:
            sort_by: 'name' or 'createdAt' (anything else sorts by createdAt)
            sort_order: 'asc' or 'desc' (anything else sorts descending)
            page: 1-based page number
            page_size: results per page (settings.search_default_page_size
                       when omitted)
        """
        page_size = page_size or settings.search_default_page_size

        try:
            column = SORT_FIELDS.get(sort_by, Business.created_at)
            direction = asc if sort_order == "asc" else desc
            query = select(Business).order_by(direction(column), Business.id)
            if category:
                query = query.where(Business.category == category)

            result = await db.execute(query)
            businesses = list(result.scalars().all())
        except Exception as e:
            logger.error("Database error searching businesses: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to search businesses",
                context={"error_type": type(e).__name__},
            )

        matches = filter_businesses(businesses, q=q, city=city, state=state, services=services)

        total = len(matches)
        total_pages = math.ceil(total / page_size)
        start = (page - 1) * page_size
        page_items = matches[start:start + page_size]

        logger.debug(
            "Search q=%r category=%r city=%r state=%r services=%r → %d matches",
            q, category, city, state, services, total,
        )

        return SearchResponse(
            results=[BusinessDocument.from_model(b) for b in page_items],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
        )

    async def filter_options(self, db: AsyncSession) -> FilterOptions:
        """Distinct categories, cities, states and service names, each sorted."""
        try:
            result = await db.execute(select(Business))
            businesses = list(result.scalars().all())
        except Exception as e:
            logger.error("Database error loading filter options: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to fetch filter options",
                context={"error_type": type(e).__name__},
            )

        categories, cities, states, service_names = set(), set(), set(), set()
        for business in businesses:
            if business.category:
                categories.add(business.category)
            if business.city:
                cities.add(business.city)
            if business.state:
                states.add(business.state)
            for service in business.services or []:
                if service.get("name"):
                    service_names.add(service["name"])

        return FilterOptions(
            categories=sorted(categories),
            cities=sorted(cities),
            states=sorted(states),
            services=sorted(service_names),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
search_service = SearchService()
