"""
LocalBiz Backend — Analytics Service
======================================

What:  Records "view" and "search" events and aggregates them into the
       homepage ranking and the per-business dashboard.
How:   Events are append-only rows. Aggregations scan the whole event log
       and the business table and count in Python.

Ranking (top_businesses):
    1. Count events per business id
    2. Visit businesses ordered by id; each business with a category adds
       its count to the category total and joins that category's list
    3. Rank categories by total, descending (ties keep first-seen order)
    4. For each of the top N categories list its businesses by count,
       descending, cut to `limit`

Dashboard (business_analytics):
    - stats: views / searches / total for the business
    - daily_data: its events grouped by UTC date, ascending
    - competitors: other businesses in its category by total, top 10
    - category_average: per-field sum over the category (itself included)
      divided by the category size, rounded half up
    - total_competitors: category size - 1
"""

import logging
import math
from collections import defaultdict
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from localbiz.exceptions import DatabaseError, NotFoundError, ValidationError
from localbiz.models.analytics import EVENT_TYPES, AnalyticsEvent
from localbiz.models.business import Business
from localbiz.models.common import as_utc
from localbiz.schemas.analytics import (
    BusinessAnalyticsResponse,
    CategoryBucket,
    Competitor,
    DailyPoint,
    EventCounts,
    RankedBusiness,
    TopBusinessesResponse,
)
from localbiz.schemas.business import BusinessDocument
from localbiz.schemas.common import SuccessResponse

logger = logging.getLogger(__name__)

MAX_COMPETITORS = 10


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class AnalyticsService:

    async def track_event(
        self,
        db: AsyncSession,
        business_id: Optional[str],
        event_type: Optional[str],
        search_query: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SuccessResponse:
        """
        Append one analytics event.

        `search_query` is kept for search events only.
        """
        if not business_id or not event_type:
            raise ValidationError(message="Business ID and event type are required")
        if event_type not in EVENT_TYPES:
            raise ValidationError(
                message="Invalid event type. Must be 'view' or 'search'", field="eventType"
            )

        try:
            event = AnalyticsEvent(
                business_id=business_id,
                event_type=event_type,
                search_query=search_query if event_type == "search" and search_query else None,
                user_agent=user_agent or "unknown",
            )
            db.add(event)
            await db.flush()
        except Exception as e:
            logger.error("Failed to track analytics event: %s", str(e), exc_info=True)
            raise DatabaseError(message="Failed to track analytics")

        logger.debug("Tracked %s event for business %s", event_type, business_id)
        return SuccessResponse(message="Analytics tracked successfully")

    async def _load_events(self, db: AsyncSession) -> List[AnalyticsEvent]:
        result = await db.execute(select(AnalyticsEvent))
        return list(result.scalars().all())

    async def top_businesses(
        self, db: AsyncSession, limit: int = 4, top_categories: int = 3
    ) -> TopBusinessesResponse:
        try:
            events = await self._load_events(db)
            result = await db.execute(select(Business).order_by(Business.id))
            businesses = list(result.scalars().all())
        except Exception as e:
            logger.error("Failed to load analytics: %s", str(e), exc_info=True)
            raise DatabaseError(message="Failed to fetch top businesses")

        counts: Dict[str, int] = defaultdict(int)
        for event in events:
            if event.business_id:
                counts[event.business_id] += 1

        # dicts keep insertion order: first-seen category wins ties
        category_totals: Dict[str, int] = {}
        by_category: Dict[str, List[RankedBusiness]] = {}
        for business in businesses:
            if not business.category:
                continue
            count = counts.get(business.id, 0)
            category_totals[business.category] = category_totals.get(business.category, 0) + count
            document = BusinessDocument.from_model(business)
            by_category.setdefault(business.category, []).append(
                RankedBusiness(**document.model_dump(), analytics_count=count)
            )

        ranked = sorted(category_totals.items(), key=lambda item: item[1], reverse=True)
        top = [category for category, _ in ranked[:top_categories]]

        category_data = {
            category: CategoryBucket(
                businesses=sorted(
                    by_category.get(category, []),
                    key=lambda b: b.analytics_count,
                    reverse=True,
                )[:limit],
                total_analytics=category_totals[category],
            )
            for category in top
        }

        return TopBusinessesResponse(top_categories=top, category_data=category_data)

    async def business_analytics(
        self, db: AsyncSession, business_id: Optional[str]
    ) -> BusinessAnalyticsResponse:
        """
        Raises:
            ValidationError: missing business id
            NotFoundError: unknown business (→ 404)
        """
        if not business_id:
            raise ValidationError(message="Business ID is required", field="businessId")

        business = await db.get(Business, business_id)
        if business is None:
            raise NotFoundError(resource="business", resource_id=business_id, message="Business not found")

        try:
            events = await self._load_events(db)
            category_query = select(Business).order_by(Business.id)
            if business.category is not None:
                category_query = category_query.where(Business.category == business.category)
            else:
                category_query = category_query.where(Business.id == business.id)
            result = await db.execute(category_query)
            category_members = list(result.scalars().all())
        except Exception as e:
            logger.error("Failed to load analytics for %s: %s", business_id, str(e), exc_info=True)
            raise DatabaseError(message="Failed to fetch analytics")

        per_business: Dict[str, EventCounts] = defaultdict(EventCounts)
        daily: Dict[str, DailyPoint] = {}
        for event in events:
            if not event.business_id:
                continue
            counts = per_business[event.business_id]
            if event.event_type == "view":
                counts.views += 1
            elif event.event_type == "search":
                counts.searches += 1
            counts.total += 1

            if event.business_id == business_id and event.timestamp is not None:
                day = as_utc(event.timestamp).date().isoformat()
                point = daily.setdefault(day, DailyPoint(date=day))
                if event.event_type == "view":
                    point.views += 1
                elif event.event_type == "search":
                    point.searches += 1

        def stats_for(bid: str) -> EventCounts:
            return per_business.get(bid) or EventCounts()

        competitors = sorted(
            (
                Competitor(
                    uid=member.id,
                    business_name=member.business_name,
                    category=member.category,
                    **stats_for(member.id).model_dump(),
                )
                for member in category_members
                if member.id != business_id
            ),
            key=lambda c: c.total,
            reverse=True,
        )[:MAX_COMPETITORS]

        size = len(category_members)
        sums = EventCounts()
        for member in category_members:
            member_stats = stats_for(member.id)
            sums.views += member_stats.views
            sums.searches += member_stats.searches
            sums.total += member_stats.total

        category_average = EventCounts(
            views=round_half_up(sums.views / size),
            searches=round_half_up(sums.searches / size),
            total=round_half_up(sums.total / size),
        )

        return BusinessAnalyticsResponse(
            business_id=business_id,
            business_name=business.business_name,
            category=business.category,
            stats=stats_for(business_id),
            category_average=category_average,
            competitors=competitors,
            daily_data=[daily[day] for day in sorted(daily)],
            total_competitors=size - 1,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
analytics_service = AnalyticsService()
