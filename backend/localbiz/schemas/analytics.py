"""
LocalBiz Backend — Analytics Schemas
======================================
"""

from typing import Dict, List, Optional

from localbiz.schemas.business import BusinessDocument
from localbiz.schemas.common import CamelModel


class TrackEventRequest(CamelModel):
    business_id: Optional[str] = None
    event_type: Optional[str] = None
    search_query: Optional[str] = None


class EventCounts(CamelModel):
    views: int = 0
    searches: int = 0
    total: int = 0


class DailyPoint(CamelModel):
    date: str
    views: int = 0
    searches: int = 0


class Competitor(CamelModel):
    uid: str
    business_name: str
    category: Optional[str] = None
    views: int = 0
    searches: int = 0
    total: int = 0


class BusinessAnalyticsResponse(CamelModel):
    business_id: str
    business_name: str
    category: Optional[str] = None
    stats: EventCounts
    category_average: EventCounts
    competitors: List[Competitor]
    daily_data: List[DailyPoint]
    total_competitors: int


class RankedBusiness(BusinessDocument):
    analytics_count: int = 0


class CategoryBucket(CamelModel):
    businesses: List[RankedBusiness]
    total_analytics: int


class TopBusinessesResponse(CamelModel):
    top_categories: List[str]
    category_data: Dict[str, CategoryBucket]
