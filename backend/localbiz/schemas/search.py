"""
LocalBiz Backend — Search Schemas
===================================
"""

from typing import List

from localbiz.schemas.business import BusinessDocument
from localbiz.schemas.common import CamelModel


class SearchResponse(CamelModel):
    """
    One page of search results.

    Pagination is offset-based: `total` counts every match after filtering
    and `total_pages = ceil(total / page_size)`.
    """
    results: List[BusinessDocument]
    total: int
    page: int
    page_size: int
    total_pages: int


class FilterOptions(CamelModel):
    """Distinct values for the search sidebar, each sorted."""
    categories: List[str]
    cities: List[str]
    states: List[str]
    services: List[str]
