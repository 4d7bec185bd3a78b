"""
LocalBiz Backend — Search Tests
=================================

What:  Filtering, sorting, pagination and filter options of the business
       search, plus the pure matching helpers.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from localbiz.models.account import Account
from localbiz.models.business import Business
from localbiz.services.search_service import filter_businesses, matches_query, matches_service

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)

SEED = [
    {
        "business_name": "Blue Door Bakery",
        "category": "Bakery",
        "tagline": "Sourdough since 1999",
        "address": {"city": "Springfield", "state": "IL"},
        "services": [{"name": "Wedding Cakes", "description": "Custom tiers"}],
    },
    {
        "business_name": "Acme Plumbing",
        "category": "Home Services",
        "description": "Emergency repairs around the clock",
        "address": {"city": "Shelbyville", "state": "IL"},
        "services": [{"name": "Drain Cleaning", "description": "Includes camera inspection"}],
    },
    {
        "business_name": "Corner Cafe",
        "category": "Bakery",
        "description": "Coffee and pastries",
        "address": {"city": "Springfield", "state": "MO"},
        "services": [],
    },
    {
        "business_name": "Zed's Hardware",
        "category": None,
        "address": None,
        "services": [],
    },
]


@pytest_asyncio.fixture
async def seeded(session_factory):
    """Insert the SEED businesses, one day apart in creation order."""
    ids = []
    async with session_factory() as db:
        for index, fields in enumerate(SEED):
            account = Account(
                email=f"biz{index}@example.com", password_hash="x", account_type="business"
            )
            db.add(account)
            await db.flush()
            created = BASE_TIME + timedelta(days=index)
            db.add(
                Business(
                    id=account.id,
                    email=account.email,
                    images=[],
                    created_at=created,
                    updated_at=created,
                    **fields,
                )
            )
            ids.append(account.id)
        await db.commit()
    return ids


def names(body):
    return [b["businessName"] for b in body["results"]]


class TestSearchEndpoint:

    @pytest.mark.asyncio
    async def test_default_sort_newest_first(self, test_client, seeded):
        response = await test_client.get("/api/search/businesses")
        assert response.status_code == 200
        body = response.json()
        assert names(body) == ["Zed's Hardware", "Corner Cafe", "Acme Plumbing", "Blue Door Bakery"]
        assert body["total"] == 4
        assert body["page"] == 1
        assert body["pageSize"] == 12
        assert body["totalPages"] == 1
        assert response.headers["X-Total-Count"] == "4"

    @pytest.mark.asyncio
    async def test_sort_by_name_ascending(self, test_client, seeded):
        body = (await test_client.get(
            "/api/search/businesses", params={"sortBy": "name", "sortOrder": "asc"}
        )).json()
        assert names(body) == ["Acme Plumbing", "Blue Door Bakery", "Corner Cafe", "Zed's Hardware"]

    @pytest.mark.asyncio
    async def test_category_filter(self, test_client, seeded):
        body = (await test_client.get(
            "/api/search/businesses", params={"category": "Bakery", "sortBy": "name", "sortOrder": "asc"}
        )).json()
        assert names(body) == ["Blue Door Bakery", "Corner Cafe"]

    @pytest.mark.asyncio
    async def test_city_and_state_exact(self, test_client, seeded):
        body = (await test_client.get(
            "/api/search/businesses", params={"city": "Springfield", "state": "IL"}
        )).json()
        assert names(body) == ["Blue Door Bakery"]

        body = (await test_client.get("/api/search/businesses", params={"city": "spring"})).json()
        assert body["total"] == 0
        assert body["totalPages"] == 0

    @pytest.mark.asyncio
    async def test_text_query_case_insensitive(self, test_client, seeded):
        body = (await test_client.get("/api/search/businesses", params={"q": "SOURDOUGH"})).json()
        assert names(body) == ["Blue Door Bakery"]

        body = (await test_client.get("/api/search/businesses", params={"q": "emergency"})).json()
        assert names(body) == ["Acme Plumbing"]

    @pytest.mark.asyncio
    async def test_services_filter(self, test_client, seeded):
        body = (await test_client.get("/api/search/businesses", params={"services": "camera"})).json()
        assert names(body) == ["Acme Plumbing"]

    @pytest.mark.asyncio
    async def test_pagination(self, test_client, seeded):
        body = (await test_client.get(
            "/api/search/businesses",
            params={"sortBy": "name", "sortOrder": "asc", "page": 2, "pageSize": 3},
        )).json()
        assert names(body) == ["Zed's Hardware"]
        assert body["total"] == 4
        assert body["totalPages"] == 2

    @pytest.mark.asyncio
    async def test_page_beyond_last_is_empty(self, test_client, seeded):
        body = (await test_client.get(
            "/api/search/businesses", params={"page": 5, "pageSize": 3}
        )).json()
        assert body["results"] == []
        assert body["total"] == 4

    @pytest.mark.asyncio
    async def test_invalid_sort_rejected(self, test_client, seeded):
        response = await test_client.get("/api/search/businesses", params={"sortBy": "rating"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_filter_options(self, test_client, seeded):
        response = await test_client.post("/api/search/businesses")
        assert response.status_code == 200
        assert response.json() == {
            "categories": ["Bakery", "Home Services"],
            "cities": ["Shelbyville", "Springfield"],
            "states": ["IL", "MO"],
            "services": ["Drain Cleaning", "Wedding Cakes"],
        }

    @pytest.mark.asyncio
    async def test_empty_directory(self, test_client):
        body = (await test_client.get("/api/search/businesses")).json()
        assert body["results"] == []
        assert body["total"] == 0


class TestMatchers:

    def make(self, **fields):
        return Business(id="b", email="b@example.com", business_name=fields.pop("business_name", "Shop"), **fields)

    def test_matches_query_fields(self):
        business = self.make(business_name="Shop", tagline="Best Tacos", description=None, category=None)
        assert matches_query(business, "tacos")
        assert not matches_query(business, "pizza")

    def test_matches_service_description(self):
        business = self.make(services=[{"name": "Delivery", "description": "Same-day"}])
        assert matches_service(business, "same-DAY")
        assert not matches_service(business, "pickup")

    def test_filter_preserves_order(self):
        first = self.make(business_name="Taco One", address={"city": "Austin"})
        second = self.make(business_name="Taco Two", address={"city": "Austin"})
        third = self.make(business_name="Taco Three", address={"city": "Dallas"})
        assert filter_businesses([first, second, third], q="taco", city="Austin") == [first, second]
