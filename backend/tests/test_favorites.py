"""
LocalBiz Backend — Favorites Tests
====================================
"""

import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def ada(signup):
    return await signup(email="ada@example.com")


class TestFavorites:

    @pytest.mark.asyncio
    async def test_add_and_list(self, test_client, ada):
        response = await test_client.post(
            "/api/favorites",
            json={"userId": ada["uid"], "businessId": "biz-1"},
            headers=ada["headers"],
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["favoriteId"]

        listed = await test_client.get(
            "/api/favorites", params={"userId": ada["uid"]}, headers=ada["headers"]
        )
        favorites = listed.json()["favorites"]
        assert len(favorites) == 1
        assert favorites[0]["businessId"] == "biz-1"
        assert favorites[0]["id"] == body["favoriteId"]

    @pytest.mark.asyncio
    async def test_duplicate_rejected(self, test_client, ada):
        payload = {"userId": ada["uid"], "businessId": "biz-1"}
        await test_client.post("/api/favorites", json=payload, headers=ada["headers"])
        response = await test_client.post("/api/favorites", json=payload, headers=ada["headers"])
        assert response.status_code == 400
        assert response.json()["message"] == "Business already in favorites"

    @pytest.mark.asyncio
    async def test_missing_business_id(self, test_client, ada):
        response = await test_client.post(
            "/api/favorites", json={"userId": ada["uid"]}, headers=ada["headers"]
        )
        assert response.status_code == 400
        assert response.json()["message"] == "User ID and Business ID are required"

    @pytest.mark.asyncio
    async def test_list_requires_user_id(self, test_client, ada):
        response = await test_client.get("/api/favorites", headers=ada["headers"])
        assert response.status_code == 400
        assert response.json()["message"] == "User ID is required"

    @pytest.mark.asyncio
    async def test_sync_inserts_missing_only(self, test_client, ada):
        await test_client.post(
            "/api/favorites", json={"userId": ada["uid"], "businessId": "biz-1"}, headers=ada["headers"]
        )
        response = await test_client.post(
            "/api/favorites",
            json={"userId": ada["uid"], "favorites": ["biz-1", "biz-2", "biz-3", "biz-2"]},
            headers=ada["headers"],
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "2 favorites synced"
        assert [s["businessId"] for s in body["synced"]] == ["biz-2", "biz-3"]

        listed = await test_client.get(
            "/api/favorites", params={"userId": ada["uid"]}, headers=ada["headers"]
        )
        assert sorted(f["businessId"] for f in listed.json()["favorites"]) == ["biz-1", "biz-2", "biz-3"]

    @pytest.mark.asyncio
    async def test_sync_empty_list(self, test_client, ada):
        response = await test_client.post(
            "/api/favorites", json={"userId": ada["uid"], "favorites": []}, headers=ada["headers"]
        )
        assert response.json()["message"] == "0 favorites synced"

    @pytest.mark.asyncio
    async def test_remove(self, test_client, ada):
        await test_client.post(
            "/api/favorites", json={"userId": ada["uid"], "businessId": "biz-1"}, headers=ada["headers"]
        )
        response = await test_client.delete(
            "/api/favorites",
            params={"userId": ada["uid"], "businessId": "biz-1"},
            headers=ada["headers"],
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Removed from favorites"

        again = await test_client.delete(
            "/api/favorites",
            params={"userId": ada["uid"], "businessId": "biz-1"},
            headers=ada["headers"],
        )
        assert again.status_code == 404
        assert again.json()["message"] == "Favorite not found"

    @pytest.mark.asyncio
    async def test_requires_session(self, test_client, ada):
        response = await test_client.get("/api/favorites", params={"userId": ada["uid"]})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_other_users_favorites_forbidden(self, test_client, ada, signup):
        bob = await signup(email="bob@example.com", name="Bob Builder")
        response = await test_client.get(
            "/api/favorites", params={"userId": ada["uid"]}, headers=bob["headers"]
        )
        assert response.status_code == 403
