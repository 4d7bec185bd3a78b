"""
LocalBiz Backend — Business Endpoint Tests
============================================

What:  Business detail, partial profile updates and image management,
       including ownership checks.
"""

import asyncio

import pytest
import pytest_asyncio

from localbiz.exceptions import DatabaseError
from localbiz.services.business_service import business_service
from localbiz.services.file_service import file_service


@pytest_asyncio.fixture
async def shop(signup):
    return await signup("business", email="shop@example.com", name="Corner Shop")


async def update(client, shop, **fields):
    return await client.put(
        "/api/business/update-profile",
        json={"uid": shop["uid"], **fields},
        headers=shop["headers"],
    )


class TestBusinessDetail:

    @pytest.mark.asyncio
    async def test_get_business(self, test_client, shop):
        response = await test_client.get(f"/api/businesses/{shop['uid']}")
        assert response.status_code == 200
        assert response.json()["uid"] == shop["uid"]
        assert "cache-control" not in response.headers

    @pytest.mark.asyncio
    async def test_unknown_business(self, test_client):
        response = await test_client.get("/api/businesses/missing")
        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert body["message"] == "Business not found"


class TestUpdateProfile:

    @pytest.mark.asyncio
    async def test_scalar_fields(self, test_client, shop):
        response = await update(
            test_client, shop,
            tagline="Fresh bread daily",
            category="Bakery",
            phone="555-0100",
        )
        assert response.status_code == 200
        business = response.json()["business"]
        assert business["tagline"] == "Fresh bread daily"
        assert business["category"] == "Bakery"
        assert business["phone"] == "555-0100"
        assert business["businessName"] == "Corner Shop"

    @pytest.mark.asyncio
    async def test_omitted_fields_are_kept(self, test_client, shop):
        await update(test_client, shop, tagline="Fresh bread daily", category="Bakery")
        response = await update(test_client, shop, phone="555-0100")
        business = response.json()["business"]
        assert business["tagline"] == "Fresh bread daily"
        assert business["category"] == "Bakery"

    @pytest.mark.asyncio
    async def test_empty_string_clears_field(self, test_client, shop):
        await update(test_client, shop, tagline="Fresh bread daily")
        business = (await update(test_client, shop, tagline="")).json()["business"]
        assert business["tagline"] is None

    @pytest.mark.asyncio
    async def test_blank_business_name_ignored(self, test_client, shop):
        business = (await update(test_client, shop, businessName="   ")).json()["business"]
        assert business["businessName"] == "Corner Shop"

    @pytest.mark.asyncio
    async def test_address_replaced_as_a_whole(self, test_client, shop):
        await update(test_client, shop, street="1 Main St", city="Springfield", state="IL", zipCode="62701")
        business = (await update(test_client, shop, city="Shelbyville")).json()["business"]
        assert business["address"] == {
            "street": None,
            "city": "Shelbyville",
            "state": None,
            "zipCode": None,
            "country": None,
        }

    @pytest.mark.asyncio
    async def test_social_links(self, test_client, shop):
        business = (await update(test_client, shop, instagram="@cornershop")).json()["business"]
        assert business["socialLinks"]["instagram"] == "@cornershop"
        assert business["socialLinks"]["facebook"] is None

    @pytest.mark.asyncio
    async def test_hours_and_services(self, test_client, shop):
        response = await update(
            test_client, shop,
            businessHours={
                "monday": {"open": "08:00", "close": "17:00", "closed": False},
                "sunday": {"open": "", "close": "", "closed": True},
            },
            services=[
                {"name": "Sourdough", "description": "Daily loaf", "price": "6"},
                {"name": "  ", "description": "dropped"},
            ],
        )
        business = response.json()["business"]
        assert business["businessHours"]["monday"] == {"open": "08:00", "close": "17:00", "closed": False}
        assert business["businessHours"]["sunday"] == {"open": None, "close": None, "closed": True}
        assert [s["name"] for s in business["services"]] == ["Sourdough"]

    @pytest.mark.asyncio
    async def test_requires_session(self, test_client, shop):
        response = await test_client.put(
            "/api/business/update-profile", json={"uid": shop["uid"], "tagline": "x"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_other_account_forbidden(self, test_client, shop, signup):
        other = await signup("business", email="rival@example.com", name="Rival Shop")
        response = await test_client.put(
            "/api/business/update-profile",
            json={"uid": shop["uid"], "tagline": "hijacked"},
            headers=other["headers"],
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_uid(self, test_client, shop):
        response = await test_client.put(
            "/api/business/update-profile", json={"tagline": "x"}, headers=shop["headers"]
        )
        assert response.status_code == 400
        assert response.json()["message"] == "User ID is required"


class TestImages:

    @pytest.mark.asyncio
    async def test_upload_icon_replaces_previous(self, test_client, shop, png_bytes):
        first = await test_client.post(
            "/api/business/upload-image",
            data={"uid": shop["uid"], "type": "icon"},
            files={"file": ("icon.png", png_bytes, "image/png")},
            headers=shop["headers"],
        )
        assert first.status_code == 200
        first_url = first.json()["imageUrl"]
        assert first_url.startswith("/api/files/business-icons/")

        second = await test_client.post(
            "/api/business/upload-image",
            data={"uid": shop["uid"], "type": "icon"},
            files={"file": ("icon2.png", png_bytes, "image/png")},
            headers=shop["headers"],
        )
        second_url = second.json()["imageUrl"]

        business = (await test_client.get(f"/api/businesses/{shop['uid']}")).json()
        assert business["businessIcon"] == second_url
        if second_url != first_url:
            assert (await test_client.get(first_url)).status_code == 404

    @pytest.mark.asyncio
    async def test_gallery_upload_and_delete(self, test_client, shop, png_bytes):
        response = await test_client.post(
            "/api/business/upload-image",
            data={"uid": shop["uid"], "type": "gallery"},
            files={"file": ("front.png", png_bytes, "image/png")},
            headers=shop["headers"],
        )
        assert response.status_code == 200
        url = response.json()["imageUrl"]

        business = (await test_client.get(f"/api/businesses/{shop['uid']}")).json()
        assert business["images"] == [url]

        deleted = await test_client.delete(
            "/api/business/images",
            params={"uid": shop["uid"], "imageUrl": url},
            headers=shop["headers"],
        )
        assert deleted.status_code == 200
        assert deleted.json()["images"] == []
        assert (await test_client.get(url)).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_unknown_image(self, test_client, shop):
        response = await test_client.delete(
            "/api/business/images",
            params={"uid": shop["uid"], "imageUrl": "/api/files/business-gallery/nope.png"},
            headers=shop["headers"],
        )
        assert response.status_code == 404
        assert response.json()["message"] == "Image not found in gallery"

    @pytest.mark.asyncio
    async def test_upload_without_file(self, test_client, shop):
        response = await test_client.post(
            "/api/business/upload-image",
            data={"uid": shop["uid"], "type": "gallery"},
            headers=shop["headers"],
        )
        assert response.status_code == 400
        assert response.json()["message"] == "No file provided"

    @pytest.mark.asyncio
    async def test_upload_wrong_type(self, test_client, shop):
        response = await test_client.post(
            "/api/business/upload-image",
            data={"uid": shop["uid"], "type": "gallery"},
            files={"file": ("menu.pdf", b"%PDF-1.4", "application/pdf")},
            headers=shop["headers"],
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid file type. Only JPEG, PNG, and WebP are allowed"

    @pytest.mark.asyncio
    async def test_upload_for_other_business_forbidden(self, test_client, shop, signup, png_bytes):
        other = await signup("business", email="rival@example.com", name="Rival Shop")
        response = await test_client.post(
            "/api/business/upload-image",
            data={"uid": shop["uid"], "type": "gallery"},
            files={"file": ("front.png", png_bytes, "image/png")},
            headers=other["headers"],
        )
        assert response.status_code == 403


class TestImageCleanupAfterCommit:

    @pytest.fixture
    def failing_commit(self, db_session, monkeypatch):
        async def commit():
            raise RuntimeError("commit failed")

        monkeypatch.setattr(db_session, "commit", commit)
        return db_session

    @pytest.mark.asyncio
    async def test_previous_icon_kept_when_commit_fails(self, test_client, shop, png_bytes, failing_commit):
        first = await test_client.post(
            "/api/business/upload-image",
            data={"uid": shop["uid"], "type": "icon"},
            files={"file": ("icon.png", png_bytes, "image/png")},
            headers=shop["headers"],
        )
        first_url = first.json()["imageUrl"]
        # file names carry the upload millisecond
        await asyncio.sleep(0.01)

        with pytest.raises(DatabaseError):
            await business_service.upload_image(
                failing_commit, shop["uid"], "icon", (png_bytes, "icon2.png", "image/png")
            )

        assert file_service.path_from_url(first_url).exists()
        business = (await test_client.get(f"/api/businesses/{shop['uid']}")).json()
        assert business["businessIcon"] == first_url
        assert (await test_client.get(first_url)).status_code == 200

    @pytest.mark.asyncio
    async def test_gallery_file_kept_when_commit_fails(self, test_client, shop, png_bytes, failing_commit):
        uploaded = await test_client.post(
            "/api/business/upload-image",
            data={"uid": shop["uid"], "type": "gallery"},
            files={"file": ("front.png", png_bytes, "image/png")},
            headers=shop["headers"],
        )
        url = uploaded.json()["imageUrl"]

        with pytest.raises(DatabaseError):
            await business_service.delete_gallery_image(failing_commit, shop["uid"], url)

        assert file_service.path_from_url(url).exists()
        business = (await test_client.get(f"/api/businesses/{shop['uid']}")).json()
        assert business["images"] == [url]
