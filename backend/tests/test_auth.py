"""
LocalBiz Backend — Auth Endpoint Tests
========================================

What:  Registration, email check, login (including lockout), sessions,
       logout and public user lookup through the HTTP API.
"""

from datetime import timedelta
from types import SimpleNamespace

import pytest

from localbiz.exceptions import RateLimitExceededError
from localbiz.models.account import Account, AuthSession
from localbiz.models.common import utcnow
from localbiz.services.auth_service import LoginAttemptTracker


class TestUserRegistration:

    @pytest.mark.asyncio
    async def test_register_user(self, test_client):
        response = await test_client.post(
            "/api/auth/register/user",
            data={"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com", "password": "secret1"},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "User registered successfully"
        assert body["user"]["firstName"] == "Ada"
        assert body["user"]["email"] == "ada@example.com"
        assert body["user"]["profilePicUrl"] is None
        assert body["user"]["uid"]

    @pytest.mark.asyncio
    async def test_register_user_with_picture(self, test_client, png_bytes):
        response = await test_client.post(
            "/api/auth/register/user",
            data={"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com", "password": "secret1"},
            files={"profilePic": ("me.png", png_bytes, "image/png")},
        )
        assert response.status_code == 201
        url = response.json()["user"]["profilePicUrl"]
        assert url.startswith("/api/files/profile-pictures/")

        served = await test_client.get(url)
        assert served.status_code == 200
        assert served.content == png_bytes

    @pytest.mark.asyncio
    async def test_register_user_bad_picture_type(self, test_client):
        response = await test_client.post(
            "/api/auth/register/user",
            data={"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com", "password": "secret1"},
            files={"profilePic": ("notes.txt", b"plain text", "text/plain")},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Profile picture must be a valid image (JPEG, PNG, or WebP)"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "form, message",
        [
            ({"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com"}, "All fields are required"),
            (
                {"firstName": "A", "lastName": "Lovelace", "email": "ada@example.com", "password": "secret1"},
                "First name must be at least 2 characters and contain only letters",
            ),
            (
                {"firstName": "Ada", "lastName": "L0velace", "email": "ada@example.com", "password": "secret1"},
                "Last name must be at least 2 characters and contain only letters",
            ),
            (
                {"firstName": "Ada", "lastName": "Lovelace", "email": "not-an-email", "password": "secret1"},
                "Invalid email format",
            ),
            (
                {"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com", "password": "12345"},
                "Password must be at least 6 characters long",
            ),
        ],
    )
    async def test_register_user_validation(self, test_client, form, message):
        response = await test_client.post("/api/auth/register/user", data=form)
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["message"] == message

    @pytest.mark.asyncio
    async def test_duplicate_email_case_insensitive(self, test_client, signup):
        await signup(email="ada@example.com")
        response = await test_client.post(
            "/api/auth/register/user",
            data={"firstName": "Ada", "lastName": "Again", "email": "ADA@example.com", "password": "secret1"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Email already in use"


class TestBusinessRegistration:

    @pytest.mark.asyncio
    async def test_register_business(self, test_client):
        response = await test_client.post(
            "/api/auth/register/business",
            json={"businessName": "  Corner Shop ", "email": "shop@example.com", "password": "abc123"},
        )
        assert response.status_code == 201
        business = response.json()["business"]
        assert business["businessName"] == "Corner Shop"
        assert business["verified"] is False

        detail = await test_client.get(f"/api/businesses/{business['uid']}")
        assert detail.status_code == 200
        doc = detail.json()
        assert doc["businessName"] == "Corner Shop"
        assert doc["images"] == []
        assert doc["services"] == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload, message",
        [
            ({"businessName": "Shop", "email": "shop@example.com"}, "All fields are required"),
            ({"businessName": " S ", "email": "shop@example.com", "password": "abc123"},
             "Business name must be at least 2 characters long"),
            ({"businessName": "S" * 101, "email": "shop@example.com", "password": "abc123"},
             "Business name must not exceed 100 characters"),
            ({"businessName": "Shop", "email": "shop@", "password": "abc123"}, "Invalid email format"),
            ({"businessName": "Shop", "email": "shop@example.com", "password": "abcdefg"},
             "Password must contain at least one letter and one number"),
        ],
    )
    async def test_register_business_validation(self, test_client, payload, message):
        response = await test_client.post("/api/auth/register/business", json=payload)
        assert response.status_code == 400
        assert response.json()["message"] == message


class TestCheckEmail:

    @pytest.mark.asyncio
    async def test_available(self, test_client):
        response = await test_client.post("/api/auth/check-email", json={"email": "new@example.com"})
        assert response.status_code == 200
        assert response.json() == {"exists": False, "message": "Email is available"}

    @pytest.mark.asyncio
    async def test_registered(self, test_client, signup):
        await signup(email="taken@example.com")
        response = await test_client.post("/api/auth/check-email", json={"email": "taken@example.com"})
        assert response.json()["exists"] is True

    @pytest.mark.asyncio
    async def test_missing(self, test_client):
        response = await test_client.post("/api/auth/check-email", json={})
        assert response.status_code == 400
        assert response.json()["message"] == "Email is required"


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_user_returns_profile_and_token(self, signup):
        account = await signup(email="ada@example.com", name="Ada Lovelace")
        body = account["login"]
        assert body["success"] is True
        assert body["user"]["email"] == "ada@example.com"
        assert body["user"]["userData"]["firstName"] == "Ada"
        assert body["user"]["userData"]["userType"] == "user"
        assert body["session"]["token"]
        assert body["session"]["expiresAt"]

    @pytest.mark.asyncio
    async def test_login_business_returns_document(self, signup):
        account = await signup("business", email="shop@example.com", name="Corner Shop")
        user_data = account["login"]["user"]["userData"]
        assert user_data["businessName"] == "Corner Shop"
        assert user_data["userType"] == "business"

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_client, signup):
        await signup(email="ada@example.com")
        response = await test_client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "wrong-pass"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_unknown_email(self, test_client):
        response = await test_client.post(
            "/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_fields(self, test_client):
        response = await test_client.post("/api/auth/login", json={"email": "ada@example.com"})
        assert response.status_code == 400
        assert response.json()["message"] == "Email and password are required"

    @pytest.mark.asyncio
    async def test_lockout_after_repeated_failures(self, test_client, signup):
        await signup(email="ada@example.com")
        for _ in range(5):
            response = await test_client.post(
                "/api/auth/login", json={"email": "ada@example.com", "password": "nope123"}
            )
            assert response.status_code == 401

        response = await test_client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "secret123"}
        )
        assert response.status_code == 429
        assert response.json()["message"] == "Too many login attempts. Please try again later"
        assert int(response.headers["Retry-After"]) > 0

    @pytest.mark.asyncio
    async def test_disabled_account(self, test_client, signup, session_factory):
        account = await signup(email="ada@example.com")
        async with session_factory() as db:
            row = await db.get(Account, account["uid"])
            row.disabled = True
            await db.commit()

        response = await test_client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "secret123"}
        )
        assert response.status_code == 403
        assert response.json()["message"] == "This account has been disabled"


class TestLoginAttemptTracker:

    @pytest.fixture
    def clock(self, monkeypatch):
        clock = SimpleNamespace(now=1000.0)
        monkeypatch.setattr(
            "localbiz.services.auth_service.time", SimpleNamespace(time=lambda: clock.now)
        )
        return clock

    def test_expired_emails_swept(self, clock):
        tracker = LoginAttemptTracker()
        for i in range(5000):
            tracker.record_failure(f"user{i}@example.com")
        assert len(tracker) == 5000

        clock.now = 10_000_000.0
        tracker.check("fresh@example.com")
        tracker.record_failure("fresh@example.com")
        assert len(tracker) == 1

    def test_sweep_keeps_emails_inside_window(self, clock):
        tracker = LoginAttemptTracker()
        tracker.record_failure("old@example.com")

        clock.now = 1500.0
        for _ in range(5):
            tracker.record_failure("ada@example.com")

        clock.now = 1900.0
        tracker.record_failure("bob@example.com")
        assert len(tracker) == 2

        with pytest.raises(RateLimitExceededError):
            tracker.check("ada@example.com")


class TestSession:

    @pytest.mark.asyncio
    async def test_session_info(self, test_client, signup):
        account = await signup(email="ada@example.com")
        response = await test_client.get("/api/auth/session", headers=account["headers"])
        assert response.status_code == 200
        body = response.json()
        assert body["uid"] == account["uid"]
        assert body["userType"] == "user"
        assert body["userData"]["email"] == "ada@example.com"

    @pytest.mark.asyncio
    async def test_session_requires_token(self, test_client):
        response = await test_client.get("/api/auth/session")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_unknown_token(self, test_client):
        response = await test_client.get(
            "/api/auth/session", headers={"Authorization": "Bearer not-a-real-token"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired session"

    @pytest.mark.asyncio
    async def test_expired_session_is_removed(self, test_client, signup, session_factory):
        account = await signup(email="ada@example.com")
        async with session_factory() as db:
            session = await db.get(AuthSession, account["token"])
            session.expires_at = utcnow() - timedelta(minutes=1)
            await db.commit()

        response = await test_client.get("/api/auth/session", headers=account["headers"])
        assert response.status_code == 401

        async with session_factory() as db:
            assert await db.get(AuthSession, account["token"]) is None

    @pytest.mark.asyncio
    async def test_logout_revokes_token(self, test_client, signup):
        account = await signup(email="ada@example.com")
        response = await test_client.post("/api/auth/logout", headers=account["headers"])
        assert response.status_code == 200
        assert response.json()["success"] is True

        again = await test_client.get("/api/auth/session", headers=account["headers"])
        assert again.status_code == 401


class TestUserLookup:

    @pytest.mark.asyncio
    async def test_lookup_business(self, test_client, signup):
        shop = await signup("business", email="shop@example.com", name="Corner Shop")
        response = await test_client.get(f"/api/auth/user/{shop['uid']}")
        assert response.status_code == 200
        body = response.json()
        assert body["userType"] == "business"
        assert body["businessName"] == "Corner Shop"

    @pytest.mark.asyncio
    async def test_lookup_user(self, test_client, signup):
        ada = await signup(email="ada@example.com", name="Ada Lovelace")
        body = (await test_client.get(f"/api/auth/user/{ada['uid']}")).json()
        assert body["userType"] == "user"
        assert body["lastName"] == "Lovelace"

    @pytest.mark.asyncio
    async def test_lookup_unknown(self, test_client):
        response = await test_client.get("/api/auth/user/does-not-exist")
        assert response.status_code == 404
        assert response.json()["message"] == "User not found"
