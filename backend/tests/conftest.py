"""
LocalBiz Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets its own SQLite database (aiosqlite) created from the
       ORM metadata; the app's session dependencies are overridden to use it.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine:        async engine on a per-test SQLite file
    ├── session_factory:  async_sessionmaker bound to db_engine
    ├── db_session:       a session for calling services directly
    ├── test_client:      HTTPX AsyncClient wired to the FastAPI app
    ├── signup:           registers (and logs in) a user or business
    ├── png_bytes:        a real 1x1 PNG for upload tests
    └── temp_storage:     empty directory for FileService tests
"""

import base64
import os
import tempfile
from typing import AsyncGenerator

# Override settings BEFORE any localbiz import: the engine, settings and
# file service singletons read the environment at import time
_TEST_ROOT = tempfile.mkdtemp(prefix="localbiz_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/app.db"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_ROOT, "storage")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["CORS_ORIGINS"] = "http://localhost:3000"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import localbiz.models  # noqa: F401
from localbiz.database import Base, get_db_session, get_session_factory
from localbiz.main import app
from localbiz.services.auth_service import auth_service

# 1x1 transparent PNG
PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    A plain session for service-level tests.

    Usage:
        async def test_track(db_session):
            await analytics_service.track_event(db_session, "b1", "view")
    """
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# HTTP Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client talking to the app through ASGITransport.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    auth_service.login_attempts.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    auth_service.login_attempts.reset()


@pytest.fixture
def signup(test_client):
    """
    Register an account through the API and log it in.

    Returns a coroutine function:
        account = await signup("business", email="shop@example.com", name="Corner Shop")
        account["uid"], account["token"], account["headers"]
    """

    async def _signup(kind: str = "user", email: str = "user@example.com",
                      password: str = "secret123", name: str = "Ada Lovelace") -> dict:
        if kind == "business":
            response = await test_client.post(
                "/api/auth/register/business",
                json={"businessName": name, "email": email, "password": password},
            )
        else:
            first, _, last = name.partition(" ")
            response = await test_client.post(
                "/api/auth/register/user",
                data={"firstName": first, "lastName": last or "Tester", "email": email, "password": password},
            )
        assert response.status_code == 201, response.text

        login = await test_client.post("/api/auth/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.text
        body = login.json()
        token = body["session"]["token"]
        return {
            "uid": body["user"]["uid"],
            "email": email,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
            "login": body,
        }

    return _signup


# ══════════════════════════════════════════════════════════════════════════
# File Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def png_bytes() -> bytes:
    return PNG_1X1


@pytest.fixture
def temp_storage(tmp_path):
    """A fresh storage directory for FileService tests."""
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)
