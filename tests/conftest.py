"""
Taskforge Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh app built from test Settings on an in-memory
       SQLite database (aiosqlite + StaticPool), so tests are isolated and
       need no PostgreSQL.

Fixture Hierarchy (all function-scoped):
    test_settings ─▶ app ─┬─▶ test_client (HTTPX AsyncClient over ASGITransport)
                          ├─▶ db_session  (AsyncSession on the same database)
                          ├─▶ token_service / password_hasher (from app.state)
                          └─▶ auth_headers (registered user's bearer header)
    mock_db_session: AsyncMock session for pure unit tests
"""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only-0123456789"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

from taskforge.config import Settings  # noqa: E402
from taskforge.database import create_all, dispose_engine  # noqa: E402
from taskforge.main import create_app  # noqa: E402

TEST_SECRET = "test-secret-key-for-testing-only-0123456789"
DEFAULT_PASSWORD = "pw123456"


@pytest.fixture
def test_settings() -> Settings:
    # bcrypt_rounds=4 is the minimum; keeps hashing fast in tests
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def app(test_settings):
    """A fresh application with an empty schema."""
    application = create_app(test_settings)
    await create_all(application.state.engine)
    yield application
    await dispose_engine(application.state.engine)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def db_session(app):
    """An AsyncSession on the app's database, for store-level tests."""
    async with app.state.session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def token_service(app):
    return app.state.token_service


@pytest.fixture
def password_hasher(app):
    return app.state.password_hasher


@pytest.fixture
def mock_db_session():
    """
    A mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = row
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register_user(test_client):
    """
    Factory: register through the API and return (body, headers).

    Usage:
        body, headers = await register_user("a@x.com")
    """
    async def _register(email: str, password: str = DEFAULT_PASSWORD, name: str = "Test User"):
        response = await test_client.post(
            "/api/auth/register",
            json={"email": email, "password": password, "name": name},
        )
        assert response.status_code == 200, response.text
        body = response.json()
        return body, bearer(body["token"])

    return _register


@pytest_asyncio.fixture
async def auth_headers(register_user):
    """Authorization header for a freshly registered user."""
    _, headers = await register_user("owner@example.com")
    return headers
