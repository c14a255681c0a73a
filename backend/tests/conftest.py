"""
Jokes API Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped, fresh for each test):
    ├── mock_db_session: AsyncMock standing in for AsyncSession (unit tests)
    ├── database:        Database handle on a temporary SQLite file, tables created
    ├── app:             create_app() wired to that handle
    ├── test_client:     HTTPX AsyncClient talking to the app over ASGITransport
    ├── register_user:   async helper → (user id, token) for a fresh account
    └── auth_headers:    helper building {"Authorization": "Bearer <token>"}
"""

import os

# Override settings for testing BEFORE any jokes_api imports: the settings
# object is built at import time.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"  # Minimum cost: hashing dominates test time otherwise
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from typing import Callable, Dict  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from jokes_api.database import Base, Database  # noqa: E402
from jokes_api.models.comment import Comment  # noqa: E402,F401
from jokes_api.models.favorite import Favorite  # noqa: E402,F401
from jokes_api.models.joke import Joke  # noqa: E402,F401
from jokes_api.models.user import User  # noqa: E402,F401


# ══════════════════════════════════════════════════════════════════════════
# Unit-test fakes
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        result = MagicMock()
        result.first.return_value = None
        mock_db_session.execute.return_value = result
        await joke_service.get_joke(mock_db_session, 1)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session


def make_result(first=None, rowcount=None, scalar=None):
    """A stand-in for the Result object returned by session.execute()."""
    result = MagicMock()
    result.first.return_value = first
    result.scalar_one_or_none.return_value = scalar
    result.scalar_one.return_value = scalar
    if rowcount is not None:
        result.rowcount = rowcount
    return result


@pytest.fixture
def result_factory() -> Callable[..., MagicMock]:
    return make_result


# ══════════════════════════════════════════════════════════════════════════
# HTTP-level fixtures (real app, temporary SQLite database)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database(tmp_path):
    """
    A Database handle on a throwaway SQLite file with every table created.

    Foreign keys are enforced (the handle turns on PRAGMA foreign_keys), so
    reference violations behave as they do on PostgreSQL.
    """
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'jokes_test.db'}")
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db
    await db.dispose()


@pytest.fixture
def app(database):
    from jokes_api.main import create_app
    return create_app(database=database)


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers() -> Callable[[str], Dict[str, str]]:
    def build(token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"}
    return build


@pytest.fixture
def register_user(test_client):
    """
    Async helper registering an account through the API.

    Usage:
        user_id, token = await register_user("alice")
    """
    async def register(username: str, password: str = "secret123", email: str | None = None):
        response = await test_client.post(
            "/api/auth/register",
            json={
                "username": username,
                "email": email or f"{username}@example.com",
                "password": password,
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["id"], body["token"]
    return register
