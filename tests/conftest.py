"""Test fixtures — a fresh in-memory database per test.

Each test gets its own SQLite engine (aiosqlite + StaticPool, so every
session shares the one in-memory connection) with the schema created
from the ORM models. The app's get_db and get_settings dependencies are
overridden; authentication is NOT mocked, so every protected request in
these tests goes through real JWT verification.
"""

import os
import uuid

# Keep the app's module-level engine off PostgreSQL during tests.
os.environ.setdefault("TASKDESK_DATABASE_URL", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from taskdesk.auth.dependencies import CurrentIdentity
from taskdesk.config import Settings, get_settings
from taskdesk.db.engine import get_db
from taskdesk.db.models import Base, User
from taskdesk.main import app

TEST_DB_URL = "sqlite+aiosqlite://"

TEST_SETTINGS = Settings(
    database_url=TEST_DB_URL,
    jwt_secret="test-secret-not-for-production",
    bcrypt_rounds=4,
)


@pytest.fixture
def test_settings() -> Settings:
    return TEST_SETTINGS


@pytest_asyncio.fixture()
async def db_engine():
    engine = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(db_engine):
    """Session for calling services directly, without HTTP."""
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(db_engine):
    """HTTP client against the app with DB and settings overridden.

    Every request opens its own session, as in production.
    """
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: TEST_SETTINGS

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Factory: register a user over HTTP and return token + auth headers."""

    async def _register(name: str = "User", email: str | None = None,
                        password: str = "password_123") -> dict:
        email = email or f"{name.lower()}-{uuid.uuid4().hex[:8]}@example.com"
        r = await client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert r.status_code == 201, r.text
        data = r.json()
        return {
            "id": data["user"]["id"],
            "email": email,
            "token": data["token"],
            "headers": {"Authorization": f"Bearer {data['token']}"},
        }

    return _register


@pytest.fixture
async def alice(register):
    return await register("Alice")


@pytest.fixture
async def bob(register):
    return await register("Bob")


@pytest.fixture
async def carol(register):
    return await register("Carol")


@pytest.fixture
def make_task(client):
    """Factory: create a task over HTTP as `owner`, assigned to `assignee`."""

    async def _make_task(owner: dict, assignee: dict, **overrides) -> dict:
        body = {
            "title": "Write report",
            "description": "Quarterly numbers",
            "dueDate": "2026-11-01T12:00:00Z",
            "priority": "medium",
            "assignedTo": assignee["id"],
        }
        body.update(overrides)
        r = await client.post("/api/tasks", json=body, headers=owner["headers"])
        assert r.status_code == 201, r.text
        return r.json()

    return _make_task


# ─── Service-level fixtures (no HTTP) ────────────────────


async def _add_user(session: AsyncSession, name: str) -> User:
    user = User(
        name=name,
        email=f"{name.lower()}-{uuid.uuid4().hex[:8]}@example.com",
        password_hash="not-a-real-hash",
    )
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
async def users(db_session):
    """Three users created straight in the DB, as identities: (ann, ben, cal)."""
    created = [await _add_user(db_session, n) for n in ("Ann", "Ben", "Cal")]
    return tuple(CurrentIdentity(user_id=u.id) for u in created)
