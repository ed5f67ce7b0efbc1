"""
Shared fixtures: a throwaway SQLite database per test, two seeded users and
an HTTP client bound to the app with auth resolved to a chosen user.
"""
import fnmatch
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
from fastapi import Depends, HTTPException
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.main import app
from app.models import User
from app.routers.auth import get_current_user, get_optional_user
from app.utils.database import Base, get_db, get_session_factory
from app.utils.redis import get_redis


class MemoryCache:
    """Just enough of the Redis client for CacheService"""

    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value
        return True

    async def keys(self, pattern):
        return [key for key in self.store if fnmatch.fnmatchcase(key, pattern)]

    async def delete(self, *keys):
        return sum(self.store.pop(key, None) is not None for key in keys)


class AuthState:
    """The seeded user requests are made as; None means anonymous"""

    def __init__(self):
        self.user_id = None


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tripfolio.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def users(session_factory):
    async with session_factory() as session:
        alice = User(
            clerk_id="user_alice",
            email="alice@example.com",
            first_name="Alice",
            last_name="Traveler",
            ai_uses_remaining=5,
        )
        bob = User(
            clerk_id="user_bob",
            email="bob@example.com",
            first_name="Bob",
            last_name="Backpacker",
            ai_uses_remaining=5,
        )
        session.add_all([alice, bob])
        await session.commit()
    return {"alice": alice, "bob": bob}


@pytest.fixture
def auth(users):
    state = AuthState()
    state.user_id = users["alice"].id
    return state


@pytest.fixture
async def client(session_factory, auth):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_current_user(db: AsyncSession = Depends(get_db)):
        if auth.user_id is None:
            raise HTTPException(status_code=401, detail="Unauthorized")
        return await db.get(User, auth.user_id)

    async def override_optional_user(db: AsyncSession = Depends(get_db)):
        if auth.user_id is None:
            return None
        return await db.get(User, auth.user_id)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_current_user
    app.dependency_overrides[get_optional_user] = override_optional_user
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_trip(client):
    """Create a trip as the signed-in user and return its JSON"""
    async def _make(**fields):
        payload = {
            "name": "Iberia Loop",
            "startDate": "2024-06-15",
            "endDate": "2024-07-05",
            **fields,
        }
        response = await client.post("/api/trips", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_expense(client):
    async def _make(trip_id, **fields):
        payload = {
            "tripId": trip_id,
            "category": "food",
            "description": "Tapas crawl",
            "cost": "45.50",
            **fields,
        }
        response = await client.post("/api/expenses", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def publish(client):
    async def _publish(trip_id, **details):
        response = await client.patch(f"/api/trips/{trip_id}/publish", json=details)
        assert response.status_code == 200, response.text
        return response.json()
    return _publish


@pytest.fixture
def memory_cache(client):
    """Route the app's cache dependency to an in-process store"""
    cache = MemoryCache()
    app.dependency_overrides[get_redis] = lambda: cache
    return cache
