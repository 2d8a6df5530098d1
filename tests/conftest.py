import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from typing import AsyncGenerator
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.core.database import Base, get_db
from app.core.security import get_password_hash
from app.models.user import User, UserRole

API = "/api/v1"
PASSWORD = "TestPass123"


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite database file per test"""
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def _sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for seeding and inspecting data outside requests"""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create test client"""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def register(client: AsyncClient, email: str, role: str = "user", name: str = "Test User") -> dict:
    response = await client.post(
        f"{API}/auth/register",
        json={
            "name": name,
            "email": email,
            "password": PASSWORD,
            "password_confirm": PASSWORD,
            "role": role,
        }
    )
    assert response.status_code == 201, response.text
    return response.json()


async def login(client: AsyncClient, email: str, password: str = PASSWORD) -> dict:
    response = await client.post(
        f"{API}/auth/login",
        json={"email": email, "password": password}
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
async def user_headers(client) -> dict:
    await register(client, "buyer@example.com")
    return await login(client, "buyer@example.com")


@pytest.fixture
async def agent_headers(client) -> dict:
    await register(client, "agent@example.com", role="agent", name="Agent Smith")
    return await login(client, "agent@example.com")


@pytest.fixture
async def admin_headers(client, session_factory) -> dict:
    async with session_factory() as session:
        session.add(User(
            name="Admin",
            email="admin@example.com",
            hashed_password=get_password_hash(PASSWORD),
            role=UserRole.ADMIN,
        ))
        await session.commit()
    return await login(client, "admin@example.com")


def listing_payload(**overrides) -> dict:
    payload = {
        "title": "Modern 3 bedroom duplex",
        "description": "Spacious duplex close to the expressway",
        "property_type": "duplex",
        "listing_type": "sale",
        "price": 85_000_000,
        "location": "Lekki Phase 1, Lagos",
        "state": "Lagos",
        "area": "Lekki",
        "bedrooms": 3,
        "bathrooms": 3,
        "floor_area": 220,
        "image_url": "https://images.example.com/duplex.jpg",
        "is_featured": False,
        "amenities": ["parking", "security"],
    }
    payload.update(overrides)
    return payload


async def create_listing(client: AsyncClient, headers: dict, **overrides) -> dict:
    response = await client.post(
        f"{API}/properties",
        json=listing_payload(**overrides),
        headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()
