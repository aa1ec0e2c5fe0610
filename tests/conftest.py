"""Test fixtures: a fresh app and in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test builds its own app with create_app(test_settings). The
   settings point at in-memory SQLite (StaticPool, so every session sees
   the same database) and carry a test-only JWT secret.
2. Tables are created on the app's engine before the test runs; the
   engine is disposed afterwards, so nothing leaks between tests.
3. The HTTP client talks to the app in-process through ASGITransport.

Unlike a mocked get_current_user, the real authentication gate runs in
every test: helpers register + login users and return bearer headers.
"""

import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from projectdesk.config import Settings
from projectdesk.db.engine import create_tables
from projectdesk.main import create_app

TEST_SECRET = "test-secret-do-not-use"
DEFAULT_PASSWORD = "Passw0rdX"


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite+aiosqlite://",
        "jwt_secret": TEST_SECRET,
        "environment": "test",
        "auto_create_tables": False,
        "bcrypt_rounds": 4,
    }
    values.update(overrides)
    return Settings(**values)


@pytest_asyncio.fixture()
async def app():
    application = create_app(make_settings())
    await create_tables(application.state.engine)
    try:
        yield application
    finally:
        await application.state.engine.dispose()


@pytest_asyncio.fixture()
async def db_session(app):
    """Direct session on the app's database, for setup and assertions."""
    async with app.state.session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def register(client, role=None, email=None, password=DEFAULT_PASSWORD, name="Test User"):
    """Register a user through the API and return the response data."""
    body = {
        "name": name,
        "email": email or f"user-{uuid.uuid4().hex[:8]}@example.com",
        "password": password,
    }
    if role:
        body["role"] = role
    r = await client.post("/api/auth/register", json=body)
    assert r.status_code == 201, r.text
    return r.json()["data"]


async def login(client, email, password=DEFAULT_PASSWORD) -> str:
    r = await client.post("/api/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["data"]["token"]


async def auth_headers(client, role=None) -> tuple[dict, dict]:
    """Register + login a fresh user. Returns (user, headers)."""
    user = await register(client, role=role)
    token = await login(client, user["email"])
    return user, {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture()
async def owner(client):
    """(user, headers) for a regular user who will own projects."""
    return await auth_headers(client)


@pytest_asyncio.fixture()
async def other(client):
    """(user, headers) for a second regular user."""
    return await auth_headers(client)


@pytest_asyncio.fixture()
async def admin(client):
    """(user, headers) for an admin."""
    return await auth_headers(client, role="admin")


@pytest_asyncio.fixture()
async def project(client, owner):
    _, headers = owner
    r = await client.post(
        "/api/projects",
        json={"name": "Apollo", "description": "Moon shot"},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()["data"]
