"""
Test fixtures for the Cliente API test suite.

This module provides shared fixtures used across all test files:

  - db_engine / db_session: Fresh in-memory SQLite database for each test,
    seeded with roles and the banking product catalog
  - client: Async HTTP test client (no Authorization header)
  - admin_headers / moderator_headers / user_headers: Authorization headers
    for users registered and signed in through the real auth endpoints
  - create_customer: Helper that POSTs a customer as ADMIN

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) gives every test a fresh database.
  - FastAPI's get_db dependency is overridden so requests hit the test
    database with the same commit/rollback semantics as production.
  - httpx's ASGITransport does not run the lifespan, so reference data is
    seeded here with the same function the application uses at startup.
  - Role headers are dicts passed per request, so one test can act as
    several users against the same client.
"""

import os

# Settings() requires SECRET_KEY; set it before the application is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production-use-0123456789")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from cliente_api.database import Base, get_db
from cliente_api.main import app
from cliente_api.seed import seed_reference_data


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables and reference data."""
    engine = create_async_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        await seed_reference_data(session)

    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Provide an async session bound to the test engine."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """
    Async HTTP test client with the test database injected.

    This overrides the get_db dependency so all requests hit the
    in-memory test database instead of the real one.
    """

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


async def register_and_sign_in(
    client: AsyncClient,
    username: str,
    password: str,
    roles: list[str] | None = None,
) -> dict[str, str]:
    """Sign up through the API, sign in, and return the Authorization header."""
    body = {"username": username, "password": password}
    if roles is not None:
        body["role"] = roles

    signup = await client.post("/api/auth/signup", json=body)
    assert signup.status_code == 200, f"Signup failed: {signup.text}"

    signin = await client.post(
        "/api/auth/signin",
        json={"username": username, "password": password},
    )
    assert signin.status_code == 200, f"Signin failed: {signin.text}"
    return {"Authorization": f"Bearer {signin.json()['token']}"}


@pytest_asyncio.fixture
async def admin_headers(client):
    return await register_and_sign_in(client, "adminuser", "adminpass", ["admin"])


@pytest_asyncio.fixture
async def moderator_headers(client):
    return await register_and_sign_in(client, "moduser", "modpass", ["mod"])


@pytest_asyncio.fixture
async def user_headers(client):
    return await register_and_sign_in(client, "plainuser", "userpass")


def build_customer_payload(national_id: str = "12345678", products=("CA",), **overrides) -> dict:
    """A valid create-customer body in wire (camelCase) format."""
    payload = {
        "nationalId": national_id,
        "firstName": "Ana",
        "lastName": "García",
        "street": "Av. Corrientes",
        "number": 1234,
        "postalCode": "C1043",
        "phone": "1143210000",
        "mobile": "(011) 15-5555-0000",
        "productCodes": list(products),
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def customer_payload():
    return build_customer_payload


@pytest.fixture
def create_customer(client, admin_headers):
    """Return a coroutine function that creates a customer as ADMIN."""

    async def _create(national_id: str = "12345678", products=("CA",), **overrides):
        response = await client.post(
            "/api/clientes",
            json=build_customer_payload(national_id, products, **overrides),
            headers=admin_headers,
        )
        assert response.status_code == 201, f"Create failed: {response.text}"
        return response.json()

    return _create
