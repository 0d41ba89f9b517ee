"""Pytest configuration and fixtures for backend tests.

Database Handling:
- Uses TEST_DATABASE_URL when set (e.g. postgresql+asyncpg://...)
- Otherwise runs against an in-memory SQLite database via aiosqlite,
  created fresh for every test
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

SQLITE_MEMORY_URL = "sqlite+aiosqlite:///:memory:"

# Set test environment variables before importing app modules
os.environ["JWT_SECRET_KEY"] = "test-secret-key-" + "0" * 32
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", SQLITE_MEMORY_URL)
# Cheap Argon2 parameters keep the suite fast
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "1024"
os.environ["ARGON2_PARALLELISM"] = "1"

# Test user credentials
TEST_USER_NAME = "Alice"
TEST_USER_EMAIL = "alice@example.com"
TEST_USER_PASSWORD = "secret123"


def _get_database_url() -> str:
    return os.environ.get("TEST_DATABASE_URL", SQLITE_MEMORY_URL)


# --- Login Throttle Reset Fixture ---


@pytest.fixture(autouse=True)
def reset_login_rate_limiter():
    """Reset the failed-login limiter before and after each test.

    The auth router tracks failed attempts per IP in a module-level dict;
    without a reset, failures from one test leak into the next.
    """
    from authgate.api.auth import reset_login_attempts

    reset_login_attempts()
    yield
    reset_login_attempts()


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a database engine with a fresh schema for each test."""
    from authgate.core.database import Base, engine_options

    database_url = _get_database_url()
    if database_url.startswith("sqlite"):
        engine = create_async_engine(database_url, echo=False, **engine_options(database_url))
    else:
        engine = create_async_engine(database_url, poolclass=NullPool, echo=False)

    import authgate.models  # noqa: F401

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables after test
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database override."""
    from authgate.core.database import engine, get_db
    from authgate.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    # Clean up
    app.dependency_overrides.clear()
    # /health uses the app engine; drop its connections before this loop closes
    await engine.dispose()


# --- Pytest Hooks for Auto-Marking ---


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their fixtures and location.

    - Tests using db_session, db_engine, or async_client are marked as 'integration'
    - Everything else is marked as 'unit'
    - Tests can override with explicit markers
    """
    integration_fixtures = {"db_session", "db_engine", "async_client"}

    for item in items:
        # Skip if already explicitly marked
        if any(mark.name in ("unit", "integration") for mark in item.iter_markers()):
            continue

        if hasattr(item, "fixturenames") and integration_fixtures & set(item.fixturenames):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# --- User Helpers ---


@pytest.fixture
def user_factory(db_session):
    """Factory for creating test users."""
    from authgate.models.user import User
    from authgate.services.passwords import hash_password

    async def _create_user(
        name: str = TEST_USER_NAME,
        email: str = TEST_USER_EMAIL,
        password: str = TEST_USER_PASSWORD,
    ) -> User:
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create_user


@pytest_asyncio.fixture
async def test_user(user_factory):
    """Create the default test user."""
    return await user_factory()


@pytest.fixture
def token_codec():
    """The application's token codec."""
    from authgate.services.auth import get_token_codec

    return get_token_codec()


@pytest_asyncio.fixture
async def auth_token(test_user, token_codec) -> str:
    """A bearer token for the default test user."""
    return token_codec.mint(test_user.id).token


@pytest_asyncio.fixture
async def auth_headers(auth_token) -> dict[str, str]:
    """Headers with a bearer token for authenticated requests."""
    return {"Authorization": f"Bearer {auth_token}"}
