"""
Inkpost Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   A fresh in-memory SQLite database (aiosqlite) and a temporary media
       directory per test; services and the app are built from explicit
       test Settings, never the environment-loaded ones.

Fixture Hierarchy (all function-scoped):
    test_settings
    ├── db_engine ── session_factory ── db_session
    ├── media_store
    ├── user_service / post_service   (service-level tests)
    └── app ── client                 (HTTP tests through ASGITransport)

    mock_db_session       AsyncMock session for failure-path unit tests
    temp_storage          empty directory for MediaStore tests
    png_bytes             small image payload
    register_and_login    coroutine helper returning (user_id, headers)
"""

import os
import tempfile
from typing import AsyncGenerator, Dict, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before any app import: app.config and app.main build module-level
# instances from the environment.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="inkpost_test_")
os.environ["LOG_LEVEL"] = "WARNING"

from app.config import Settings  # noqa: E402
from app.database import get_db_session, init_models  # noqa: E402
from app.security import PasswordHasher, TokenService  # noqa: E402
from app.services.media_store import MediaStore  # noqa: E402
from app.services.post_service import PostService  # noqa: E402
from app.services.user_service import UserService  # noqa: E402

TEST_JWT_SECRET = "test-secret-key-with-enough-length-for-hs256"


# ══════════════════════════════════════════════════════════════════════════
# Settings & Database
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a per-test media directory; cheap bcrypt cost."""
    return Settings(
        database_url="sqlite+aiosqlite://",
        jwt_secret=TEST_JWT_SECRET,
        storage_root=str(tmp_path / "uploads"),
        bcrypt_rounds=4,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite engine with the schema created.

    StaticPool keeps a single connection, so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    AsyncMock standing in for AsyncSession.

    Usage:
        mock_db_session.commit.side_effect = SQLAlchemyError("boom")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Services
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def media_store(test_settings) -> MediaStore:
    return MediaStore(test_settings.storage_root)


@pytest.fixture
def token_service(test_settings) -> TokenService:
    return TokenService(test_settings)


@pytest.fixture
def user_service(test_settings, media_store, token_service) -> UserService:
    hasher = PasswordHasher(rounds=test_settings.bcrypt_rounds)
    return UserService(test_settings, media_store, hasher, token_service)


@pytest.fixture
def post_service(test_settings, media_store) -> PostService:
    return PostService(test_settings, media_store)


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(test_settings, session_factory):
    """
    A fresh application wired to the per-test database.

    get_db_session is overridden with the same commit/rollback contract,
    bound to the test session factory.
    """
    from app.main import create_app

    application = create_app(test_settings)

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_db_session
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    raise_app_exceptions=False lets the catch-all 500 handler respond
    instead of re-raising into the test.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ══════════════════════════════════════════════════════════════════════════
# Payloads & Helpers
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path) -> str:
    """A fresh, empty media directory."""
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def png_bytes() -> bytes:
    """PNG signature plus an IHDR chunk; enough to look like an image."""
    return (
        b"\x89PNG\r\n\x1a\n"
        b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00"
        b"\x1f\x15\xc4\x89"
    )


@pytest.fixture
def register_and_login(client):
    """
    Register an account over HTTP and log it in.

    Usage:
        user_id, headers = await register_and_login("ada@example.com")
    """

    async def _register_and_login(
        email: str = "ada@example.com",
        name: str = "Ada",
        password: str = "secret1",
    ) -> Tuple[str, Dict[str, str]]:
        resp = await client.post(
            "/api/users/register",
            json={"name": name, "email": email, "password": password, "password2": password},
        )
        assert resp.status_code == 201, resp.text
        resp = await client.post(
            "/api/users/login", json={"email": email, "password": password}
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        return body["id"], {"Authorization": f"Bearer {body['token']}"}

    return _register_and_login
