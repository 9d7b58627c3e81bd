"""Pytest configuration and fixtures for vex-flows.

Environment is set before app.* is imported so Settings validation passes
without a real deployment: in-memory SQLite, local JWT verification and
no background scheduler. Repository tests run on aiosqlite (SKIP LOCKED is
a no-op there); tests marked requires_db need DATABASE_URL pointing at
PostgreSQL and are skipped otherwise.
"""

import os
from datetime import UTC, datetime, timedelta

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["AUTH_MODE"] = "jwt"
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-jwt-signing")
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["ALLOW_ANON"] = "false"
os.environ["EVENTS_TOKEN"] = "test-events-token"
os.environ["GMAIL_WEBHOOK_SECRET"] = "test-gmail-secret"
os.environ["PASSWORD_RESET_WEBHOOK_SECRET"] = "test-reset-secret"
os.environ["PASSWORD_RESET_URL_BASE"] = "https://app.example.com/reset"
os.environ["HEALTH_SKIP_DB"] = "false"

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.config import get_settings  # noqa: E402

get_settings.cache_clear()

import app.infrastructure.persistence.models  # noqa: E402,F401
from app.api.v1.dependencies import get_dispatcher  # noqa: E402
from app.infrastructure.persistence.database import (  # noqa: E402
    Base,
    get_db,
    get_db_transactional,
)
from app.main import app  # noqa: E402

TEST_ORG = "org-1"
OTHER_ORG = "org-2"


class FakeDispatcher:
    """ChannelDispatcher double; every channel succeeds unless a side_effect is set."""

    def __init__(self) -> None:
        self.send_email = AsyncMock(return_value={"message_id": "<msg-1@test>"})
        self.send_slack = AsyncMock(return_value={"status": 200})
        self.send_whatsapp = AsyncMock(
            return_value={"status": 200, "data": {"mock": True}}
        )


@pytest.fixture
async def engine():
    """In-memory SQLite engine shared by all sessions of one test, with tables created."""
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(eng.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncSession:
    """Session for repository tests. Rolled back after the test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture
async def client(session_factory, dispatcher) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI) backed by the test database."""

    async def _get_db():
        async with session_factory() as session:
            yield session

    async def _get_db_transactional():
        async with session_factory() as session:
            async with session.begin():
                yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_db_transactional] = _get_db_transactional
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


def create_access_token(
    claims: dict, expires_delta: timedelta | None = timedelta(minutes=60)
) -> str:
    """Sign claims with the shared secret the way the core service issues tokens.

    expires_delta=None omits the exp claim.
    """
    to_encode = dict(claims)
    if expires_delta is not None:
        to_encode["exp"] = datetime.now(UTC) + expires_delta
    settings = get_settings()
    return jwt.encode(
        to_encode, settings.secret_key.get_secret_value(), algorithm=settings.algorithm
    )


@pytest.fixture
def make_token():
    """Factory: make_token(claims, expires_delta) -> signed JWT."""
    return create_access_token


def bearer(organization_id: str = TEST_ORG, user_id: str = "user-1") -> dict[str, str]:
    token = create_access_token(
        {"sub": user_id, "email": f"{user_id}@example.com", "org_id": organization_id}
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Authorization header for a caller of TEST_ORG."""
    return bearer(TEST_ORG)


@pytest.fixture
def headers_for():
    """Factory: headers_for(organization_id) -> Authorization header for that organization."""
    return bearer
