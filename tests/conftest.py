"""Shared test fixtures: async SQLite in-memory DB + test client."""

import os
import uuid
from collections.abc import AsyncGenerator

# Settings are cached on first import; pin them before the app loads
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_EMAIL", "admin@example.com")
os.environ.setdefault("PANDA_TUNNEL_MAIN_HOST", "panda.example.com")
os.environ.setdefault("FRP_SERVER_ADDR", "frp.example.com")
os.environ.setdefault("FRP_AUTH_TOKEN", "test-frp-token")
os.environ.setdefault("NOTIFIER_URL", "")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

# Import all models so metadata is populated
import panda.models  # noqa: F401, E402
from panda.core.database import get_session  # noqa: E402
from panda.core.security import create_jwt  # noqa: E402
from panda.main import app  # noqa: E402
from panda.models.user import User, UserRole  # noqa: E402


@pytest.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def test_session_factory(engine):
    """Session factory bound to the test SQLite engine."""
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(test_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as sess:
        yield sess
        await sess.rollback()


@pytest.fixture
async def client(session) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client with DB session override."""

    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    """Factory: insert a user directly and return (user, auth headers)."""

    async def _make(role: UserRole = UserRole.FREE, email: str | None = None):
        user = User(
            email=email or f"{uuid.uuid4().hex[:10]}@example.com",
            password_hash="unused",
            role=role,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        token = create_jwt(subject=str(user.id), role=user.role, email=user.email)
        return user, {"Authorization": f"Bearer {token}"}

    return _make
