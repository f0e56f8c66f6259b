"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-at-least-32-bytes!!")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("OPENAI_API_KEY", "")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("REGISTER_RATE_LIMIT", "1000/minute")

from collections.abc import AsyncGenerator  # noqa: E402
from itertools import cycle  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from langchain_core.language_models import BaseChatModel  # noqa: E402
from langchain_core.language_models.fake_chat_models import (  # noqa: E402
    GenericFakeChatModel,
)
from langchain_core.messages import AIMessage  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from chat_gateway.core.config import settings  # noqa: E402
from chat_gateway.core.database import Base  # noqa: E402
from chat_gateway.models.conversation import Conversation  # noqa: E402, F401
from chat_gateway.models.message import Message  # noqa: E402, F401
from chat_gateway.models.user import User  # noqa: E402
from chat_gateway.services.completion_service import CompletionProvider  # noqa: E402
from chat_gateway.services.session_service import SessionManager  # noqa: E402

FAKE_REPLY = "Hello from the assistant"

# --- Test DB (SQLite in-memory) ---

test_engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(autouse=True)
async def setup_db() -> AsyncGenerator[None, None]:
    """Create all tables before each test, drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a test database session."""
    async with test_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def override_get_session_factory() -> async_sessionmaker[AsyncSession]:
    return test_session_factory


# --- Session helpers ---


@pytest.fixture
def session_manager() -> SessionManager:
    """SessionManager sharing the application's signing key."""
    return SessionManager(settings.auth)


def make_session_headers(user_id: str) -> dict[str, str]:
    """Generate a Cookie header carrying a valid session token."""
    token = SessionManager(settings.auth).issue(user_id)
    return {"Cookie": f"{settings.auth.cookie_name}={token}"}


async def create_user(username: str = "tester") -> User:
    """Insert a user row directly and return it."""
    async with test_session_factory() as session:
        user = User(username=username, hashed_password="not-a-real-hash")
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


# --- Completion providers ---


def fake_provider(*replies: str) -> CompletionProvider:
    """Provider backed by a fake chat model cycling through ``replies``."""
    model = GenericFakeChatModel(
        messages=cycle([AIMessage(content=r) for r in (replies or (FAKE_REPLY,))])
    )
    return CompletionProvider(settings.llm, model=model)


def failing_provider() -> CompletionProvider:
    """Provider whose model raises on every call."""
    model = MagicMock(spec=BaseChatModel)
    model.ainvoke = AsyncMock(side_effect=RuntimeError("provider down"))

    async def broken_stream(*args, **kwargs):  # type: ignore[no-untyped-def]
        raise RuntimeError("provider down")
        yield  # pragma: no cover

    model.astream = broken_stream
    return CompletionProvider(settings.llm, model=model)


@pytest.fixture
def provider() -> CompletionProvider:
    return fake_provider()


# --- App override & client fixtures ---


def _get_app(provider: CompletionProvider | None = None):  # type: ignore[no-untyped-def]
    """Import app lazily and apply overrides."""
    from chat_gateway.core.database import get_async_session, get_session_factory
    from chat_gateway.dependencies import get_completion_provider
    from chat_gateway.main import app

    app.dependency_overrides[get_async_session] = override_get_async_session
    app.dependency_overrides[get_session_factory] = override_get_session_factory
    chosen = provider or fake_provider()
    app.dependency_overrides[get_completion_provider] = lambda: chosen
    return app


@pytest.fixture(autouse=True)
def reset_rate_limits() -> None:
    """Start every test with empty rate-limit state."""
    from chat_gateway.core.limiter import limiter
    from chat_gateway.main import app
    from chat_gateway.services.rate_limiter import FixedWindowRateLimiter

    limiter.reset()
    app.state.rate_limiter = FixedWindowRateLimiter.from_config(settings.rate_limit)


@pytest.fixture
async def async_client(
    provider: CompletionProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client without a session cookie."""
    application = _get_app(provider)
    transport = ASGITransport(app=application)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    application.dependency_overrides.clear()


@pytest.fixture
async def user() -> User:
    return await create_user()


@pytest.fixture
async def authed_client(
    user: User,
    provider: CompletionProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client carrying a session cookie for ``user``."""
    application = _get_app(provider)
    transport = ASGITransport(app=application)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers=make_session_headers(user.id),
    ) as ac:
        yield ac
    application.dependency_overrides.clear()


# --- DB session for tests ---


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a raw async session for repository tests."""
    async with test_session_factory() as session:
        yield session
