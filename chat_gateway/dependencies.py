"""Global dependencies for the application."""

from functools import lru_cache

import structlog
from fastapi import Depends, Request
from pydantic import BaseModel, ConfigDict
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chat_gateway.core.config import settings
from chat_gateway.core.database import get_async_session, get_session_factory
from chat_gateway.core.exceptions import AuthenticationError, RateLimitedError
from chat_gateway.repositories.chat_repo import ChatRepository
from chat_gateway.repositories.user_repo import UserRepository
from chat_gateway.services.auth_service import AuthService
from chat_gateway.services.chat_service import ChatService
from chat_gateway.services.completion_service import CompletionProvider
from chat_gateway.services.conversation_service import ConversationService
from chat_gateway.services.ownership_guard import OwnershipGuard
from chat_gateway.services.rate_limiter import FixedWindowRateLimiter
from chat_gateway.services.session_service import SessionManager

logger = structlog.get_logger()


# --- Shared components ---


@lru_cache
def get_completion_provider() -> CompletionProvider:
    """Get the completion provider for the configured LLM."""
    return CompletionProvider(settings.llm)


@lru_cache
def get_session_manager() -> SessionManager:
    """Get the session token manager."""
    return SessionManager(settings.auth)


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    """Get the limiter owned by the running application."""
    return request.app.state.rate_limiter


# --- Auth dependencies ---


class CurrentUser(BaseModel):
    """Authenticated user extracted from request state."""

    model_config = ConfigDict(frozen=True)

    id: str


def get_current_user(request: Request) -> CurrentUser:
    """Extract the authenticated user from middleware-populated state."""
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        raise AuthenticationError
    return CurrentUser(id=user_id)


def enforce_chat_rate_limit(
    request: Request,
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
) -> None:
    """Reject the request when its client exceeded the message-send limit."""
    key = get_remote_address(request)
    if not limiter.allow(key):
        logger.warning("Chat rate limit exceeded", client=key, limit=limiter.limit)
        raise RateLimitedError


# --- Repositories ---


def get_user_repository(
    session: AsyncSession = Depends(get_async_session),
) -> UserRepository:
    """Get UserRepository bound to the current session."""
    return UserRepository(session)


def get_chat_repository(
    session: AsyncSession = Depends(get_async_session),
) -> ChatRepository:
    """Get ChatRepository bound to the current session."""
    return ChatRepository(session)


# --- Services ---


def get_auth_service(
    user_repo: UserRepository = Depends(get_user_repository),
    session_manager: SessionManager = Depends(get_session_manager),
    session: AsyncSession = Depends(get_async_session),
) -> AuthService:
    """Get AuthService with all dependencies."""
    return AuthService(
        user_repo=user_repo,
        session_manager=session_manager,
        session=session,
    )


def get_ownership_guard(
    chat_repo: ChatRepository = Depends(get_chat_repository),
) -> OwnershipGuard:
    """Get OwnershipGuard bound to the current session."""
    return OwnershipGuard(chat_repo)


def get_conversation_service(
    chat_repo: ChatRepository = Depends(get_chat_repository),
    guard: OwnershipGuard = Depends(get_ownership_guard),
    current_user: CurrentUser = Depends(get_current_user),
) -> ConversationService:
    """Get ConversationService for the authenticated user."""
    return ConversationService(chat_repo=chat_repo, guard=guard, user_id=current_user.id)


def get_chat_service(
    chat_repo: ChatRepository = Depends(get_chat_repository),
    guard: OwnershipGuard = Depends(get_ownership_guard),
    provider: CompletionProvider = Depends(get_completion_provider),
    session: AsyncSession = Depends(get_async_session),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    current_user: CurrentUser = Depends(get_current_user),
) -> ChatService:
    """Get ChatService for the authenticated user."""
    return ChatService(
        chat_repo=chat_repo,
        provider=provider,
        guard=guard,
        session=session,
        session_factory=session_factory,
        user_id=current_user.id,
    )
