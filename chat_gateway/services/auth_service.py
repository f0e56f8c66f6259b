"""Authentication business logic."""

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chat_gateway.core.exceptions import InvalidCredentialsError, UserAlreadyExistsError
from chat_gateway.core.security import DUMMY_HASH, hash_password, verify_password
from chat_gateway.repositories.user_repo import UserRepository
from chat_gateway.schemas.auth_schema import LoginRequest, RegisterRequest, UserResponse
from chat_gateway.services.session_service import SessionManager

logger = structlog.get_logger()


class AuthService:
    """Orchestrates registration and login, minting session tokens."""

    def __init__(
        self,
        user_repo: UserRepository,
        session_manager: SessionManager,
        session: AsyncSession,
    ) -> None:
        self._user_repo = user_repo
        self._session_manager = session_manager
        self._session = session

    async def register(self, request: RegisterRequest) -> tuple[UserResponse, str]:
        """Register a new user and return it with a session token."""
        if await self._user_repo.exists_by_username(request.username):
            raise UserAlreadyExistsError

        hashed = await hash_password(request.password)
        try:
            user = await self._user_repo.create(
                username=request.username,
                hashed_password=hashed,
            )
            await self._session.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration of the same name.
            await self._session.rollback()
            raise UserAlreadyExistsError from exc

        logger.info("User registered", username=user.username, user_id=user.id)
        return UserResponse.model_validate(user), self._session_manager.issue(user.id)

    async def login(self, request: LoginRequest) -> tuple[UserResponse, str]:
        """Authenticate a user and return it with a session token."""
        user = await self._user_repo.find_by_username(request.username)

        if user is None:
            await verify_password(request.password, DUMMY_HASH)
            logger.warning("Login failed", username=request.username, reason="unknown")
            raise InvalidCredentialsError

        if not await verify_password(request.password, user.hashed_password):
            logger.warning("Login failed", username=request.username, reason="password")
            raise InvalidCredentialsError

        logger.info("User logged in", username=user.username, user_id=user.id)
        return UserResponse.model_validate(user), self._session_manager.issue(user.id)
