"""Authentication endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from chat_gateway.core.config import settings
from chat_gateway.core.exceptions import AuthenticationError
from chat_gateway.core.limiter import limiter
from chat_gateway.dependencies import (
    CurrentUser,
    get_auth_service,
    get_current_user,
    get_session_manager,
    get_user_repository,
)
from chat_gateway.repositories.user_repo import UserRepository
from chat_gateway.schemas.auth_schema import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserResponse,
)
from chat_gateway.schemas.response_schema import ApiResponse, success_response
from chat_gateway.services.auth_service import AuthService
from chat_gateway.services.session_service import SessionManager

router = APIRouter(prefix="/api/auth", tags=["auth"])

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
SessionManagerDep = Annotated[SessionManager, Depends(get_session_manager)]


@router.post(
    "/register",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.auth.register_rate_limit)
async def register(
    request: Request,
    response: Response,
    body: RegisterRequest,
    auth_service: AuthServiceDep,
    session_manager: SessionManagerDep,
) -> dict:
    """Register a new user and start a session."""
    user, token = await auth_service.register(body)
    session_manager.set_cookie(response, token)
    return success_response(user, status=201)


@router.post("/login", response_model=ApiResponse[UserResponse])
@limiter.limit(settings.auth.login_rate_limit)
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    auth_service: AuthServiceDep,
    session_manager: SessionManagerDep,
) -> dict:
    """Authenticate and receive the session cookie."""
    user, token = await auth_service.login(body)
    session_manager.set_cookie(response, token)
    return success_response(user)


@router.post("/logout", response_model=ApiResponse[MessageResponse])
async def logout(
    response: Response,
    session_manager: SessionManagerDep,
) -> dict:
    """Clear the session cookie.

    The token itself stays valid until it expires; there is no server-side
    revocation list.
    """
    session_manager.clear_cookie(response)
    return success_response(MessageResponse(message="Successfully logged out"))


@router.get("/me", response_model=ApiResponse[UserResponse])
async def me(
    user_repo: Annotated[UserRepository, Depends(get_user_repository)],
    current_user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Return the identity bound to the session cookie."""
    user = await user_repo.find_by_id(current_user.id)
    if user is None:
        # Signed token for an identity that no longer exists.
        raise AuthenticationError
    return success_response(UserResponse.model_validate(user))
