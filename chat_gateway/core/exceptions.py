"""Application exception classes and handlers."""

import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

logger = structlog.get_logger()


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


# --- Authentication (401) ---


class AuthenticationError(AppException):
    """Missing, invalid or expired session."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message=message, code="UNAUTHORIZED", status_code=401)


class InvalidCredentialsError(AppException):
    """Invalid username or password."""

    def __init__(self) -> None:
        super().__init__(
            message="Invalid credentials",
            code="INVALID_CREDENTIALS",
            status_code=401,
        )


# --- Conflict (409) ---


class UserAlreadyExistsError(AppException):
    """User with this username already exists."""

    def __init__(self) -> None:
        super().__init__(
            message="Username already taken",
            code="USER_ALREADY_EXISTS",
            status_code=409,
        )


# --- Not Found (404) ---


class ConversationNotFoundError(AppException):
    """Conversation is absent or owned by another user.

    Both cases share one message and code so callers cannot probe for
    other users' conversation ids.
    """

    def __init__(self) -> None:
        super().__init__(
            message="Conversation not found",
            code="CONVERSATION_NOT_FOUND",
            status_code=404,
        )


# --- Rate Limit (429) ---


class RateLimitedError(AppException):
    """Too many chat messages from one client within the window."""

    def __init__(self) -> None:
        super().__init__(
            message="Too many requests",
            code="RATE_LIMIT_EXCEEDED",
            status_code=429,
        )


# --- Server side (500) ---


class UpstreamError(AppException):
    """Completion provider failed or returned an unusable reply."""

    def __init__(self) -> None:
        super().__init__(
            message="Failed to generate a reply",
            code="UPSTREAM_FAILURE",
            status_code=500,
        )


class MisconfiguredError(AppException):
    """A required credential is missing from the process configuration."""

    def __init__(self) -> None:
        super().__init__(
            message="Service misconfigured",
            code="SERVICE_MISCONFIGURED",
            status_code=500,
        )


# --- Exception Handlers ---


def error_body(status: int, message: str, code: str) -> dict:
    """Build the error payload shared by handlers and middleware."""
    return {"status": status, "message": message, "code": code}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Central exception handler for AppException."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.message, exc.code),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation errors naming the offending field."""
    message = "Invalid request"
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        msg = first.get("msg", "Invalid value")
        message = f"{field}: {msg}" if field else msg
    return JSONResponse(
        status_code=422,
        content=error_body(422, message, "VALIDATION_ERROR"),
    )


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Custom handler for slowapi rate limit exceeded errors."""
    logger.warning(
        "Auth rate limit exceeded",
        path=request.url.path,
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content=error_body(429, "Too many requests", "RATE_LIMIT_EXCEEDED"),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler; detail stays in the server log."""
    logger.exception("Unhandled error", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body(500, "Internal Server Error", "INTERNAL_ERROR"),
    )
