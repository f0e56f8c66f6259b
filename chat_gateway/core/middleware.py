"""ASGI authentication middleware."""

import json

import structlog
from starlette.requests import HTTPConnection
from starlette.responses import RedirectResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from chat_gateway.core.config import settings
from chat_gateway.core.exceptions import error_body
from chat_gateway.services.session_service import SessionManager

logger = structlog.get_logger()

LOGIN_PATH = "/login"

PUBLIC_PATHS: set[str] = {
    "/health",
    "/favicon.ico",
    LOGIN_PATH,
    "/api/auth/register",
    "/api/auth/login",
    "/api/auth/logout",
}

PUBLIC_PREFIXES: tuple[str, ...] = ("/static/",)

# Interactive docs and the schema are public only when expose_docs is set.
DOCS_PATHS: set[str] = {"/docs", "/docs/oauth2-redirect", "/redoc", "/openapi.json"}


class AuthMiddleware:
    """Pure ASGI middleware for session cookie validation (SSE-compatible).

    Verified requests get ``scope["state"]["user_id"]``; handlers read it via
    ``get_current_user`` and never inspect the cookie themselves.
    """

    def __init__(
        self,
        app: ASGIApp,
        session_manager: SessionManager | None = None,
        expose_docs: bool | None = None,
    ) -> None:
        self.app = app
        self.sessions = session_manager or SessionManager(settings.auth)
        if expose_docs is None:
            expose_docs = settings.app.is_development
        self.public_paths = PUBLIC_PATHS | DOCS_PATHS if expose_docs else PUBLIC_PATHS

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "")
        if method == "OPTIONS":
            await self.app(scope, receive, send)
            return

        path = scope["path"]
        normalized = path.rstrip("/") or "/"
        if normalized in self.public_paths or path.startswith(PUBLIC_PREFIXES):
            await self.app(scope, receive, send)
            return

        token = HTTPConnection(scope).cookies.get(self.sessions.cookie_name)
        user_id = self.sessions.verify(token)

        if user_id is None:
            if path.startswith("/api/"):
                await self._send_error(send, 401, "UNAUTHORIZED", "Not authenticated")
            else:
                response = RedirectResponse(url=LOGIN_PATH, status_code=307)
                await response(scope, receive, send)
            return

        scope.setdefault("state", {})
        scope["state"]["user_id"] = user_id
        structlog.contextvars.bind_contextvars(user_id=user_id)
        try:
            await self.app(scope, receive, send)
        finally:
            structlog.contextvars.unbind_contextvars("user_id")

    @staticmethod
    async def _send_error(send: Send, status: int, code: str, message: str) -> None:
        """Send a JSON error response directly."""
        body = json.dumps(error_body(status, message, code)).encode()

        await send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": [
                    [b"content-type", b"application/json"],
                    [b"content-length", str(len(body)).encode()],
                ],
            }
        )
        await send({"type": "http.response.body", "body": body})
