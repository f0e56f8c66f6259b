"""Signed session token issuance, verification and cookie handling."""

from datetime import UTC, datetime, timedelta

import jwt
import structlog
from starlette.responses import Response

from chat_gateway.core.settings import AuthConfig
from chat_gateway.schemas.auth_schema import SessionClaims

logger = structlog.get_logger()

REQUIRED_CLAIMS = ["sub", "iat", "exp"]


class SessionManager:
    """Stateless JWT sessions carried in an HTTP-only cookie.

    Nothing is stored server side: logout only clears the client cookie, so a
    copied token stays valid until it expires.
    """

    def __init__(self, config: AuthConfig) -> None:
        self._config = config
        self._secret = config.secret_key.get_secret_value()
        self._algorithm = config.algorithm

    @property
    def cookie_name(self) -> str:
        return self._config.cookie_name

    def issue(self, identity_id: str, now: datetime | None = None) -> str:
        """Create a signed session token with an absolute expiry."""
        issued_at = now or datetime.now(UTC)
        payload = {
            "sub": identity_id,
            "iat": issued_at,
            "exp": issued_at + timedelta(hours=self._config.session_ttl_hours),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> SessionClaims | None:
        """Return the verified claims, or None for any invalid token."""
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Session token expired")
            return None
        except jwt.InvalidTokenError as exc:
            logger.debug("Session token rejected", reason=type(exc).__name__)
            return None

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            return None
        return SessionClaims(sub=subject, iat=payload["iat"], exp=payload["exp"])

    def verify(self, token: str | None) -> str | None:
        """Return the identity id the token was issued to, or None."""
        if not token:
            return None
        claims = self.decode(token)
        return claims.sub if claims else None

    def set_cookie(self, response: Response, token: str) -> None:
        """Attach the session cookie to a response."""
        response.set_cookie(
            key=self._config.cookie_name,
            value=token,
            max_age=self._config.session_ttl_seconds,
            path="/",
            secure=self._config.secure_cookies,
            httponly=True,
            samesite="lax",
        )

    def clear_cookie(self, response: Response) -> None:
        """Remove the session cookie from the client (logout)."""
        response.delete_cookie(
            key=self._config.cookie_name,
            path="/",
            secure=self._config.secure_cookies,
            httponly=True,
            samesite="lax",
        )
