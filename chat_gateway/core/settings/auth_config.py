"""Session token and cookie configuration."""

from pydantic import BaseModel, SecretStr


class AuthConfig(BaseModel, frozen=True):
    """Signed session cookie settings."""

    secret_key: SecretStr
    algorithm: str
    session_ttl_hours: int
    cookie_name: str
    secure_cookies: bool
    login_rate_limit: str
    register_rate_limit: str

    @property
    def session_ttl_seconds(self) -> int:
        """Session lifetime in seconds, used for the cookie Max-Age."""
        return self.session_ttl_hours * 3600
