"""Application configuration using Pydantic Settings V2."""

from functools import cached_property
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from chat_gateway.core.settings import (
    AppConfig,
    AuthConfig,
    DatabaseConfig,
    LLMConfig,
    RateLimitConfig,
    ServerConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Flat fields are loaded directly from environment variables.
    Domain properties provide grouped access (e.g. settings.auth.algorithm).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # LLM Provider
    llm_provider: Literal["openai", "anthropic"] = Field(
        default="openai",
        description="LLM provider to use",
    )

    # OpenAI
    openai_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="OpenAI API key",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model name",
    )

    # Anthropic
    anthropic_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Anthropic API key",
    )
    anthropic_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Anthropic model name",
    )

    llm_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature sent to the provider",
    )
    llm_max_tokens: int = Field(
        default=1024,
        ge=1,
        le=32768,
        description="Maximum reply tokens requested from the provider",
    )

    # App
    app_name: str = Field(
        default="chat-gateway",
        description="Application name",
    )
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(
        default=True,
        description="Debug mode",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level",
    )

    # Server
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int = Field(
        default=8004,
        ge=1,
        le=65535,
        description="Server port",
    )

    # Session (JWT cookie)
    jwt_secret_key: SecretStr = Field(
        description="Secret key for session token signing",
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="Session token signing algorithm; other algorithms are rejected",
    )
    session_ttl_hours: int = Field(
        default=24,
        ge=1,
        le=720,
        description="Absolute session lifetime in hours",
    )
    session_cookie_name: str = Field(
        default="session",
        description="Name of the session cookie",
    )
    login_rate_limit: str = Field(
        default="5/minute",
        description="Login endpoint rate limit",
    )
    register_rate_limit: str = Field(
        default="3/minute",
        description="Register endpoint rate limit",
    )

    # Chat rate limiter
    chat_rate_limit: int = Field(
        default=5,
        ge=1,
        description="Messages allowed per client per window",
    )
    chat_rate_window_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Fixed window length in seconds",
    )
    rate_limit_stale_after_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Idle time after which a client's window is evicted",
    )
    rate_limit_sweep_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Interval between eviction sweeps",
    )

    # Database
    database_url: SecretStr = Field(
        description="Async database URL (mysql+aiomysql://... or sqlite+aiosqlite://...)",
    )

    # --- Domain properties ---

    @cached_property
    def llm(self) -> LLMConfig:
        """LLM provider configuration."""
        return LLMConfig(
            provider=self.llm_provider,
            openai_api_key=self.openai_api_key,
            openai_model=self.openai_model,
            anthropic_api_key=self.anthropic_api_key,
            anthropic_model=self.anthropic_model,
            temperature=self.llm_temperature,
            max_tokens=self.llm_max_tokens,
        )

    @cached_property
    def app(self) -> AppConfig:
        """Application environment configuration."""
        return AppConfig(
            name=self.app_name,
            env=self.app_env,
            debug=self.debug,
            log_level=self.log_level,
        )

    @cached_property
    def server(self) -> ServerConfig:
        """Server configuration."""
        return ServerConfig(
            host=self.host,
            port=self.port,
            reload=self.app.is_development,
        )

    @cached_property
    def auth(self) -> AuthConfig:
        """Session token and cookie configuration."""
        return AuthConfig(
            secret_key=self.jwt_secret_key,
            algorithm=self.jwt_algorithm,
            session_ttl_hours=self.session_ttl_hours,
            cookie_name=self.session_cookie_name,
            secure_cookies=self.app.is_production,
            login_rate_limit=self.login_rate_limit,
            register_rate_limit=self.register_rate_limit,
        )

    @cached_property
    def rate_limit(self) -> RateLimitConfig:
        """Chat rate limiter configuration."""
        return RateLimitConfig(
            limit=self.chat_rate_limit,
            window_seconds=self.chat_rate_window_seconds,
            stale_after_seconds=self.rate_limit_stale_after_seconds,
            sweep_interval_seconds=self.rate_limit_sweep_interval_seconds,
        )

    @cached_property
    def database(self) -> DatabaseConfig:
        """Database connection configuration."""
        return DatabaseConfig(url=self.database_url)

    # --- Convenience properties (delegate to domain configs) ---

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app.is_development


# Global settings instance
settings = Settings()
