"""Domain-specific configuration models."""

from chat_gateway.core.settings.app_config import AppConfig
from chat_gateway.core.settings.auth_config import AuthConfig
from chat_gateway.core.settings.database_config import DatabaseConfig
from chat_gateway.core.settings.llm_config import LLMConfig
from chat_gateway.core.settings.rate_limit_config import RateLimitConfig
from chat_gateway.core.settings.server_config import ServerConfig

__all__ = [
    "AppConfig",
    "AuthConfig",
    "DatabaseConfig",
    "LLMConfig",
    "RateLimitConfig",
    "ServerConfig",
]
