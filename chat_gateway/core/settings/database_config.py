"""Database connection configuration."""

from typing import Any

from pydantic import BaseModel, SecretStr


class DatabaseConfig(BaseModel, frozen=True):
    """Database connection settings."""

    url: SecretStr

    @property
    def is_sqlite(self) -> bool:
        return self.url.get_secret_value().startswith("sqlite")

    @property
    def async_url(self) -> str:
        """DB URL with charset for MySQL."""
        base = self.url.get_secret_value()
        if self.is_sqlite or "?" in base:
            return base
        return f"{base}?charset=utf8mb4"

    @property
    def engine_options(self) -> dict[str, Any]:
        """Pool options for create_async_engine; SQLite uses its default pool."""
        if self.is_sqlite:
            return {}
        return {
            "pool_size": 10,
            "max_overflow": 20,
            "pool_recycle": 3600,
            "pool_pre_ping": True,
        }
