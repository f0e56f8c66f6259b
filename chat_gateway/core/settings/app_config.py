"""Application environment configuration."""

from typing import Literal

from pydantic import BaseModel, field_validator

Environment = Literal["development", "staging", "production"]


class AppConfig(BaseModel, frozen=True):
    """Environment name, debug flag and log output settings."""

    name: str
    env: Environment
    debug: bool
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper() or "INFO"

    @property
    def is_development(self) -> bool:
        return self.env == "development"

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def json_logs(self) -> bool:
        """Render logs as JSON lines everywhere except local development."""
        return not self.is_development
