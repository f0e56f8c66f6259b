"""Uvicorn bind configuration."""

from pydantic import BaseModel


class ServerConfig(BaseModel, frozen=True):
    """Where uvicorn listens and whether it reloads on code changes."""

    host: str
    port: int
    reload: bool = False

    @property
    def bind(self) -> str:
        return f"{self.host}:{self.port}"
