"""Chat rate limiter configuration."""

from pydantic import BaseModel


class RateLimitConfig(BaseModel, frozen=True):
    """Fixed-window limiter settings for the message-send path."""

    limit: int
    window_seconds: float
    stale_after_seconds: float
    sweep_interval_seconds: float
