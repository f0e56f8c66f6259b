"""Authentication request/response schemas."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chat_gateway.schemas.response_schema import CamelModel


class RegisterRequest(BaseModel):
    """User registration request."""

    username: str = Field(
        min_length=3,
        max_length=50,
        pattern=r"^[A-Za-z0-9_.\-]+$",
        description="Unique login name (letters, digits, '_', '.', '-')",
    )
    password: str = Field(
        min_length=8,
        max_length=128,
        description="Password (8-128 chars, must include uppercase, lowercase, digit, special char)",
    )

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("password")
    @classmethod
    def validate_password_complexity(cls, v: str) -> str:
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one digit")
        if not re.search(r"[!@#$%^&*(),.?\":{}|<>_\-]", v):
            raise ValueError("Password must contain at least one special character")
        return v


class LoginRequest(BaseModel):
    """User login request."""

    username: str = Field(min_length=1, max_length=50, description="Login name")
    password: str = Field(min_length=1, max_length=128, description="User password")

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v


class UserResponse(CamelModel):
    """Public user representation."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    username: str
    created_at: datetime


class MessageResponse(BaseModel):
    """Simple message response."""

    model_config = ConfigDict(frozen=True)

    message: str


class SessionClaims(BaseModel):
    """Verified session token claims."""

    model_config = ConfigDict(frozen=True)

    sub: str
    iat: int
    exp: int
