"""Chat request and response schemas."""

import uuid
from datetime import datetime
from typing import Literal, Self

from pydantic import ConfigDict, Field, field_validator, model_validator

from chat_gateway.schemas.response_schema import CamelModel

MAX_MESSAGE_LENGTH = 2000
MAX_HISTORY_MESSAGES = 100
TITLE_LENGTH = 30

Role = Literal["user", "assistant", "system"]


class ChatMessage(CamelModel):
    """Individual chat message supplied by the client."""

    role: Role
    content: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)


class ChatRequest(CamelModel):
    """Chat API request schema.

    Exactly one of ``message`` (the server loads the stored transcript) or
    ``messages`` (the client supplies the transcript, reply is streamed).
    """

    message: str | None = Field(default=None, min_length=1, max_length=MAX_MESSAGE_LENGTH)
    messages: list[ChatMessage] | None = Field(
        default=None, min_length=1, max_length=MAX_HISTORY_MESSAGES
    )
    conversation_id: uuid.UUID | None = None
    stream: bool = False

    @field_validator("message")
    @classmethod
    def reject_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Message is required")
        return v

    @model_validator(mode="after")
    def check_payload(self) -> Self:
        if (self.message is None) == (self.messages is None):
            raise ValueError("Provide exactly one of 'message' or 'messages'")
        if self.messages is not None and self.messages[-1].role != "user":
            raise ValueError("The last message must have role 'user'")
        return self

    @property
    def wants_stream(self) -> bool:
        return self.stream or self.messages is not None

    @property
    def conversation_key(self) -> str | None:
        return str(self.conversation_id) if self.conversation_id else None

    @property
    def new_user_message(self) -> str:
        """Content of the user turn this request adds."""
        if self.messages is not None:
            return self.messages[-1].content
        return self.message or ""

    @property
    def first_user_message(self) -> str:
        """Seed for the title of a newly created conversation."""
        if self.messages is not None:
            for item in self.messages:
                if item.role == "user":
                    return item.content
        return self.new_user_message


class ChatResponse(CamelModel):
    """Chat API response schema."""

    reply: str
    conversation_id: str


class MessageResponse(CamelModel):
    """Single stored message within a conversation."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    role: str
    content: str
    created_at: datetime


class StreamEvent(CamelModel):
    """Server-Sent Event for streaming responses."""

    event: Literal["conversation", "token", "done", "error"]
    data: str
