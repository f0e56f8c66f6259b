"""Conversation list API schemas."""

from datetime import datetime

from pydantic import ConfigDict

from chat_gateway.schemas.response_schema import CamelModel

EMPTY_TITLE = "Empty Conversation"


class ConversationSummary(CamelModel):
    """Single conversation entry in the list response."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    title: str
    created_at: datetime


class DeleteConversationResponse(CamelModel):
    """Result of deleting a conversation."""

    model_config = ConfigDict(frozen=True)

    id: str
    deleted: bool = True
