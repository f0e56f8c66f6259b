"""Service layer for listing, reading and deleting conversations."""

import structlog

from chat_gateway.repositories.chat_repo import ChatRepository
from chat_gateway.schemas.chat_schema import MessageResponse
from chat_gateway.schemas.conversation_schema import (
    EMPTY_TITLE,
    ConversationSummary,
    DeleteConversationResponse,
)
from chat_gateway.services.ownership_guard import OwnershipGuard

logger = structlog.get_logger()


class ConversationService:
    """Conversation queries for the authenticated user."""

    def __init__(
        self, chat_repo: ChatRepository, guard: OwnershipGuard, user_id: str
    ) -> None:
        self._chat_repo = chat_repo
        self._guard = guard
        self._user_id = user_id

    async def list_conversations(self) -> list[ConversationSummary]:
        """Return the user's conversations, newest first."""
        rows = await self._chat_repo.find_conversations_by_user(self._user_id)
        return [
            ConversationSummary(
                id=row.id,
                title=row.title or EMPTY_TITLE,
                created_at=row.created_at,
            )
            for row in rows
        ]

    async def get_messages(self, conversation_id: str) -> list[MessageResponse]:
        """Retrieve all messages for a conversation owned by the current user."""
        conversation = await self._guard.check(self._user_id, conversation_id)
        messages = await self._chat_repo.find_messages_by_conversation_id(
            conversation.id
        )
        return [MessageResponse.model_validate(msg) for msg in messages]

    async def delete_conversation(
        self, conversation_id: str
    ) -> DeleteConversationResponse:
        """Delete a conversation owned by the current user, with its messages."""
        conversation = await self._guard.check(self._user_id, conversation_id)
        await self._chat_repo.delete_conversation(conversation.id)
        logger.info(
            "Conversation deleted",
            conversation_id=conversation.id,
            user_id=self._user_id,
        )
        return DeleteConversationResponse(id=conversation.id)
