"""Tenant isolation check for conversation-scoped operations."""

import structlog

from chat_gateway.core.exceptions import ConversationNotFoundError
from chat_gateway.models.conversation import Conversation
from chat_gateway.repositories.chat_repo import ChatRepository

logger = structlog.get_logger()


class OwnershipGuard:
    """Resolve a conversation only if the acting user owns it."""

    def __init__(self, chat_repo: ChatRepository) -> None:
        self._chat_repo = chat_repo

    async def check(self, user_id: str, conversation_id: str) -> Conversation:
        """Return the conversation or raise ConversationNotFoundError.

        A missing conversation and one owned by another user raise the same
        error, so the response never reveals which case applied.
        """
        conversation = await self._chat_repo.find_conversation_by_id(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError
        if conversation.user_id != user_id:
            logger.warning(
                "Cross-tenant conversation access denied",
                user_id=user_id,
                conversation_id=conversation_id,
            )
            raise ConversationNotFoundError
        return conversation
