"""Chat repository for conversation and message database operations."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from chat_gateway.models.conversation import Conversation
from chat_gateway.models.message import Message


class ChatRepository:
    """Encapsulates conversation and message database queries.

    Queries here are not scoped to a user; callers go through
    ``OwnershipGuard`` before touching a conversation.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_conversation_by_id(self, conversation_id: str) -> Conversation | None:
        """Find a conversation by its UUID."""
        result = await self._session.execute(
            select(Conversation).where(Conversation.id == conversation_id)
        )
        return result.scalar_one_or_none()

    async def create_conversation(
        self,
        user_id: str,
        title: str | None = None,
    ) -> Conversation:
        """Create a new conversation."""
        conversation = Conversation(user_id=user_id, title=title)
        self._session.add(conversation)
        await self._session.flush()
        await self._session.refresh(conversation)
        return conversation

    async def find_conversations_by_user(self, user_id: str) -> list[Conversation]:
        """List a user's conversations, newest first.

        ``created_at`` carries microseconds, so the id only breaks exact ties.
        """
        result = await self._session.execute(
            select(Conversation)
            .where(Conversation.user_id == user_id)
            .order_by(Conversation.created_at.desc(), Conversation.id.desc())
        )
        return list(result.scalars().all())

    async def find_messages_by_conversation_id(
        self, conversation_id: str
    ) -> list[Message]:
        """Retrieve all messages for a conversation in chronological order."""
        result = await self._session.execute(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
        )
        return list(result.scalars().all())

    async def create_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
    ) -> Message:
        """Append a single message."""
        message = Message(conversation_id=conversation_id, role=role, content=content)
        self._session.add(message)
        await self._session.flush()
        await self._session.refresh(message)
        return message

    async def create_messages_bulk(self, messages: list[Message]) -> None:
        """Save multiple messages in a single batch."""
        self._session.add_all(messages)
        await self._session.flush()

    async def delete_conversation(self, conversation_id: str) -> None:
        """Hard-delete a conversation and all of its messages."""
        await self._session.execute(
            delete(Message).where(Message.conversation_id == conversation_id)
        )
        await self._session.execute(
            delete(Conversation).where(Conversation.id == conversation_id)
        )
