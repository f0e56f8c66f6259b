"""Conversation orchestration: one user turn through the completion provider."""

from collections.abc import Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chat_gateway.core.exceptions import UpstreamError
from chat_gateway.models.conversation import Conversation
from chat_gateway.models.message import Message
from chat_gateway.repositories.chat_repo import ChatRepository
from chat_gateway.schemas.chat_schema import (
    TITLE_LENGTH,
    ChatMessage,
    ChatRequest,
    ChatResponse,
)
from chat_gateway.services.completion_service import CompletionProvider
from chat_gateway.services.ownership_guard import OwnershipGuard
from chat_gateway.services.reply_stream import ReplyStream

logger = structlog.get_logger()


def make_title(message: str) -> str:
    """Derive a conversation title from its first user message."""
    return message.strip()[:TITLE_LENGTH]


class ChatService:
    """Orchestrates a chat turn with durable, ordered persistence.

    Turn lifecycle: the user message is committed before the provider is
    called, then either one assistant message is saved (completed) or
    nothing more is written and the error is surfaced (failed). A failed
    turn leaves the user message in place; the caller resubmits.
    """

    def __init__(
        self,
        chat_repo: ChatRepository,
        provider: CompletionProvider,
        guard: OwnershipGuard,
        session: AsyncSession,
        session_factory: async_sessionmaker[AsyncSession],
        user_id: str,
    ) -> None:
        self._chat_repo = chat_repo
        self._provider = provider
        self._guard = guard
        self._session = session
        self._session_factory = session_factory
        self._user_id = user_id

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Run a blocking turn and return the full reply."""
        conversation, transcript = await self._begin_turn(request)

        try:
            reply = await self._provider.complete(transcript)
        except UpstreamError:
            logger.warning(
                "Chat turn failed",
                conversation_id=conversation.id,
                user_id=self._user_id,
            )
            raise

        await self._chat_repo.create_message(conversation.id, "assistant", reply)
        await self._session.commit()
        logger.info(
            "Chat turn completed",
            conversation_id=conversation.id,
            user_id=self._user_id,
            reply_length=len(reply),
        )
        return ChatResponse(reply=reply, conversation_id=conversation.id)

    async def stream_chat(self, request: ChatRequest) -> ReplyStream:
        """Start a streamed turn; the reply is persisted when the stream ends."""
        conversation, transcript = await self._begin_turn(request)
        conversation_id = conversation.id

        async def persist_reply(reply: str) -> None:
            await self.save_assistant_reply(conversation_id, reply)

        return ReplyStream(
            conversation_id=conversation_id,
            chunks=self._provider.stream(transcript),
            on_complete=persist_reply,
        )

    async def save_assistant_reply(self, conversation_id: str, reply: str) -> None:
        """Persist a streamed reply in its own session.

        The request session may already be closed by the time a stream ends.
        """
        async with self._session_factory() as session:
            repo = ChatRepository(session)
            await repo.create_message(conversation_id, "assistant", reply)
            await session.commit()
        logger.info(
            "Streamed chat turn completed",
            conversation_id=conversation_id,
            user_id=self._user_id,
            reply_length=len(reply),
        )

    async def _begin_turn(
        self, request: ChatRequest
    ) -> tuple[Conversation, list[ChatMessage]]:
        """Resolve the conversation, commit the user turn, build the transcript."""
        self._provider.ensure_configured()

        conversation_id = request.conversation_key
        if conversation_id is None:
            conversation = await self._chat_repo.create_conversation(
                user_id=self._user_id,
                title=make_title(request.first_user_message),
            )
            is_new = True
        else:
            conversation = await self._guard.check(self._user_id, conversation_id)
            is_new = False

        await self._save_user_turn(conversation.id, request, is_new)
        await self._session.commit()

        if request.messages is not None:
            transcript = list(request.messages)
        else:
            transcript = await self._load_transcript(conversation.id)

        logger.info(
            "Chat turn started",
            conversation_id=conversation.id,
            user_id=self._user_id,
            new_conversation=is_new,
            history_length=len(transcript),
        )
        return conversation, transcript

    async def _save_user_turn(
        self, conversation_id: str, request: ChatRequest, is_new: bool
    ) -> None:
        if request.messages is not None and is_new:
            records = [
                Message(conversation_id=conversation_id, role=m.role, content=m.content)
                for m in request.messages
            ]
            await self._chat_repo.create_messages_bulk(records)
            return
        await self._chat_repo.create_message(
            conversation_id, "user", request.new_user_message
        )

    async def _load_transcript(self, conversation_id: str) -> list[ChatMessage]:
        """Load stored history in creation order as provider messages."""
        stored = await self._chat_repo.find_messages_by_conversation_id(conversation_id)
        return self._to_chat_messages(stored)

    @staticmethod
    def _to_chat_messages(stored: Sequence[Message]) -> list[ChatMessage]:
        # Stored replies may exceed the request length limit, so skip validation.
        return [
            ChatMessage.model_construct(role=msg.role, content=msg.content)
            for msg in stored
            if msg.role in ("user", "assistant", "system")
        ]
