"""Chat API router: send a message, read a conversation transcript."""

import json
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from chat_gateway.dependencies import (
    enforce_chat_rate_limit,
    get_chat_service,
    get_conversation_service,
)
from chat_gateway.schemas.chat_schema import ChatRequest, ChatResponse, MessageResponse
from chat_gateway.schemas.response_schema import ApiResponse, success_response
from chat_gateway.services.chat_service import ChatService
from chat_gateway.services.conversation_service import ConversationService
from chat_gateway.services.reply_stream import ReplyStream

router = APIRouter(prefix="/api/chat", tags=["chat"])

ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
ConversationServiceDep = Annotated[
    ConversationService, Depends(get_conversation_service)
]

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def event_generator(stream: ReplyStream) -> AsyncGenerator[str, None]:
    """Render ReplyStream events as Server-Sent Events."""
    async for event in stream.events():
        yield f"data: {json.dumps(event.model_dump())}\n\n"


@router.get("", response_model=ApiResponse[list[MessageResponse]])
async def get_messages(
    service: ConversationServiceDep,
    conversation_id: str = Query(..., alias="conversationId", min_length=1),
) -> dict:
    """Return the conversation's messages in chronological order."""
    result = await service.get_messages(conversation_id)
    return success_response(result)


@router.post(
    "",
    response_model=ApiResponse[ChatResponse],
    dependencies=[Depends(enforce_chat_rate_limit)],
    responses={200: {"content": {"text/event-stream": {}}}},
)
async def chat(
    request: ChatRequest,
    chat_service: ChatServiceDep,
) -> dict | StreamingResponse:
    """Send a message and return the reply, streamed when requested."""
    if request.wants_stream:
        stream = await chat_service.stream_chat(request)
        return StreamingResponse(
            event_generator(stream),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )
    result = await chat_service.chat(request)
    return success_response(result)
