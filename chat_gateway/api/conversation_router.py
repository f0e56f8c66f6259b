"""Conversation list API router."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from chat_gateway.dependencies import get_conversation_service
from chat_gateway.schemas.conversation_schema import (
    ConversationSummary,
    DeleteConversationResponse,
)
from chat_gateway.schemas.response_schema import ApiResponse, success_response
from chat_gateway.services.conversation_service import ConversationService

router = APIRouter(prefix="/api/conversations", tags=["conversations"])

ConversationServiceDep = Annotated[
    ConversationService, Depends(get_conversation_service)
]


@router.get("", response_model=ApiResponse[list[ConversationSummary]])
async def list_conversations(service: ConversationServiceDep) -> dict:
    """List the current user's conversations, newest first."""
    result = await service.list_conversations()
    return success_response(result)


@router.delete("", response_model=ApiResponse[DeleteConversationResponse])
async def delete_conversation(
    service: ConversationServiceDep,
    conversation_id: str = Query(..., alias="id", min_length=1),
) -> dict:
    """Delete a conversation and all of its messages."""
    result = await service.delete_conversation(conversation_id)
    return success_response(result, message="Conversation deleted")
