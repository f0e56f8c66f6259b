"""Completion provider adapter over LangChain chat models."""

from collections.abc import AsyncIterator, Sequence
from typing import Any

import structlog
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from chat_gateway.core.exceptions import MisconfiguredError, UpstreamError
from chat_gateway.core.settings import LLMConfig
from chat_gateway.schemas.chat_schema import ChatMessage

logger = structlog.get_logger()


def build_chat_model(config: LLMConfig) -> BaseChatModel:
    """Create the chat model for the configured provider."""
    match config.provider:
        case "openai":
            return ChatOpenAI(
                model=config.model,
                api_key=config.openai_api_key,
                temperature=config.temperature,
                max_tokens=config.max_tokens,  # type: ignore[call-arg]
            )
        case "anthropic":
            return ChatAnthropic(  # type: ignore[call-arg]
                model_name=config.model,
                api_key=config.anthropic_api_key,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
            )
        case _:
            raise ValueError(f"Unsupported LLM provider: {config.provider}")


def to_langchain_messages(messages: Sequence[ChatMessage]) -> list[BaseMessage]:
    """Map transcript roles onto LangChain message types."""
    converted: list[BaseMessage] = []
    for msg in messages:
        if msg.role == "user":
            converted.append(HumanMessage(content=msg.content))
        elif msg.role == "assistant":
            converted.append(AIMessage(content=msg.content))
        elif msg.role == "system":
            converted.append(SystemMessage(content=msg.content))
    return converted


def content_text(content: Any) -> str:
    """Flatten message content (plain string or content blocks) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return ""


class CompletionProvider:
    """Request/response and streaming access to the language model.

    The model is built on first use so that a missing API key surfaces as
    ``MisconfiguredError`` on the call rather than at import time.
    """

    def __init__(self, config: LLMConfig, model: BaseChatModel | None = None) -> None:
        self._config = config
        self._model = model

    @property
    def is_configured(self) -> bool:
        return self._model is not None or self._config.is_configured

    def ensure_configured(self) -> None:
        """Raise MisconfiguredError when no credential is available."""
        if not self.is_configured:
            logger.error(
                "Missing completion provider credential",
                provider=self._config.provider,
            )
            raise MisconfiguredError

    def _chat_model(self) -> BaseChatModel:
        self.ensure_configured()
        if self._model is None:
            self._model = build_chat_model(self._config)
        return self._model

    async def complete(self, messages: Sequence[ChatMessage]) -> str:
        """Return the full reply for an ordered transcript."""
        model = self._chat_model()
        try:
            response = await model.ainvoke(to_langchain_messages(messages))
        except Exception as exc:
            logger.exception(
                "Completion provider call failed",
                provider=self._config.provider,
                error=str(exc),
            )
            raise UpstreamError from exc

        reply = content_text(response.content)
        if not reply:
            logger.error("Completion provider returned an empty reply")
            raise UpstreamError
        return reply

    async def stream(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        """Yield reply text chunks as the provider produces them."""
        model = self._chat_model()
        try:
            async for chunk in model.astream(to_langchain_messages(messages)):
                text = content_text(chunk.content)
                if text:
                    yield text
        except Exception as exc:
            logger.exception(
                "Completion provider stream failed",
                provider=self._config.provider,
                error=str(exc),
            )
            raise UpstreamError from exc
