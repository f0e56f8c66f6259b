"""Tests for the completion provider adapter."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import SecretStr

from chat_gateway.core.exceptions import MisconfiguredError, UpstreamError
from chat_gateway.core.settings import LLMConfig
from chat_gateway.schemas.chat_schema import ChatMessage
from chat_gateway.services.completion_service import (
    CompletionProvider,
    build_chat_model,
    content_text,
    to_langchain_messages,
)
from tests.conftest import failing_provider, fake_provider


def _config(provider: str = "openai", key: str = "") -> LLMConfig:
    return LLMConfig(
        provider=provider,  # type: ignore[arg-type]
        openai_api_key=SecretStr(key if provider == "openai" else ""),
        openai_model="gpt-4o-mini",
        anthropic_api_key=SecretStr(key if provider == "anthropic" else ""),
        anthropic_model="claude-sonnet-4-20250514",
        temperature=0.7,
        max_tokens=256,
    )


TRANSCRIPT = [
    ChatMessage(role="system", content="be brief"),
    ChatMessage(role="user", content="hi"),
    ChatMessage(role="assistant", content="hello"),
    ChatMessage(role="user", content="how are you"),
]


class TestMessageMapping:
    def test_roles_map_to_langchain_types(self) -> None:
        converted = to_langchain_messages(TRANSCRIPT)
        assert [type(m) for m in converted] == [
            SystemMessage,
            HumanMessage,
            AIMessage,
            HumanMessage,
        ]
        assert converted[-1].content == "how are you"

    def test_content_text_flattens_blocks(self) -> None:
        blocks = [{"type": "text", "text": "Hel"}, {"type": "tool_use"}, "lo"]
        assert content_text(blocks) == "Hello"
        assert content_text("plain") == "plain"
        assert content_text(None) == ""


class TestBuildChatModel:
    def test_openai(self) -> None:
        model = build_chat_model(_config("openai", "sk-test"))
        assert isinstance(model, ChatOpenAI)
        assert model.model_name == "gpt-4o-mini"

    def test_anthropic(self) -> None:
        model = build_chat_model(_config("anthropic", "sk-ant-test"))
        assert isinstance(model, ChatAnthropic)
        assert model.model == "claude-sonnet-4-20250514"


class TestConfiguration:
    def test_missing_key_is_misconfigured(self) -> None:
        provider = CompletionProvider(_config())
        assert provider.is_configured is False
        with pytest.raises(MisconfiguredError):
            provider.ensure_configured()

    async def test_complete_without_key_raises(self) -> None:
        with pytest.raises(MisconfiguredError):
            await CompletionProvider(_config()).complete(TRANSCRIPT)


class TestComplete:
    async def test_returns_reply(self) -> None:
        assert await fake_provider("Fine, thanks").complete(TRANSCRIPT) == "Fine, thanks"

    async def test_passes_full_transcript(self) -> None:
        model = MagicMock(spec=BaseChatModel)
        model.ainvoke = AsyncMock(return_value=AIMessage(content="ok"))
        provider = CompletionProvider(_config(), model=model)

        await provider.complete(TRANSCRIPT)

        sent = model.ainvoke.call_args.args[0]
        assert [m.content for m in sent] == [m.content for m in TRANSCRIPT]

    async def test_provider_error_becomes_upstream_error(self) -> None:
        with pytest.raises(UpstreamError):
            await failing_provider().complete(TRANSCRIPT)

    async def test_empty_reply_is_upstream_error(self) -> None:
        with pytest.raises(UpstreamError):
            await fake_provider("").complete(TRANSCRIPT)


class TestStream:
    async def test_chunks_join_to_reply(self) -> None:
        provider = fake_provider("streamed reply text")
        chunks = [chunk async for chunk in provider.stream(TRANSCRIPT)]
        assert len(chunks) > 1
        assert "".join(chunks) == "streamed reply text"

    async def test_stream_error_becomes_upstream_error(self) -> None:
        with pytest.raises(UpstreamError):
            async for _ in failing_provider().stream(TRANSCRIPT):
                pass
