"""Tests for ReplyStream."""

import asyncio
from collections.abc import AsyncIterator

from chat_gateway.core.exceptions import UpstreamError
from chat_gateway.schemas.chat_schema import StreamEvent
from chat_gateway.services.reply_stream import ReplyStream


async def _chunks(*parts: str, fail: bool = False) -> AsyncIterator[str]:
    for part in parts:
        await asyncio.sleep(0)
        yield part
    if fail:
        raise UpstreamError


class Recorder:
    def __init__(self, fail: bool = False) -> None:
        self.replies: list[str] = []
        self.fail = fail

    async def __call__(self, reply: str) -> None:
        if self.fail:
            raise RuntimeError("database unavailable")
        self.replies.append(reply)


async def _collect(stream: ReplyStream) -> list[StreamEvent]:
    return [event async for event in stream.events()]


class TestReplyStream:
    async def test_event_order_and_persistence(self) -> None:
        recorder = Recorder()
        stream = ReplyStream("conv-1", _chunks("Hel", "lo"), recorder)

        events = await _collect(stream)

        assert [(e.event, e.data) for e in events] == [
            ("conversation", "conv-1"),
            ("token", "Hel"),
            ("token", "lo"),
            ("done", "conv-1"),
        ]
        assert recorder.replies == ["Hello"]

    async def test_empty_stream_is_error(self) -> None:
        recorder = Recorder()
        events = await _collect(ReplyStream("conv-1", _chunks(), recorder))

        assert events[-1].event == "error"
        assert recorder.replies == []

    async def test_provider_failure_mid_stream(self) -> None:
        recorder = Recorder()
        stream = ReplyStream("conv-1", _chunks("partial", fail=True), recorder)

        events = await _collect(stream)

        assert [e.event for e in events] == ["conversation", "token", "error"]
        assert events[-1].data == "Failed to generate a reply"
        assert recorder.replies == []

    async def test_persistence_failure_reported(self) -> None:
        stream = ReplyStream("conv-1", _chunks("hi"), Recorder(fail=True))

        events = await _collect(stream)

        assert events[-1] == StreamEvent(event="error", data="Failed to save the reply")

    async def test_client_disconnect_still_persists(self) -> None:
        gate = asyncio.Event()

        async def slow_chunks() -> AsyncIterator[str]:
            yield "first "
            await gate.wait()
            yield "second"

        recorder = Recorder()
        stream = ReplyStream("conv-1", slow_chunks(), recorder)

        reader = stream.events()
        assert (await reader.__anext__()).event == "conversation"
        assert (await reader.__anext__()).data == "first "
        await reader.aclose()

        gate.set()
        await stream.wait_finalized()

        assert stream.finalized
        assert recorder.replies == ["first second"]

    async def test_persists_exactly_once(self) -> None:
        recorder = Recorder()
        stream = ReplyStream("conv-1", _chunks("a", "b"), recorder)

        await _collect(stream)
        await stream.wait_finalized()
        await stream.wait_finalized()

        assert recorder.replies == ["ab"]
