"""Relay of a streamed reply to the client with deferred persistence."""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable

import structlog

from chat_gateway.core.exceptions import UpstreamError
from chat_gateway.schemas.chat_schema import StreamEvent

logger = structlog.get_logger()

# Strong references keep pump tasks alive after the client goes away.
_pending_tasks: set[asyncio.Task[None]] = set()


class ReplyStream:
    """Consume a provider stream once, feeding two outputs.

    The pump task reads provider chunks, forwards each one to a queue for the
    client and accumulates the full text. When the provider finishes, the
    pump calls ``on_complete`` exactly once with the full reply, then emits
    ``done``. The pump never depends on the queue being read: if the client
    disconnects, the reader is cancelled and the pump still runs to the end.
    A failed or empty reply is never passed to ``on_complete``.
    """

    def __init__(
        self,
        conversation_id: str,
        chunks: AsyncIterator[str],
        on_complete: Callable[[str], Awaitable[None]],
    ) -> None:
        self.conversation_id = conversation_id
        self._chunks = chunks
        self._on_complete = on_complete
        self._queue: asyncio.Queue[StreamEvent | None] = asyncio.Queue()
        self._task = asyncio.create_task(self._pump())
        _pending_tasks.add(self._task)
        self._task.add_done_callback(_pending_tasks.discard)

    async def _pump(self) -> None:
        parts: list[str] = []
        try:
            async for chunk in self._chunks:
                parts.append(chunk)
                self._queue.put_nowait(StreamEvent(event="token", data=chunk))

            reply = "".join(parts)
            if not reply:
                logger.error(
                    "Completion provider returned an empty stream",
                    conversation_id=self.conversation_id,
                )
                raise UpstreamError

            await self._on_complete(reply)
        except UpstreamError as exc:
            self._queue.put_nowait(StreamEvent(event="error", data=exc.message))
        except Exception:
            logger.exception(
                "Failed to finalize streamed reply",
                conversation_id=self.conversation_id,
            )
            self._queue.put_nowait(
                StreamEvent(event="error", data="Failed to save the reply")
            )
        else:
            self._queue.put_nowait(
                StreamEvent(event="done", data=self.conversation_id)
            )
        finally:
            self._queue.put_nowait(None)

    async def events(self) -> AsyncIterator[StreamEvent]:
        """Yield the conversation id first, then tokens, then done or error."""
        yield StreamEvent(event="conversation", data=self.conversation_id)
        while True:
            item = await self._queue.get()
            if item is None:
                return
            yield item

    async def wait_finalized(self) -> None:
        """Wait until the provider stream and persistence have finished."""
        await asyncio.shield(self._task)

    @property
    def finalized(self) -> bool:
        return self._task.done()
