"""In-process fixed-window rate limiter for the message-send path."""

import asyncio
import contextlib
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Self

import structlog

from chat_gateway.core.settings import RateLimitConfig

logger = structlog.get_logger()


@dataclass
class WindowState:
    """Request count for one key within its current window."""

    count: int
    window_start: float


class FixedWindowRateLimiter:
    """Per-key fixed-window counter held in process memory.

    A client may send up to ``2 * limit`` requests across a window boundary
    (``limit`` at the end of one window, ``limit`` at the start of the next).
    State is not shared between processes and resets on restart.
    """

    def __init__(
        self,
        limit: int = 5,
        window_seconds: float = 10.0,
        *,
        stale_after_seconds: float = 60.0,
        sweep_interval_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self.stale_after_seconds = stale_after_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._windows: dict[str, WindowState] = {}
        self._lock = threading.Lock()
        self._sweeper: asyncio.Task[None] | None = None

    @classmethod
    def from_config(cls, config: RateLimitConfig) -> Self:
        return cls(
            limit=config.limit,
            window_seconds=config.window_seconds,
            stale_after_seconds=config.stale_after_seconds,
            sweep_interval_seconds=config.sweep_interval_seconds,
        )

    def allow(self, key: str) -> bool:
        """Count one request for ``key`` and report whether it is within the limit."""
        now = self._clock()
        with self._lock:
            state = self._windows.get(key)
            if state is None or now - state.window_start >= self.window_seconds:
                self._windows[key] = WindowState(count=1, window_start=now)
                return True
            state.count += 1
            return state.count <= self.limit

    def count(self, key: str) -> int:
        """Requests counted for ``key`` in its current window."""
        with self._lock:
            state = self._windows.get(key)
            return state.count if state else 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def sweep(self) -> int:
        """Evict keys whose window started more than ``stale_after_seconds`` ago."""
        cutoff = self._clock() - self.stale_after_seconds
        with self._lock:
            stale = [k for k, s in self._windows.items() if s.window_start < cutoff]
            for key in stale:
                del self._windows[key]
        return len(stale)

    async def _run_sweeper(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            evicted = self.sweep()
            if evicted:
                logger.debug("Rate limiter sweep", evicted=evicted, tracked=len(self))

    def start(self) -> None:
        """Start the periodic eviction task on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._run_sweeper())

    async def stop(self) -> None:
        """Cancel the eviction task and wait for it to finish."""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweeper
        self._sweeper = None

    @property
    def running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()
