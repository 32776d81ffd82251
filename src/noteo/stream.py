"""Plumbing for the note pipeline: channels, cancellation and error draining.

Every pipeline stage is one asyncio task started with :meth:`Context.spawn`.
A stage owns its output channels: they are closed exactly once, when the
stage's task finishes for any reason (input exhausted, error, cancellation),
so consumers never wait on a channel nobody will write to again.

Usage::

    async with Context(timeout=5) as ctx:
        notes, walk_errors = repo.notes(ctx)
        filtered, filter_errors = filter_notes(ctx, notes, tag("todo"))
        drains = drain_errors(ctx, walk_errors, filter_errors)
        async for note in filtered:
            ...
        await asyncio.gather(*drains)
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, AsyncIterator, Coroutine, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChannelClosed(Exception):
    """Raised by :meth:`Channel.receive` once a channel is closed and empty,
    and by :meth:`Channel.send` on a closed channel."""


class ChannelFull(Exception):
    """Raised by :meth:`Channel.send_nowait` when the buffer is full."""


class Channel(Generic[T]):
    """Bounded single-loop queue that can be closed by its producer."""

    def __init__(self, capacity: int = 1) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._items: deque[T] = deque()
        self._closed = False
        self._readable = asyncio.Event()
        self._writable = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, item: T) -> None:
        while len(self._items) >= self._capacity and not self._closed:
            self._writable.clear()
            await self._writable.wait()
        if self._closed:
            raise ChannelClosed("send on closed channel")
        self._items.append(item)
        self._readable.set()

    def send_nowait(self, item: T) -> None:
        """Buffer *item* without waiting; the channel must have room."""
        if self._closed:
            raise ChannelClosed("send on closed channel")
        if len(self._items) >= self._capacity:
            raise ChannelFull(f"channel holds {self._capacity} pending items")
        self._items.append(item)
        self._readable.set()

    async def receive(self) -> T:
        while not self._items and not self._closed:
            self._readable.clear()
            await self._readable.wait()
        if not self._items:
            raise ChannelClosed("channel closed")
        item = self._items.popleft()
        self._writable.set()
        return item

    def close(self) -> None:
        """Idempotent. Buffered items can still be received."""
        self._closed = True
        self._readable.set()
        self._writable.set()

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        try:
            return await self.receive()
        except ChannelClosed:
            raise StopAsyncIteration from None

    async def collect(self) -> list[T]:
        return [item async for item in self]


class Context:
    """Cancellation scope shared by the stages of one pipeline.

    Cancelling the context (explicitly or when *timeout* seconds elapse)
    cancels every task it spawned. Must be created inside a running loop.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._cancelled = False
        self._done = asyncio.Event()
        self._tasks: set[asyncio.Task[Any]] = set()
        self._timer: asyncio.TimerHandle | None = None
        if timeout is not None:
            self._timer = asyncio.get_running_loop().call_later(timeout, self.cancel)

    async def __aenter__(self) -> "Context":
        return self

    async def __aexit__(self, *_: object) -> None:
        self.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def wait(self) -> None:
        """Block until the context is cancelled."""
        await self._done.wait()

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._done.set()
        if self._timer is not None:
            self._timer.cancel()
        for task in list(self._tasks):
            task.cancel()

    def spawn(self, coro: Coroutine[Any, Any, Any], *outputs: Channel[Any]) -> asyncio.Task[Any]:
        """Run *coro* as a stage task; close *outputs* when it finishes."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)

        def finished(done: asyncio.Task[Any]) -> None:
            self._tasks.discard(done)
            for channel in outputs:
                channel.close()
            if not done.cancelled() and done.exception() is not None:
                logger.error("pipeline stage crashed", exc_info=done.exception())

        task.add_done_callback(finished)
        if self._cancelled:
            task.cancel()
        return task


async def pipe(source: Channel[T], sink: Channel[T]) -> None:
    """Forward everything from *source* to *sink* (without closing *sink*)."""
    async for item in source:
        await sink.send(item)


async def _log_errors(errors: Channel[BaseException]) -> None:
    async for error in errors:
        logger.warning("%s", error)


def drain_errors(ctx: Context, *channels: Channel[BaseException]) -> list[asyncio.Task[Any]]:
    """Log every error arriving on *channels*; the tasks end with the channels."""
    return [ctx.spawn(_log_errors(channel)) for channel in channels]
