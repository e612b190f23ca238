"""Closable bounded asyncio channel shared by producers and consumers."""

from __future__ import annotations

import asyncio
from typing import Generic, TypeVar

from stresstester._internal.errors import ChannelClosedError

T = TypeVar("T")

# Placed after the last item on close; re-queued by whichever consumer
# takes it so that every other consumer also wakes up and sees the end.
_END = object()


class Channel(Generic[T]):
    """Bounded FIFO that can be closed, like a buffered Go channel.

    Any number of tasks may put and receive. After :meth:`close`, pending
    items are still delivered in order; once drained, every receiver gets
    ``ChannelClosedError`` (or a clean end of ``async for``).

    Attributes:
        capacity: Maximum number of items buffered at once.
    """

    def __init__(self, capacity: int) -> None:
        """Initialize the channel.

        Args:
            capacity: Maximum number of buffered items. Must be >= 1.

        Raises:
            ValueError: If capacity is less than 1.
        """
        if capacity < 1:
            msg = f"capacity must be >= 1, got: {capacity}"
            raise ValueError(msg)
        self.capacity = capacity
        # One extra slot so the end marker always fits.
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=capacity + 1)
        self._closed = False

    @property
    def closed(self) -> bool:
        """Return True once :meth:`close` has been called."""
        return self._closed

    def __len__(self) -> int:
        """Return the number of items waiting to be received."""
        size = self._queue.qsize()
        return size - 1 if self._closed and size > 0 else size

    def put_nowait(self, item: T) -> None:
        """Enqueue an item without waiting.

        Args:
            item: The item to enqueue.

        Raises:
            ChannelClosedError: If the channel is closed.
            asyncio.QueueFull: If the channel already holds ``capacity`` items.
        """
        if self._closed:
            msg = "cannot put into a closed channel"
            raise ChannelClosedError(msg)
        if self._queue.qsize() >= self.capacity:
            raise asyncio.QueueFull
        self._queue.put_nowait(item)

    def close(self) -> None:
        """Close the channel. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_END)

    async def receive(self) -> T:
        """Wait for and return the next item.

        Returns:
            The oldest buffered item.

        Raises:
            ChannelClosedError: If the channel is closed and drained.
        """
        item = await self._queue.get()
        if item is _END:
            self._queue.put_nowait(_END)
            msg = "channel is closed and drained"
            raise ChannelClosedError(msg)
        return item  # type: ignore[return-value]

    def __aiter__(self) -> Channel[T]:
        return self

    async def __anext__(self) -> T:
        try:
            return await self.receive()
        except ChannelClosedError:
            raise StopAsyncIteration from None
