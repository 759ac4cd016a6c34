"""Broadcast channel for outcomes and error messages."""

import asyncio
from collections.abc import AsyncIterator
from typing import Generic, TypeVar

T = TypeVar("T")


class EventChannel(Generic[T]):
    """
    Fan-out channel with a bounded queue per subscriber.

    `latest` keeps the last published value for readers that poll instead of
    streaming. When a subscriber's queue is full the oldest item is dropped.
    """

    def __init__(self, maxsize: int = 100):
        self._maxsize = maxsize
        self._queues: set[asyncio.Queue[T]] = set()
        self.latest: T | None = None

    def publish(self, item: T) -> None:
        self.latest = item
        for queue in list(self._queues):
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(item)

    def clear(self) -> None:
        self.latest = None

    async def stream(self) -> AsyncIterator[T]:
        queue: asyncio.Queue[T] = asyncio.Queue(maxsize=self._maxsize)
        self._queues.add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._queues.discard(queue)
