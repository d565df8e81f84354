"""Ordered, single-consumer view of one channel on the bus."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable

from loguru import logger

from livecanvas.channels.bus import TranscriptBus
from livecanvas.channels.events import TranscriptionEvent


class ChannelSubscription:
    """Buffer the events of one channel so they are consumed strictly in order."""

    def __init__(self, bus: TranscriptBus, channel_id: str) -> None:
        self.channel_id = channel_id
        self._bus = bus
        self._queue: asyncio.Queue[TranscriptionEvent] = asyncio.Queue()
        self._unsubscribe: Callable[[], None] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def open(self) -> None:
        if self._unsubscribe is not None or self._closed:
            return
        self._unsubscribe = self._bus.subscribe(self._receive)

    def close(self) -> None:
        self._closed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            dropped += 1
        if dropped:
            logger.debug("subscription.drain channel={} dropped={}", self.channel_id, dropped)

    async def _receive(self, event: TranscriptionEvent) -> None:
        if self._closed or event.channel_id != self.channel_id:
            return
        self._queue.put_nowait(event)

    async def next(self, timeout_seconds: float | None = None) -> TranscriptionEvent | None:
        """Take the next event directly; the caller owns acknowledging it with ``task_done``."""
        if timeout_seconds is None:
            return await self._queue.get()
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout_seconds)
        except TimeoutError:
            return None

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()

    async def __aiter__(self) -> AsyncIterator[TranscriptionEvent]:
        while not self._closed:
            event = await self._queue.get()
            try:
                if self._closed:
                    return
                yield event
            finally:
                self._queue.task_done()
