"""Signal-based transcription bus."""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import Any

from blinker import Signal

from livecanvas.channels.events import TranscriptionEvent

EventHandler = Callable[[TranscriptionEvent], Coroutine[Any, Any, None]]


class TranscriptBus:
    """In-process transcription bus backed by a blinker signal."""

    def __init__(self) -> None:
        self._events = Signal("livecanvas.transcription")

    async def publish(self, event: TranscriptionEvent) -> None:
        await self._events.send_async(self, event=event)

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        async def _receiver(sender: Any, *, event: TranscriptionEvent) -> None:
            await handler(event)

        self._events.connect(_receiver, weak=False)
        return lambda: self._events.disconnect(_receiver)

    @property
    def receiver_count(self) -> int:
        return len(self._events.receivers)
