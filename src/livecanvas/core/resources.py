"""Per-session resources owned by the controller."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from dataclasses import dataclass, field

from loguru import logger

from livecanvas.channels.bus import TranscriptBus
from livecanvas.channels.subscription import ChannelSubscription


@dataclass
class SessionResources:
    """Subscription, consumer task and safety timer of one live session."""

    channel_id: str
    subscription: ChannelSubscription
    consumer: asyncio.Task[None] | None = None
    generation_timer: asyncio.TimerHandle | None = None
    released: bool = field(default=False, init=False)

    @classmethod
    def acquire(cls, bus: TranscriptBus, channel_id: str) -> SessionResources:
        subscription = ChannelSubscription(bus, channel_id)
        subscription.open()
        logger.debug("resources.acquire channel={}", channel_id)
        return cls(channel_id=channel_id, subscription=subscription)

    def cancel_timer(self) -> None:
        if self.generation_timer is not None:
            self.generation_timer.cancel()
            self.generation_timer = None

    async def release(self) -> None:
        """Stop delivery first so nothing from this session lands after release."""
        if self.released:
            return
        self.released = True
        self.subscription.close()
        self.cancel_timer()
        consumer = self.consumer
        self.consumer = None
        if consumer is not None and consumer is not asyncio.current_task():
            consumer.cancel()
            with suppress(asyncio.CancelledError):
                await consumer
        logger.debug("resources.release channel={}", self.channel_id)
