import asyncio

import pytest

from livecanvas.channels import ChannelSubscription, TranscriptBus, TranscriptionEvent


def _event(text: str, channel: str = "c1", *, final: bool = True) -> TranscriptionEvent:
    return TranscriptionEvent(channel_id=channel, role="agent", text=text, is_final=final)


@pytest.mark.asyncio
async def test_bus_fans_out_and_unsubscribes() -> None:
    bus = TranscriptBus()
    seen: list[str] = []

    async def _handler(event: TranscriptionEvent) -> None:
        seen.append(event.text)

    unsubscribe = bus.subscribe(_handler)
    await bus.publish(_event("one"))
    unsubscribe()
    await bus.publish(_event("two"))

    assert seen == ["one"]
    assert bus.receiver_count == 0


@pytest.mark.asyncio
async def test_subscription_filters_channel_and_keeps_order() -> None:
    bus = TranscriptBus()
    subscription = ChannelSubscription(bus, "c1")
    subscription.open()
    try:
        for text in ("a", "b", "c"):
            await bus.publish(_event(text))
        await bus.publish(_event("elsewhere", channel="c2"))

        received = []
        for _ in range(3):
            event = await subscription.next(timeout_seconds=0.1)
            assert event is not None
            received.append(event.text)
            subscription.task_done()
        assert received == ["a", "b", "c"]
        assert await subscription.next(timeout_seconds=0.01) is None
    finally:
        subscription.close()


@pytest.mark.asyncio
async def test_closed_subscription_ignores_late_events() -> None:
    bus = TranscriptBus()
    subscription = ChannelSubscription(bus, "c1")
    subscription.open()
    await bus.publish(_event("queued"))
    assert subscription.pending == 1

    subscription.close()
    await bus.publish(_event("late"))

    assert subscription.closed is True
    assert subscription.pending == 0
    assert bus.receiver_count == 0
    await asyncio.wait_for(subscription.join(), timeout=0.1)


@pytest.mark.asyncio
async def test_async_iteration_acknowledges_each_event() -> None:
    bus = TranscriptBus()
    subscription = ChannelSubscription(bus, "c1")
    subscription.open()
    received: list[str] = []

    async def _consume() -> None:
        async for event in subscription:
            received.append(event.text)

    task = asyncio.create_task(_consume())
    try:
        await bus.publish(_event("x"))
        await bus.publish(_event("y"))
        await asyncio.wait_for(subscription.join(), timeout=0.5)
        assert received == ["x", "y"]
    finally:
        subscription.close()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
