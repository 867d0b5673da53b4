"""Tests for the per-invocation EventBus."""

import pytest

from bot_workspace.events import EVENT_STATUS, EVENT_SUBMITTED, EVENT_SUCCEEDED, EventBus


@pytest.mark.asyncio
async def test_emit_stamps_event():
    bus = EventBus()
    event = bus.emit(1, {"event": EVENT_SUBMITTED})
    assert event["invocation_id"] == 1
    assert "timestamp" in event
    assert bus.history(1) == [event]


@pytest.mark.asyncio
async def test_late_subscriber_gets_history_then_live():
    bus = EventBus()
    bus.emit(1, {"event": EVENT_SUBMITTED})
    queue = bus.subscribe(1)
    bus.emit(1, {"event": EVENT_STATUS})

    assert (await queue.get())["event"] == EVENT_SUBMITTED
    assert (await queue.get())["event"] == EVENT_STATUS


@pytest.mark.asyncio
async def test_invocations_are_isolated():
    bus = EventBus()
    queue = bus.subscribe(2)
    bus.emit(1, {"event": EVENT_SUBMITTED})
    assert queue.empty()
    assert bus.history(2) == []


@pytest.mark.asyncio
async def test_full_queue_does_not_block():
    bus = EventBus(max_queue=1)
    queue = bus.subscribe(1)
    bus.emit(1, {"event": EVENT_SUBMITTED})
    bus.emit(1, {"event": EVENT_STATUS})
    assert queue.qsize() == 1
    assert len(bus.history(1)) == 2


def test_terminal_event_and_forget():
    bus = EventBus()
    bus.emit(1, {"event": EVENT_SUBMITTED})
    assert bus.has_terminal_event(1) is False
    bus.emit(1, {"event": EVENT_SUCCEEDED})
    assert bus.has_terminal_event(1) is True

    bus.forget(1)
    assert bus.history(1) == []


@pytest.mark.asyncio
async def test_unsubscribe_is_idempotent():
    bus = EventBus()
    queue = bus.subscribe(1)
    bus.unsubscribe(1, queue)
    bus.unsubscribe(1, queue)
    bus.emit(1, {"event": EVENT_SUBMITTED})
    assert queue.empty()
