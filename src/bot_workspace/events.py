"""In-memory per-invocation event pub/sub for workspace observers."""

from __future__ import annotations

import asyncio
import time
from typing import Any

# Event type constants
EVENT_SUBMITTED = "submitted"
EVENT_STATUS = "status"
EVENT_SUCCEEDED = "succeeded"
EVENT_FAILED = "failed"
EVENT_DISCARDED = "discarded"
_TERMINAL_EVENTS = frozenset({EVENT_SUCCEEDED, EVENT_FAILED, EVENT_DISCARDED})


class EventBus:
    """Broadcasts invocation events to subscriber queues.

    Each invocation has its own event history. Late subscribers receive the
    history before live events.
    """

    def __init__(self, max_queue: int = 100) -> None:
        self._events: dict[int, list[dict[str, Any]]] = {}
        self._subscribers: dict[int, list[asyncio.Queue[dict[str, Any]]]] = {}
        self._max_queue = max_queue

    def emit(self, invocation_id: int, event: dict[str, Any]) -> dict[str, Any]:
        """Emit an event for an invocation.

        Stamps the event with invocation_id and timestamp, appends it to the
        history and pushes it to every subscriber without blocking.
        """
        event = {**event, "invocation_id": invocation_id, "timestamp": time.time()}
        self._events.setdefault(invocation_id, []).append(event)

        for queue in self._subscribers.get(invocation_id, []):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                pass  # Slow subscriber; history still has it
        return event

    def subscribe(self, invocation_id: int) -> asyncio.Queue[dict[str, Any]]:
        """Subscribe to an invocation; the queue starts with its history."""
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=self._max_queue)
        for event in self._events.get(invocation_id, []):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                break
        self._subscribers.setdefault(invocation_id, []).append(queue)
        return queue

    def unsubscribe(self, invocation_id: int, queue: asyncio.Queue[dict[str, Any]]) -> None:
        """Remove a subscriber queue. Idempotent."""
        try:
            self._subscribers.get(invocation_id, []).remove(queue)
        except ValueError:
            pass

    def history(self, invocation_id: int) -> list[dict[str, Any]]:
        return list(self._events.get(invocation_id, []))

    def has_terminal_event(self, invocation_id: int) -> bool:
        return any(
            event.get("event") in _TERMINAL_EVENTS
            for event in self._events.get(invocation_id, [])
        )

    def forget(self, invocation_id: int) -> None:
        """Drop history and subscribers for an invocation."""
        self._events.pop(invocation_id, None)
        self._subscribers.pop(invocation_id, None)
