"""Elapsed-time status tiers shown while a bot call is outstanding.

The backend reports no progress, so the tier is derived purely from wall-clock
time since submission. Tiers are qualitative; no percentages are ever claimed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class StatusTier(str, Enum):
    """User-facing wait stages, in the order they are reached."""

    PROCESSING = "processing"
    INITIALIZING = "initializing"
    WAKING = "waking"
    EXTENDED_WAIT = "extended-wait"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)


_TIER_ORDER = list(StatusTier)

# (lower bound in seconds, tier), highest first
TIER_THRESHOLDS: tuple[tuple[float, StatusTier], ...] = (
    (45.0, StatusTier.EXTENDED_WAIT),
    (30.0, StatusTier.WAKING),
    (15.0, StatusTier.INITIALIZING),
    (0.0, StatusTier.PROCESSING),
)


@dataclass(frozen=True)
class StatusMessage:
    """Copy shown for a tier."""

    headline: str
    detail: str | None = None
    note: str | None = None


STATUS_MESSAGES: dict[StatusTier, StatusMessage] = {
    StatusTier.PROCESSING: StatusMessage("Processing your request"),
    StatusTier.INITIALIZING: StatusMessage("Initializing the advanced models"),
    StatusTier.WAKING: StatusMessage(
        "Waking up the AI server",
        detail=(
            "The server may have been idle and is starting up. "
            "This can take up to a minute."
        ),
    ),
    StatusTier.EXTENDED_WAIT: StatusMessage(
        "Still working on it",
        detail="The server is almost ready. Thanks for your patience.",
        note="Once the server is warm, subsequent requests will be much faster.",
    ),
}


def tier_for_elapsed(elapsed_seconds: float) -> StatusTier:
    """Map elapsed seconds since submission to a status tier."""
    for lower_bound, tier in TIER_THRESHOLDS:
        if elapsed_seconds >= lower_bound:
            return tier
    return StatusTier.PROCESSING


def message_for(tier: StatusTier) -> StatusMessage:
    return STATUS_MESSAGES[tier]


StatusCallback = Callable[[StatusTier, int], None]


class StatusDriver:
    """Re-evaluates the status tier on a fixed tick while a call is in flight.

    One driver belongs to exactly one invocation. After `cancel()` it never
    ticks or reports again, even if a tick was already scheduled.
    """

    def __init__(
        self,
        on_update: StatusCallback | None = None,
        tick_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the driver.

        Args:
            on_update: Called with (tier, elapsed_ms) on start and every tick
            tick_seconds: Interval between re-evaluations
            clock: Monotonic time source in seconds
        """
        self._on_update = on_update
        self._tick_seconds = tick_seconds
        self._clock = clock
        self._started_at: float | None = None
        self._task: asyncio.Task | None = None
        self._cancelled = False
        self.tier = StatusTier.PROCESSING
        self.elapsed_ms = 0

    @property
    def running(self) -> bool:
        return self._started_at is not None and not self._cancelled

    def start(self) -> None:
        """Reset to PROCESSING at zero elapsed and begin ticking.

        Must be called from a running event loop.
        """
        if self._cancelled:
            raise RuntimeError("A cancelled status driver cannot be restarted")
        if self._task is not None:
            self._task.cancel()
        self._started_at = self._clock()
        self.tier = StatusTier.PROCESSING
        self.elapsed_ms = 0
        self._notify()
        self._task = asyncio.get_running_loop().create_task(self._run())

    def tick(self) -> StatusTier:
        """Re-evaluate elapsed time and tier once."""
        if not self.running:
            return self.tier

        elapsed = max(0.0, self._clock() - self._started_at)
        self.elapsed_ms = max(self.elapsed_ms, int(elapsed * 1000))
        candidate = tier_for_elapsed(self.elapsed_ms / 1000)
        if candidate.rank > self.tier.rank:
            logger.debug(f"Status tier {self.tier.value} -> {candidate.value} at {self.elapsed_ms}ms")
            self.tier = candidate
        self._notify()
        return self.tier

    def cancel(self) -> None:
        """Stop ticking. Idempotent."""
        self._cancelled = True
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        while not self._cancelled:
            await asyncio.sleep(self._tick_seconds)
            self.tick()

    def _notify(self) -> None:
        if self._on_update is not None and not self._cancelled:
            self._on_update(self.tier, self.elapsed_ms)
