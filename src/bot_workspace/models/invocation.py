"""Invocation request, result and lifecycle state models."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from bot_workspace.exceptions import InvocationError
from bot_workspace.status import StatusTier

FieldValue = str | int | float


class Attachment(BaseModel):
    """A single binary file sent along with an invocation."""

    filename: str
    content: bytes = Field(repr=False)
    content_type: str = "application/pdf"

    @classmethod
    def from_path(cls, path: str | Path) -> "Attachment":
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            filename=path.name,
            content=path.read_bytes(),
            content_type=content_type or "application/octet-stream",
        )

    @property
    def size(self) -> int:
        return len(self.content)


class InvocationRequest(BaseModel):
    """A validated submission, built by the schema resolver."""

    tool_id: str
    field_values: dict[str, FieldValue] = Field(default_factory=dict)
    attachment: Attachment | None = None


class InvocationResult(BaseModel):
    """Outcome of a single backend call."""

    success: bool
    tool_id: str
    result: str | None = None
    error: str | None = None
    status_code: int | None = None
    latency_ms: int = 0

    def unwrap(self) -> str:
        """Return the result text, or raise InvocationError on failure."""
        if not self.success:
            raise InvocationError(self.tool_id, self.error or "Unknown error", self.status_code)
        return self.result or ""


class InvocationPhase(str, Enum):
    """Lifecycle phase of one submission."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    AWAITING_RESULT = "awaiting_result"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_TRANSITIONS: dict[InvocationPhase, frozenset[InvocationPhase]] = {
    InvocationPhase.IDLE: frozenset({InvocationPhase.SUBMITTING}),
    InvocationPhase.SUBMITTING: frozenset(
        {InvocationPhase.AWAITING_RESULT, InvocationPhase.FAILED}
    ),
    InvocationPhase.AWAITING_RESULT: frozenset(
        {InvocationPhase.SUCCEEDED, InvocationPhase.FAILED}
    ),
    InvocationPhase.SUCCEEDED: frozenset(),
    InvocationPhase.FAILED: frozenset(),
}

TERMINAL_PHASES = frozenset({InvocationPhase.SUCCEEDED, InvocationPhase.FAILED})


@dataclass
class InvocationState:
    """State of one submission, owned by the workspace that created it.

    `invocation_id` is the workspace's submission counter at the time of
    submit; outcomes are only applied while it is still the current one.
    """

    invocation_id: int
    tool_id: str
    phase: InvocationPhase = InvocationPhase.IDLE
    tier: StatusTier = StatusTier.PROCESSING
    elapsed_ms: int = 0
    result: str | None = None
    error_reason: str | None = None
    submitted_at: datetime | None = None
    settled_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def _move(self, target: InvocationPhase) -> None:
        if target not in _TRANSITIONS[self.phase]:
            raise RuntimeError(
                f"Invocation {self.invocation_id}: illegal transition "
                f"{self.phase.value} -> {target.value}"
            )
        self.phase = target

    def mark_submitting(self) -> None:
        self._move(InvocationPhase.SUBMITTING)
        self.submitted_at = datetime.now(UTC)
        self.tier = StatusTier.PROCESSING
        self.elapsed_ms = 0

    def mark_awaiting(self) -> None:
        self._move(InvocationPhase.AWAITING_RESULT)

    def update_status(self, tier: StatusTier, elapsed_ms: int) -> None:
        """Record a status tick. Ignored outside AWAITING_RESULT."""
        if self.phase != InvocationPhase.AWAITING_RESULT:
            return
        self.elapsed_ms = max(self.elapsed_ms, elapsed_ms)
        if tier.rank > self.tier.rank:
            self.tier = tier

    def succeed(self, result: str) -> None:
        self._move(InvocationPhase.SUCCEEDED)
        self.result = result
        self.settled_at = datetime.now(UTC)

    def fail(self, reason: str) -> None:
        self._move(InvocationPhase.FAILED)
        self.error_reason = reason
        self.settled_at = datetime.now(UTC)

    @property
    def settled(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display or logging."""
        return {
            "invocation_id": self.invocation_id,
            "tool_id": self.tool_id,
            "phase": self.phase.value,
            "tier": self.tier.value,
            "elapsed_ms": self.elapsed_ms,
            "result": self.result,
            "error_reason": self.error_reason,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "settled_at": self.settled_at.isoformat() if self.settled_at else None,
            "created_at": self.created_at.isoformat(),
        }
