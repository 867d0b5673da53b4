"""Tool invocation workspace.

Collects input for one bot, submits it, narrates the wait and holds the
rendered result. Each submission gets the next value of a counter; an outcome
is applied only if its number is still the current one, so a superseded or
abandoned call can never overwrite newer state.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from bot_workspace.client import BotClient
from bot_workspace.config import get_settings
from bot_workspace.events import (
    EVENT_DISCARDED,
    EVENT_FAILED,
    EVENT_STATUS,
    EVENT_SUBMITTED,
    EVENT_SUCCEEDED,
    EventBus,
)
from bot_workspace.exceptions import ValidationError
from bot_workspace.formatter import RenderedDocument, ResponseFormatter
from bot_workspace.models.invocation import (
    Attachment,
    InvocationPhase,
    InvocationResult,
    InvocationState,
)
from bot_workspace.models.tool import FieldSpec, ToolDescriptor
from bot_workspace.schema import SchemaResolver
from bot_workspace.status import StatusDriver, StatusTier, message_for

logger = logging.getLogger(__name__)


class Workspace:
    """Workspace for a single bot.

    Raises UnknownToolError on construction if the tool is not catalogued.
    Event history is kept only for the current invocation; subscribers keep
    whatever was already queued for them.
    """

    def __init__(
        self,
        tool_id: str,
        resolver: SchemaResolver | None = None,
        client: BotClient | None = None,
        formatter: ResponseFormatter | None = None,
        events: EventBus | None = None,
        tick_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._resolver = resolver if resolver is not None else SchemaResolver()
        self.tool: ToolDescriptor = self._resolver.catalog.get(tool_id)

        if tick_seconds is None:
            tick_seconds = get_settings().status_tick_seconds

        self._client = client if client is not None else BotClient(catalog=self._resolver.catalog)
        self.formatter = formatter if formatter is not None else ResponseFormatter()
        self.events = events if events is not None else EventBus()
        self._tick_seconds = tick_seconds
        self._clock = clock

        self.values: dict[str, Any] = {}
        self.attachment: Attachment | None = None
        self.validation_message: str | None = None
        self.validation_problems: dict[str, str] = {}
        self.state: InvocationState | None = None
        self.document: RenderedDocument | None = None

        self._submission = 0
        self._driver: StatusDriver | None = None

    @property
    def tool_id(self) -> str:
        return self.tool.id

    @property
    def current_invocation_id(self) -> int:
        return self._submission

    @property
    def busy(self) -> bool:
        return self.state is not None and not self.state.settled

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def set_value(self, name: str, value: Any) -> None:
        if name not in self.tool.field_names:
            raise KeyError(f"Tool '{self.tool_id}' has no field '{name}'")
        self.values[name] = value

    def clear_value(self, name: str) -> None:
        self.values.pop(name, None)

    def set_attachment(self, attachment: Attachment | None) -> None:
        self.attachment = attachment

    def active_fields(self) -> list[FieldSpec]:
        return self._resolver.active_fields(self.tool_id, self.values)

    def problems(self) -> dict[str, str]:
        return self._resolver.problems(self.tool_id, self.values, self.attachment)

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    async def submit(self) -> InvocationState | None:
        """Validate and submit the current input.

        Returns:
            The InvocationState of this submission, or None if validation
            failed (in which case no call was made and `validation_message`
            says why). If a newer submission started meanwhile, the returned
            state is left unsettled and the outcome is discarded.
        """
        try:
            request = self._resolver.build_request(self.tool_id, self.values, self.attachment)
        except ValidationError as e:
            self.validation_message = str(e)
            self.validation_problems = e.problems
            return None

        self.validation_message = None
        self.validation_problems = {}
        self._stop_driver()
        self._forget_settled()

        self._submission += 1
        invocation_id = self._submission
        state = InvocationState(invocation_id=invocation_id, tool_id=self.tool_id)
        self.state = state
        self.document = None
        self.formatter.acknowledgment.cancel()

        state.mark_submitting()
        self.events.emit(invocation_id, {"event": EVENT_SUBMITTED, "tool_id": self.tool_id})
        logger.info(f"Submitting {self.tool_id} (invocation {invocation_id})")

        driver = StatusDriver(
            on_update=lambda tier, elapsed_ms: self._on_status(invocation_id, tier, elapsed_ms),
            tick_seconds=self._tick_seconds,
            clock=self._clock,
        )
        self._driver = driver
        state.mark_awaiting()
        driver.start()

        try:
            result = await self._client.submit(request)
        except Exception as e:
            logger.error(f"Unexpected error from bot client for {self.tool_id}: {e}")
            result = InvocationResult(success=False, tool_id=self.tool_id, error=f"Unexpected error: {e}")
        finally:
            driver.cancel()
            if self._driver is driver:
                self._driver = None

        if self._is_stale(invocation_id):
            logger.debug(f"Discarding stale outcome of invocation {invocation_id}")
            self.events.emit(invocation_id, {"event": EVENT_DISCARDED})
            self.events.forget(invocation_id)
            return state

        if result.success:
            state.succeed(result.result or "")
            self.document = self.formatter.render(state.result)
            self.events.emit(
                invocation_id,
                {"event": EVENT_SUCCEEDED, "latency_ms": result.latency_ms},
            )
            logger.info(f"{self.tool_id} succeeded in {result.latency_ms}ms")
        else:
            state.fail(result.error or "Something went wrong")
            self.events.emit(
                invocation_id,
                {"event": EVENT_FAILED, "error": state.error_reason},
            )
            logger.info(f"{self.tool_id} failed: {state.error_reason}")
        return state

    def copy(self) -> bool:
        """Copy the current result's original text."""
        if self.state is None or self.state.phase != InvocationPhase.SUCCEEDED:
            return False
        return self.formatter.copy(self.state.result or "")

    def copy_code_block(self, index: int) -> bool:
        """Copy one code block of the current result."""
        if self.document is None:
            return False
        blocks = self.document.code_blocks
        if not 0 <= index < len(blocks):
            return False
        return self.formatter.copy(blocks[index].text)

    def reset(self) -> None:
        """Forget input, result and any outstanding call."""
        self.close()
        self._forget_settled()
        self.values.clear()
        self.attachment = None
        self.validation_message = None
        self.validation_problems = {}
        self.state = None
        self.document = None

    def close(self) -> None:
        """Stop the status driver and orphan any outstanding call."""
        self._stop_driver()
        self._submission += 1
        self.formatter.acknowledgment.cancel()

    async def __aenter__(self) -> "Workspace":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_stale(self, invocation_id: int) -> bool:
        return invocation_id != self._submission

    def _forget_settled(self) -> None:
        # Unsettled invocations are forgotten once their outcome is discarded
        if self.state is not None and self.state.settled:
            self.events.forget(self.state.invocation_id)

    def _stop_driver(self) -> None:
        if self._driver is not None:
            self._driver.cancel()
            self._driver = None

    def _on_status(self, invocation_id: int, tier: StatusTier, elapsed_ms: int) -> None:
        if self._is_stale(invocation_id) or self.state is None:
            return
        previous = self.state.tier
        self.state.update_status(tier, elapsed_ms)
        event: dict[str, Any] = {
            "event": EVENT_STATUS,
            "tier": self.state.tier.value,
            "elapsed_ms": self.state.elapsed_ms,
            "message": message_for(self.state.tier).headline,
        }
        if self.state.tier != previous:
            event["changed"] = True
        self.events.emit(invocation_id, event)
