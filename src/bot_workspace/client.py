"""HTTP client for invoking research bots on the bot backend.

Each invocation is exactly one multipart POST to `/bot/{tool_id}`. Failures are
returned as data, never retried: the backend is not idempotent and bot jobs
are expensive.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Mapping
from urllib.parse import quote

import httpx

from bot_workspace.catalog.bots import ATTACHMENT_FIELD, default_catalog
from bot_workspace.catalog.registry import ToolCatalog
from bot_workspace.config import get_settings
from bot_workspace.models.invocation import Attachment, InvocationRequest, InvocationResult

logger = logging.getLogger(__name__)


class BotClient:
    """Async client for the bot backend.

    Concurrent invocations are independent; nothing is cached or coalesced.
    """

    def __init__(
        self,
        catalog: ToolCatalog | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the bot client.

        Args:
            catalog: Catalog used to reject unknown tool ids
            base_url: Backend base URL (defaults to settings.bot_api_url)
            timeout: Request timeout in seconds (defaults to settings)
            transport: Optional httpx transport, e.g. for tests
        """
        if base_url is None or timeout is None:
            settings = get_settings()
            base_url = base_url if base_url is not None else settings.bot_api_url
            timeout = timeout if timeout is not None else settings.bot_request_timeout
        self._catalog = catalog if catalog is not None else default_catalog()
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    def route(self, tool_id: str) -> str:
        """Backend URL for a tool."""
        return f"{self._base_url}/bot/{quote(tool_id, safe='')}"

    async def submit(self, request: InvocationRequest) -> InvocationResult:
        """Invoke the tool described by a validated request."""
        return await self.invoke(request.tool_id, request.field_values, request.attachment)

    async def invoke(
        self,
        tool_id: str,
        field_values: Mapping[str, Any],
        attachment: Attachment | None = None,
    ) -> InvocationResult:
        """Send one invocation to the backend.

        Args:
            tool_id: Catalog id of the bot
            field_values: Form values; None entries are not sent
            attachment: Optional file, sent under the `pdf_file` part

        Returns:
            InvocationResult with the result text or a failure reason

        Raises:
            UnknownToolError: If tool_id is not in the catalog
        """
        self._catalog.get(tool_id)

        url = self.route(tool_id)
        parts = self._multipart(field_values, attachment)
        start_time = time.time()

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                resp = await client.post(
                    url,
                    files=parts,
                    headers={"Accept": "application/json"},
                )

            latency_ms = int((time.time() - start_time) * 1000)

            if not 200 <= resp.status_code < 300:
                reason = f"HTTP {resp.status_code}: {self._error_detail(resp)}"
                logger.warning(f"Bot {tool_id} returned {resp.status_code} after {latency_ms}ms")
                return InvocationResult(
                    success=False,
                    tool_id=tool_id,
                    error=reason,
                    status_code=resp.status_code,
                    latency_ms=latency_ms,
                )

            return InvocationResult(
                success=True,
                tool_id=tool_id,
                result=self._extract_result(resp),
                status_code=resp.status_code,
                latency_ms=latency_ms,
            )

        except httpx.TimeoutException:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.warning(f"Timeout invoking bot {tool_id} after {latency_ms}ms")
            return InvocationResult(
                success=False,
                tool_id=tool_id,
                error=f"Timeout after {latency_ms}ms",
                latency_ms=latency_ms,
            )

        except httpx.ConnectError as e:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.warning(f"Connection error invoking bot {tool_id}: {e}")
            return InvocationResult(
                success=False,
                tool_id=tool_id,
                error=f"Connection error: {e}",
                latency_ms=latency_ms,
            )

        except httpx.HTTPError as e:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.warning(f"Request to bot {tool_id} failed: {e}")
            return InvocationResult(
                success=False,
                tool_id=tool_id,
                error=f"Request failed: {e}",
                latency_ms=latency_ms,
            )

        except Exception as e:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.error(f"Unexpected error invoking bot {tool_id}: {e}")
            return InvocationResult(
                success=False,
                tool_id=tool_id,
                error=f"Unexpected error: {e}",
                latency_ms=latency_ms,
            )

    async def ping(self) -> bool:
        """Touch the backend root so an idle instance starts waking up.

        Returns:
            True if the backend answered without a server error
        """
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                resp = await client.get(f"{self._base_url}/")
            return resp.status_code < 500
        except Exception as e:
            logger.debug(f"Keep-alive ping failed: {e}")
            return False

    @staticmethod
    def _multipart(
        field_values: Mapping[str, Any],
        attachment: Attachment | None,
    ) -> list[tuple[str, tuple[str | None, Any] | tuple[str, bytes, str]]]:
        """Build multipart parts; plain fields are sent without a filename."""
        parts: list = [
            (name, (None, str(value)))
            for name, value in field_values.items()
            if value is not None
        ]
        if attachment is not None:
            parts.append(
                (ATTACHMENT_FIELD, (attachment.filename, attachment.content, attachment.content_type))
            )
        return parts

    @staticmethod
    def _extract_result(resp: httpx.Response) -> str:
        """Pull `result` out of a JSON body, falling back to the raw body.

        The backend historically returned rendered HTML, so a body without a
        `result` field is tolerated and passed through as-is. A bare JSON
        string body is decoded; a string `result` is returned even when empty.
        """
        try:
            data = resp.json()
        except ValueError:
            return resp.text

        if isinstance(data, str):
            return data
        if isinstance(data, dict) and "result" in data:
            result = data["result"]
            if isinstance(result, str):
                return result
            if result is not None:
                return json.dumps(result, ensure_ascii=False, indent=2)
        return resp.text

    @staticmethod
    def _error_detail(resp: httpx.Response) -> str:
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            for key in ("detail", "error"):
                if isinstance(data.get(key), str) and data[key]:
                    return data[key]
        return resp.text[:200]
