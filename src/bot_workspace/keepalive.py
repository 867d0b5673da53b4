"""Background keep-alive ping for the bot backend.

The backend runs on a host that sleeps after 15 idle minutes; pinging it on
start-up and every few minutes keeps cold starts rare.
"""

import asyncio
import logging

from bot_workspace.client import BotClient

logger = logging.getLogger(__name__)


class KeepAlive:
    """Owns one asyncio task that pings the backend on an interval."""

    def __init__(self, client: BotClient, interval: float = 300.0) -> None:
        self._client = client
        self._interval = interval
        self._task: asyncio.Task | None = None
        self.pings_sent = 0
        self.last_ok: bool | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start pinging. No-op if already running."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.info(f"Keep-alive started: pinging {self._client.base_url} every {self._interval}s")

    async def stop(self) -> None:
        """Cancel the ping task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _loop(self) -> None:
        while True:
            self.last_ok = await self._client.ping()
            self.pings_sent += 1
            if not self.last_ok:
                logger.debug("Keep-alive ping got no healthy answer")
            await asyncio.sleep(self._interval)
