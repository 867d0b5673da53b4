"""Tests for the background keep-alive pinger."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from bot_workspace.keepalive import KeepAlive


class _FakeClient:
    base_url = "https://bots.test"

    def __init__(self, healthy: bool = True) -> None:
        self.ping = AsyncMock(return_value=healthy)


@pytest.mark.asyncio
async def test_pings_on_start():
    client = _FakeClient()
    keep_alive = KeepAlive(client, interval=3600)

    keep_alive.start()
    await asyncio.sleep(0.01)

    assert keep_alive.running
    assert keep_alive.pings_sent == 1
    assert keep_alive.last_ok is True
    await keep_alive.stop()


@pytest.mark.asyncio
async def test_start_is_idempotent():
    client = _FakeClient()
    keep_alive = KeepAlive(client, interval=3600)

    keep_alive.start()
    keep_alive.start()
    await asyncio.sleep(0.01)

    assert client.ping.await_count == 1
    await keep_alive.stop()


@pytest.mark.asyncio
async def test_keeps_pinging_on_interval():
    client = _FakeClient(healthy=False)
    keep_alive = KeepAlive(client, interval=0.001)

    keep_alive.start()
    await asyncio.sleep(0.05)
    await keep_alive.stop()

    assert keep_alive.pings_sent >= 2
    assert keep_alive.last_ok is False


@pytest.mark.asyncio
async def test_stop():
    client = _FakeClient()
    keep_alive = KeepAlive(client, interval=3600)
    keep_alive.start()
    await asyncio.sleep(0.01)

    await keep_alive.stop()

    assert keep_alive.running is False
    await asyncio.sleep(0.01)
    assert client.ping.await_count == 1


@pytest.mark.asyncio
async def test_stop_without_start():
    keep_alive = KeepAlive(_FakeClient())
    await keep_alive.stop()
    assert keep_alive.running is False
