"""Global test configuration for Bot Workspace."""

import os

import pytest


@pytest.fixture(autouse=True, scope="session")
def _set_test_env_vars():
    """Point settings at a fake backend and disable the keep-alive pinger.

    Restores the original environment afterwards.
    """
    overrides = {
        "BOT_API_URL": "https://bots.test",
        "KEEP_ALIVE_ENABLED": "false",
    }
    originals = {key: os.environ.get(key) for key in overrides}
    os.environ.update(overrides)

    # Clear the lru_cache on get_settings so it picks up the new env vars
    from bot_workspace.config import get_settings
    get_settings.cache_clear()

    yield

    for key, original in originals.items():
        if original is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = original
    get_settings.cache_clear()


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHandle:
    def __init__(self, when: float, callback) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Stand-in for loop.call_later driven by advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: list[FakeHandle] = []

    def call_later(self, delay: float, callback) -> FakeHandle:
        handle = FakeHandle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        self.now += seconds
        for handle in sorted(self.handles, key=lambda h: h.when):
            if not handle.cancelled and not handle.fired and handle.when <= self.now:
                handle.fired = True
                handle.callback()

    @property
    def live(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]


class FakeClipboard:
    def __init__(self, error: Exception | None = None) -> None:
        self.writes: list[str] = []
        self.error = error

    def write(self, text: str) -> None:
        if self.error is not None:
            raise self.error
        self.writes.append(text)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def clipboard():
    return FakeClipboard()
