"""Shared pytest fixtures for DAC light client tests."""

from __future__ import annotations

import asyncio

import pytest

from dac_light import FixtureConfig, FixtureController, FixtureState
from dac_light.clock import ClockSync
from dac_light.dispatcher import CommandDispatcher
from dac_light.exceptions import ConnectionError
from dac_light.modes import ModeStateMachine
from dac_light.protocol import FixtureProtocol
from dac_light.reconcile import ReconciliationLoop

DEBOUNCE = 0.01
LOCAL_MS = 1_000_000


class FakeTransport:
    """Lightweight stand-in for :class:`~dac_light.transport.HttpTransport`.

    Every request is recorded as ``(path, params)``.  By default every
    request gets an empty body, which is what the device sends back for
    commands.  Call :meth:`set_response` to stage a body for a path, or
    :meth:`fail` to make that path raise; staged behaviour persists until
    changed.
    """

    def __init__(self) -> None:
        self.is_open: bool = True
        self.requests: list[tuple[str, dict]] = []
        self._responses: dict[str, str | Exception] = {}
        self._delays: dict[str, float] = {}

    # -- Helpers for tests --------------------------------------------------

    def set_response(self, path: str, body: str) -> None:
        self._responses[path] = body

    def fail(self, path: str, exc: Exception | None = None) -> None:
        self._responses[path] = exc or ConnectionError(f"{path} unreachable")

    def delay(self, path: str, seconds: float) -> None:
        """Make requests to *path* take *seconds* before answering."""
        self._delays[path] = seconds

    def calls(self, path: str) -> list[dict]:
        """Return the params of every request made to *path*."""
        return [params for p, params in self.requests if p == path]

    def paths(self) -> list[str]:
        return [p for p, _ in self.requests]

    # -- HttpTransport interface --------------------------------------------

    async def open(self) -> None:
        self.is_open = True

    async def close(self) -> None:
        self.is_open = False

    async def get(self, path: str, params=None) -> str:
        self.requests.append((path, dict(params or {})))
        if path in self._delays:
            await asyncio.sleep(self._delays[path])
        response = self._responses.get(path, "")
        if isinstance(response, Exception):
            raise response
        return response


class FakeNow:
    """Settable local wall clock in milliseconds."""

    def __init__(self, ms: int = LOCAL_MS) -> None:
        self.ms = ms

    def __call__(self) -> int:
        return self.ms


class FakeResponse:
    """Async-context-manager response with the bits of aiohttp we read."""

    def __init__(self, status: int, body: str | bytes) -> None:
        self.status = status
        self._body = body.encode() if isinstance(body, str) else body

    async def text(self, encoding: str = "utf-8", errors: str = "strict") -> str:
        return self._body.decode(encoding, errors)

    async def __aenter__(self) -> FakeResponse:
        return self

    async def __aexit__(self, *exc) -> bool:
        return False


class FakeSession:
    """Stand-in for ``aiohttp.ClientSession``."""

    def __init__(
        self, status: int = 200, body: str | bytes = "", exc: Exception | None = None
    ) -> None:
        self.closed = False
        self.status = status
        self.body = body
        self.exc = exc
        self.requests: list[tuple[str, dict | None]] = []

    def get(self, url: str, params=None) -> FakeResponse:
        self.requests.append((url, params))
        if self.exc is not None:
            raise self.exc
        return FakeResponse(self.status, self.body)

    async def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_transport() -> FakeTransport:
    """Return a fresh ``FakeTransport``."""
    return FakeTransport()


@pytest.fixture()
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def fake_now() -> FakeNow:
    return FakeNow()


@pytest.fixture()
def protocol(fake_transport: FakeTransport) -> FixtureProtocol:
    """Return a ``FixtureProtocol`` wired to a fake transport."""
    return FixtureProtocol(fake_transport)


@pytest.fixture()
def state() -> FixtureState:
    return FixtureState()


@pytest.fixture()
def dispatcher(protocol: FixtureProtocol) -> CommandDispatcher:
    return CommandDispatcher(protocol, delay=DEBOUNCE)


@pytest.fixture()
def clock(protocol: FixtureProtocol, fake_now: FakeNow) -> ClockSync:
    return ClockSync(protocol, now_ms=fake_now)


@pytest.fixture()
def machine(state, dispatcher, clock) -> ModeStateMachine:
    return ModeStateMachine(state, dispatcher, clock)


@pytest.fixture()
def reconciler(state, protocol) -> ReconciliationLoop:
    return ReconciliationLoop(state, protocol, interval=0.01)


@pytest.fixture()
def fast_config() -> FixtureConfig:
    """Config with every timer shortened so a session can run inside a test."""
    return FixtureConfig(
        host="fixture.local",
        debounce_s=DEBOUNCE,
        poll_interval_s=0.01,
        clock_resync_s=60.0,
        clock_settle_s=0.01,
        display_interval_s=0.01,
    )


@pytest.fixture()
def controller(fast_config, fake_transport, fake_now) -> FixtureController:
    """Return a ``FixtureController`` wired to a fake transport (not started)."""
    return FixtureController(fast_config, transport=fake_transport, now_ms=fake_now)
