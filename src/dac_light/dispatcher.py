"""
Outgoing command dispatch for the fixture.

Level changes coming from slider drags are coalesced per channel with a
trailing-edge debounce: every new value cancels whatever send is still
waiting for that channel and re-arms the timer, so only the last value of
a burst reaches the device.  Power, mode and time-override commands go out
immediately.  Every send is fire-and-forget; a failed request is logged
and dropped, and the next poll or the next user action brings the device
back in line.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from .constants import CHANNELS, DEBOUNCE_S
from .exceptions import DacLightError
from .protocol import FixtureProtocol, validate_channel, validate_level

logger = logging.getLogger(__name__)


def spawn_task(coro: Awaitable, name: str) -> asyncio.Task:
    """Start *coro* as a named task whose crash is logged, never lost."""
    task = asyncio.create_task(coro, name=name)

    def _done(t: asyncio.Task) -> None:
        if t.cancelled():
            logger.debug("Task cancelled: %s", name)
            return
        exc = t.exception()
        if exc is not None:
            logger.error("Task crashed: %s", name, exc_info=exc)

    task.add_done_callback(_done)
    return task


class _DebounceSlot:
    """A single pending-action slot; scheduling replaces whatever is waiting."""

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._action: Callable[[], None] | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, action: Callable[[], None]) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._action = action
        self._handle = loop.call_later(self.delay, self.fire)

    def fire(self) -> None:
        """Run the pending action now (no-op if nothing is pending)."""
        action = self._action
        self.cancel()
        if action is not None:
            action()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._action = None


class CommandDispatcher:
    """Sends fixture commands without ever blocking the caller.

    Args:
        protocol: The :class:`~dac_light.protocol.FixtureProtocol` to send through.
        delay: Debounce window for level commands, in seconds.
    """

    def __init__(self, protocol: FixtureProtocol, delay: float = DEBOUNCE_S) -> None:
        self._p = protocol
        self._slots = {ch: _DebounceSlot(delay) for ch in CHANNELS}
        self._inflight: set[asyncio.Task] = set()

    # -- Commands -----------------------------------------------------------

    def send_level(self, channel: int, value: int) -> None:
        """Queue *value* for *channel*, replacing any not-yet-sent value."""
        validate_channel(channel)
        validate_level(value)
        self._slots[channel].schedule(
            lambda: self.submit(self._p.set_level(channel, value), f"dac ch{channel}={value}")
        )

    def send_power(self, on: bool) -> None:
        """Send the power state immediately, independent of pending levels."""
        self.submit(self._p.set_power(on), f"power {'on' if on else 'off'}")

    def send_mode(self, mode: str) -> None:
        self.submit(self._p.set_mode(mode), f"mode {mode}")

    def send_time_override(self, minutes: int | None) -> None:
        label = "time override clear" if minutes is None else f"time override {minutes}"
        self.submit(self._p.set_time_override(minutes), label)

    # -- Task bookkeeping ---------------------------------------------------

    def submit(self, coro: Awaitable, what: str) -> asyncio.Task:
        """Run *coro* in the background, absorbing device errors."""
        task = spawn_task(self._guarded(coro, what), what)
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    def pending(self, channel: int) -> bool:
        """Return ``True`` if a level for *channel* is waiting to be sent."""
        return self._slots[channel].pending

    def cancel_pending(self) -> None:
        """Drop every level that has not been sent yet."""
        for slot in self._slots.values():
            slot.cancel()

    async def flush(self) -> None:
        """Send pending levels now and wait for all in-flight requests."""
        for slot in self._slots.values():
            slot.fire()
        await self.drain()

    async def drain(self) -> None:
        """Wait until every in-flight request has finished."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    # -- Internal -----------------------------------------------------------

    @staticmethod
    async def _guarded(coro: Awaitable, what: str) -> None:
        try:
            await coro
        except DacLightError as exc:
            logger.warning("Command dropped (%s): %s", what, exc)
