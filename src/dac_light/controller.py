"""
DAC Light Fixture Controller

Session-level Python API for a two-channel DAC-driven light fixture served
by an embedded HTTP device (ESP32 firmware with blink/breathe/step curves
and a circadian colour-temperature curve).

Device surface:
    - GET /state, /time_raw, /target_cct (queries)
    - GET /dac, /power, /mode, /time_override (commands, body ignored)
    - Level values are logical 0..255; /state reports DAC codes

The controller wires the components together and runs three timers: the
state poll, the clock resync, and the once-per-second display refresh.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from .clock import ClockSync
from .config import FixtureConfig
from .dispatcher import CommandDispatcher, spawn_task
from .exceptions import DacLightError
from .modes import ModeStateMachine
from .protocol import FixtureProtocol
from .reconcile import ReconciliationLoop
from .state import ControlSurface, FixtureState
from .transport import HttpTransport

logger = logging.getLogger(__name__)


class FixtureController:
    """Client-side controller for one fixture.

    Use as an async context manager to open the session and run the
    timers::

        async with FixtureController(FixtureConfig(host="192.168.4.1")) as fx:
            fx.set_level(1, 200)
            fx.select_auto("breathe")

    Args:
        config: Client configuration (defaults if omitted).
        transport: Transport to use instead of an :class:`HttpTransport`
            built from *config*.
        now_ms: Local wall-clock source in milliseconds.
    """

    def __init__(
        self,
        config: FixtureConfig | None = None,
        *,
        transport: HttpTransport | None = None,
        now_ms: Callable[[], int] | None = None,
    ) -> None:
        self.config = config or FixtureConfig()
        self._tx = transport or HttpTransport(self.config.host, timeout=self.config.timeout_s)
        self._p = FixtureProtocol(self._tx)
        self.state = FixtureState()
        self.state.surface.auto_selection = self.config.default_auto_mode
        self.dispatcher = CommandDispatcher(self._p, delay=self.config.debounce_s)
        self.clock = ClockSync(self._p, now_ms=now_ms)
        self.machine = ModeStateMachine(
            self.state,
            self.dispatcher,
            self.clock,
            auto_modes=self.config.auto_modes,
            on_time_change=self._on_time_change,
        )
        self.reconciler = ReconciliationLoop(
            self.state, self._p, interval=self.config.poll_interval_s
        )
        self._tasks: list[asyncio.Task] = []

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> FixtureController:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # -- Lifecycle ----------------------------------------------------------

    async def connect(self) -> None:
        """Open the HTTP session to the device."""
        if not self._tx.is_open:
            await self._tx.open()

    async def start(self) -> None:
        """Connect, push the initial levels and start the timers."""
        await self.connect()
        self.machine.boot(self.config.initial_levels)
        self.update_clock()
        self._tasks = [
            spawn_task(self.reconciler.run(), "state poll"),
            spawn_task(self._clock_loop(), "clock sync"),
            spawn_task(self._display_loop(), "display refresh"),
        ]
        logger.info("Fixture session started for %s", self.config.host)

    async def close(self) -> None:
        """Stop the timers, drop unsent levels and close the session."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self.dispatcher.cancel_pending()
        await self.dispatcher.drain()
        await self._tx.close()

    @property
    def is_running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    @property
    def surface(self) -> ControlSurface:
        return self.state.surface

    # -- User actions -------------------------------------------------------

    def set_level(self, channel: int, value: int) -> bool:
        """Move the slider for *channel*; ``False`` if sliders are locked."""
        return self.machine.input_level(channel, value)

    def set_power(self, on: bool) -> None:
        self.machine.set_power(on)

    def toggle_power(self) -> None:
        self.machine.toggle_power()

    def select_manual(self) -> None:
        self.machine.select_manual()

    def select_auto(self, mode: str | None = None) -> None:
        self.machine.select_auto(mode)

    def choose_auto_mode(self, mode: str) -> None:
        self.machine.choose_auto_mode(mode)

    def enable_time_override(self, minutes: int | None = None) -> bool:
        """Start the time override at *minutes* (default: the slider position).

        Returns ``False`` if the override is unavailable (lights off).
        """
        if minutes is None:
            minutes = self.surface.manual_time_minutes
        return self.machine.set_override(minutes)

    def disable_time_override(self) -> None:
        self.machine.disable_override()

    def move_time_slider(self, minutes: int) -> None:
        self.machine.move_time_slider(minutes)

    # -- Display ------------------------------------------------------------

    def update_clock(self) -> None:
        """Refresh the clock readout from projection (no network)."""
        override = self.state.override
        self.surface.clock_text = self.clock.readout(
            override.start_minutes if override.active else None
        )

    async def refresh_target_cct(self) -> None:
        """Fetch ``/target_cct`` into the readout; ``-- K`` when unavailable."""
        try:
            cct = await self._p.get_target_cct()
        except DacLightError as exc:
            logger.debug("Target CCT unavailable: %s", exc)
            cct = None
        self.surface.target_cct_text = f"{cct} K" if cct is not None else "-- K"

    def _on_time_change(self) -> None:
        self.update_clock()
        self.dispatcher.submit(self.refresh_target_cct(), "target cct")

    # -- Timers -------------------------------------------------------------

    async def _clock_loop(self) -> None:
        await self.clock.sync_now()
        self.update_clock()
        await asyncio.sleep(self.config.clock_settle_s)
        await self.clock.sync_now()
        while True:
            await asyncio.sleep(self.config.clock_resync_s)
            await self.clock.sync_now()

    async def _display_loop(self) -> None:
        await asyncio.sleep(self.config.clock_settle_s)
        while True:
            self.update_clock()
            self.dispatcher.submit(self.refresh_target_cct(), "target cct")
            await asyncio.sleep(self.config.display_interval_s)


# ---------------------------------------------------------------------------
# Convenience factory
# ---------------------------------------------------------------------------


def get_controller(host: str) -> FixtureController:
    """Return a controller for *host* with default settings.

    Example::

        async with get_controller("192.168.4.1") as fixture:
            fixture.set_power(False)
    """
    return FixtureController(FixtureConfig(host=host))
