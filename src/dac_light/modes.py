"""
Operating-mode and power state machine.

States are ``manual``, ``manual_override`` and any of the device's named
automatic curves; power is a separate on/off axis.  Every transition
updates the shared :class:`~dac_light.state.FixtureState`, tells the device
through the dispatcher, and recomputes the control surface.  Recomputing the
surface only writes fields, it never calls back into a transition, so
reflecting a mode in the selector cannot re-trigger that mode.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Mapping

from .clock import ClockSync, clamp_minutes, minutes_to_label
from .constants import (
    CHANNELS,
    DEFAULT_AUTO_MODES,
    DEFAULT_LAST_ON,
    MODE_MANUAL,
    MODE_MANUAL_OVERRIDE,
)
from .dispatcher import CommandDispatcher
from .protocol import validate_channel, validate_level, validate_mode
from .state import FixtureState, ManualTimeOverride, sliders_authoritative, time_slider_enabled

logger = logging.getLogger(__name__)

_PRETTY_NAMES = {
    MODE_MANUAL: "Manual",
    MODE_MANUAL_OVERRIDE: "Manual Override",
    "blink": "Blink",
    "breathe": "Breathe",
    "step": "Step",
}


def pretty_mode_name(mode: str) -> str:
    """Human-readable name for *mode*."""
    return _PRETTY_NAMES.get(mode, mode.replace("_", " ").title())


def mode_label(mode: str) -> str:
    """Label for the mode display, e.g. ``Automatic Breathe``."""
    if mode in (MODE_MANUAL, MODE_MANUAL_OVERRIDE):
        return pretty_mode_name(mode)
    return f"Automatic {pretty_mode_name(mode)}"


class ModeStateMachine:
    """Owns every transition of mode, power and time override.

    Args:
        state: The shared session state.
        dispatcher: Where device commands go.
        clock: Clock to resync whenever an override is cleared.
        auto_modes: Automatic curves offered by the mode selector.
        on_time_change: Called after the time source changes (override set
            or cleared) so readouts can refresh.
    """

    def __init__(
        self,
        state: FixtureState,
        dispatcher: CommandDispatcher,
        clock: ClockSync,
        auto_modes: Iterable[str] = DEFAULT_AUTO_MODES,
        on_time_change: Callable[[], None] | None = None,
    ) -> None:
        self.state = state
        self._d = dispatcher
        self._clock = clock
        self.auto_modes = tuple(auto_modes)
        self._on_time_change = on_time_change

    # -- Start-up -----------------------------------------------------------

    def boot(self, levels: Mapping[int, int]) -> None:
        """Seed the session from the sliders' initial positions.

        Power counts as on if any channel starts non-zero.  The initial
        levels are remembered as last-on values and pushed once.
        """
        s = self.state
        for ch in CHANNELS:
            validate_level(levels.get(ch, 0))
        s.lights_on = any(levels.get(ch, 0) for ch in CHANNELS)
        s.last_on = {ch: levels.get(ch, 0) or DEFAULT_LAST_ON for ch in CHANNELS}
        s.mode = MODE_MANUAL
        self.refresh()
        for ch in CHANNELS:
            value = levels.get(ch, 0)
            s.channels[ch].logical = value
            self._d.send_level(ch, value)
        self._refresh_power_labels()

    # -- Mode transitions ---------------------------------------------------

    def set_mode(self, mode: str) -> None:
        """Switch to *mode*, clearing any running override first."""
        validate_mode(mode)
        if mode != MODE_MANUAL_OVERRIDE and self.state.override.active:
            self._clear_override()
        logger.info("Mode -> %s", mode)
        self._d.send_mode(mode)
        self.state.mode = mode
        self.refresh()

    def select_manual(self) -> None:
        self.set_mode(MODE_MANUAL)

    def select_auto(self, mode: str | None = None) -> None:
        """Activate *mode*, or the curve currently chosen in the selector."""
        self.set_mode(mode or self.state.surface.auto_selection)

    def choose_auto_mode(self, mode: str) -> None:
        """Record a selector choice; switch to it if a curve is already running."""
        validate_mode(mode)
        self.state.surface.auto_selection = mode
        if self.state.is_automatic:
            self.set_mode(mode)

    # -- Time override ------------------------------------------------------

    def set_override(self, minutes: int) -> bool:
        """Pin the device curve to *minutes* past midnight.

        Entering the override also switches the device into
        ``manual_override``; the synthetic time is sent after the mode.

        Returns:
            ``False`` (and changes nothing) while the lights are off.
        """
        s = self.state
        if not s.lights_on:
            logger.debug("Ignoring time override %s: lights off", minutes)
            return False
        clamped = clamp_minutes(minutes)
        s.override = ManualTimeOverride(active=True, start_minutes=clamped)
        s.surface.manual_time_minutes = clamped
        s.surface.manual_time_label = minutes_to_label(clamped)
        if s.mode != MODE_MANUAL_OVERRIDE:
            self.set_mode(MODE_MANUAL_OVERRIDE)
        else:
            self.refresh()
        self._d.send_time_override(clamped)
        self._time_changed()
        return True

    def move_time_slider(self, minutes: int) -> None:
        """Track the override slider; only re-sends while the override is on."""
        if self.state.override.active:
            self.set_override(minutes)
            return
        clamped = clamp_minutes(minutes)
        self.state.surface.manual_time_minutes = clamped
        self.state.surface.manual_time_label = minutes_to_label(clamped)

    def disable_override(self) -> None:
        """Turn the override off and fall back to manual mode."""
        if self.state.override.active:
            self._clear_override()
        self.set_mode(MODE_MANUAL)

    def _clear_override(self) -> None:
        self.state.override = ManualTimeOverride()
        self._d.send_time_override(None)
        self._d.submit(self._clock.sync_now(), "clock resync")
        self.refresh()
        self._time_changed()

    def _time_changed(self) -> None:
        if self._on_time_change is not None:
            self._on_time_change()

    # -- Power --------------------------------------------------------------

    def set_power(self, on: bool) -> None:
        """Switch the lights, remembering and restoring manual levels."""
        s = self.state
        s.lights_on = on
        self._d.send_power(on)
        logger.info("Lights %s", "on" if on else "off")
        if not on:
            current = s.levels()
            if any(current.values()):
                s.last_on = {
                    ch: current[ch] or s.last_on.get(ch) or DEFAULT_LAST_ON for ch in CHANNELS
                }
            for ch in CHANNELS:
                s.channels[ch].logical = 0
                self._d.send_level(ch, 0)
        elif s.mode == MODE_MANUAL:
            if not any(s.last_on.values()):
                s.last_on = {
                    ch: s.channels[ch].logical or DEFAULT_LAST_ON for ch in CHANNELS
                }
            for ch in CHANNELS:
                self._apply_level(ch, s.last_on[ch])
        self._refresh_power_labels()
        self.refresh()

    def toggle_power(self) -> None:
        self.set_power(not self.state.lights_on)

    # -- Slider input -------------------------------------------------------

    def input_level(self, channel: int, value: int) -> bool:
        """Apply a slider move.

        Returns:
            ``False`` (and changes nothing) if the sliders are not the
            authoritative source right now.
        """
        validate_channel(channel)
        validate_level(value)
        if not sliders_authoritative(self.state):
            logger.debug("Ignoring ch%d=%d: sliders locked", channel, value)
            return False
        self._apply_level(channel, value)
        return True

    def _apply_level(self, channel: int, value: int) -> None:
        s = self.state
        s.channels[channel].logical = value
        if s.lights_on:
            s.last_on[channel] = value
        self._d.send_level(channel, value)

    # -- Surface ------------------------------------------------------------

    def refresh(self) -> None:
        """Recompute the control surface from the current state."""
        s = self.state
        surface = s.surface
        manual = s.mode == MODE_MANUAL
        override_mode = s.mode == MODE_MANUAL_OVERRIDE

        surface.sliders_enabled = sliders_authoritative(s)
        if not s.lights_on:
            for ch in CHANNELS:
                s.channels[ch].logical = 0
                self._d.send_level(ch, 0)

        surface.manual_time_slider_enabled = time_slider_enabled(s)
        surface.manual_time_blocked = not s.lights_on
        surface.manual_time_toggle_enabled = s.lights_on
        surface.manual_time_toggle_checked = override_mode

        surface.mode_label = mode_label(s.mode)
        surface.manual_button_active = manual or override_mode
        surface.auto_button_active = not (manual or override_mode)
        if s.is_automatic and s.mode in self.auto_modes:
            surface.auto_selection = s.mode

    def _refresh_power_labels(self) -> None:
        on = self.state.lights_on
        self.state.surface.power_label = "Lights ON" if on else "Lights OFF"
        self.state.surface.power_button_label = "Turn Lights Off" if on else "Turn Lights On"
