"""
Central session state for one fixture.

Everything the components share lives in a single :class:`FixtureState`
record.  Each field has one writer role at a time; who may write the
channel levels is decided by :func:`sliders_authoritative`, so the
ownership rule lives here and nowhere else.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .constants import CHANNELS, DEFAULT_AUTO_MODES, DEFAULT_LAST_ON, MODE_MANUAL, MODE_MANUAL_OVERRIDE
from .conversion import to_percent

# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class ChannelLevel:
    """Slider value for one channel, plus the DAC code last polled for it."""

    logical: int = 0
    device_code: float | None = None

    @property
    def percent(self) -> int:
        return to_percent(self.logical)


@dataclass
class ManualTimeOverride:
    """Synthetic time-of-day the device evaluates its curve against."""

    active: bool = False
    start_minutes: int = 0


@dataclass
class ControlSurface:
    """What the control surface should currently show and allow."""

    sliders_enabled: bool = True
    manual_time_slider_enabled: bool = False
    manual_time_toggle_enabled: bool = True
    manual_time_toggle_checked: bool = False
    manual_time_blocked: bool = False
    manual_time_minutes: int = 0
    manual_time_label: str = "12:00 AM"
    mode_label: str = "Manual"
    manual_button_active: bool = True
    auto_button_active: bool = False
    auto_selection: str = DEFAULT_AUTO_MODES[0]
    power_label: str = "Lights ON"
    power_button_label: str = "Turn Lights Off"
    clock_text: str = ""
    target_cct_text: str = "-- K"


def _channels() -> dict[int, ChannelLevel]:
    return {ch: ChannelLevel() for ch in CHANNELS}


def _last_on() -> dict[int, int]:
    return {ch: DEFAULT_LAST_ON for ch in CHANNELS}


@dataclass
class FixtureState:
    """Mode, power, override and channel values for the session."""

    mode: str = MODE_MANUAL
    lights_on: bool = True
    channels: dict[int, ChannelLevel] = field(default_factory=_channels)
    last_on: dict[int, int] = field(default_factory=_last_on)
    override: ManualTimeOverride = field(default_factory=ManualTimeOverride)
    surface: ControlSurface = field(default_factory=ControlSurface)

    @property
    def is_automatic(self) -> bool:
        """``True`` while one of the device's automatic curves is selected."""
        return self.mode not in (MODE_MANUAL, MODE_MANUAL_OVERRIDE)

    def levels(self) -> dict[int, int]:
        return {ch: level.logical for ch, level in self.channels.items()}


# ---------------------------------------------------------------------------
# Ownership predicates
# ---------------------------------------------------------------------------


def sliders_authoritative(state: FixtureState) -> bool:
    """Return ``True`` if local sliders, not the device, own the channel levels.

    That holds only in a manual mode, with no time override running, while
    the lights are on.  Otherwise polled device values win.
    """
    return (
        state.mode in (MODE_MANUAL, MODE_MANUAL_OVERRIDE)
        and not state.override.active
        and state.lights_on
    )


def channel_authoritative(state: FixtureState, channel: int) -> bool:
    """Per-channel form of :func:`sliders_authoritative`."""
    return channel in state.channels and sliders_authoritative(state)


def time_slider_enabled(state: FixtureState) -> bool:
    return state.mode == MODE_MANUAL_OVERRIDE and state.lights_on
