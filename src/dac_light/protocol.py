"""
Fixture HTTP protocol: endpoint calls, argument validation, and response
parsing.

This module sits between the transport (raw HTTP I/O) and the components
that drive the fixture.  It knows how to:

* validate parameters before they become requests,
* build the query for each endpoint,
* parse typed data out of response bodies.

It does **not** own the HTTP session — that belongs to
:class:`~dac_light.transport.HttpTransport` — and it never swallows
errors; deciding which failures are harmless is the caller's job.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass

from .constants import CHANNELS, DAY_MINUTES, LOGICAL_MAX
from .exceptions import ResponseError, ValidationError
from .transport import HttpTransport

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DeviceState:
    """Channel DAC codes reported by ``/state``."""

    ch1: float
    ch2: float

    def code(self, channel: int) -> float:
        """Return the reported code for *channel* (1 or 2)."""
        validate_channel(channel)
        return self.ch1 if channel == 1 else self.ch2


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

MODE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_channel(channel: int) -> None:
    if channel not in CHANNELS:
        raise ValidationError(f"Channel must be one of {list(CHANNELS)}, got {channel}")


def validate_level(value: int) -> None:
    if not isinstance(value, int) or not (0 <= value <= LOGICAL_MAX):
        raise ValidationError(f"Level must be 0-{LOGICAL_MAX}, got {value!r}")


def validate_minutes(minutes: int) -> None:
    if not isinstance(minutes, int) or not (0 <= minutes < DAY_MINUTES):
        raise ValidationError(f"Override minutes must be 0-{DAY_MINUTES - 1}, got {minutes!r}")


def validate_mode(mode: str) -> None:
    if not isinstance(mode, str) or not MODE_NAME_PATTERN.match(mode):
        raise ValidationError(f"Invalid mode name {mode!r}")


# ---------------------------------------------------------------------------
# Parse helpers
# ---------------------------------------------------------------------------


def _parse_epoch(body: str) -> int:
    """Extract whole epoch seconds from a ``/time_raw`` body."""
    try:
        value = float(body)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ResponseError(f"Cannot parse epoch from {body!r}") from exc
    if not math.isfinite(value):
        raise ResponseError(f"Cannot parse epoch from {body!r}")
    return int(value)


def _number(data: dict, key: str) -> float:
    raw = data.get(key)
    if isinstance(raw, bool) or raw is None:
        raise ResponseError(f"Field {key!r} is not numeric: {raw!r}")
    try:
        value = float(raw)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ResponseError(f"Field {key!r} is not numeric: {raw!r}") from exc
    if not math.isfinite(value):
        raise ResponseError(f"Field {key!r} is not finite: {raw!r}")
    return value


def _parse_state(body: str) -> DeviceState:
    """Extract channel codes from a ``/state`` JSON body."""
    try:
        data = json.loads(body)
    except ValueError as exc:
        raise ResponseError(f"Cannot parse state from {body!r}") from exc
    if not isinstance(data, dict):
        raise ResponseError(f"State must be a JSON object, got {body!r}")
    return DeviceState(ch1=_number(data, "ch1"), ch2=_number(data, "ch2"))


def _parse_cct(body: str) -> int | None:
    """Return the target colour temperature in Kelvin, or ``None`` if unset."""
    match = re.match(r"^\s*([+-]?\d+)", body)
    if match is None:
        return None
    return int(match.group(1))


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class FixtureProtocol:
    """Builds requests, sends them via a transport, and parses responses.

    Args:
        transport: An open :class:`~dac_light.transport.HttpTransport`.
    """

    def __init__(self, transport: HttpTransport) -> None:
        self._tx = transport

    # -- Queries ------------------------------------------------------------

    async def get_time(self) -> int:
        """Return the device clock as whole seconds since the epoch."""
        body = await self._tx.get("/time_raw")
        return _parse_epoch(body)

    async def get_state(self) -> DeviceState:
        """Return the DAC codes currently driven on both channels."""
        body = await self._tx.get("/state")
        return _parse_state(body)

    async def get_target_cct(self) -> int | None:
        """Return the curve's current colour temperature target, if any."""
        body = await self._tx.get("/target_cct")
        return _parse_cct(body)

    # -- Commands -----------------------------------------------------------

    async def set_level(self, channel: int, value: int) -> None:
        """Set *channel* to the logical slider *value* (0..255)."""
        validate_channel(channel)
        validate_level(value)
        await self._tx.get("/dac", {"ch": channel, "val": value})

    async def set_power(self, on: bool) -> None:
        """Switch the fixture output on or off."""
        await self._tx.get("/power", {"on": 1 if on else 0})

    async def set_mode(self, mode: str) -> None:
        """Select the operating mode by name."""
        validate_mode(mode)
        await self._tx.get("/mode", {"m": mode})

    async def set_time_override(self, minutes: int | None) -> None:
        """Pin the curve clock to *minutes* past midnight, or clear it with ``None``."""
        if minutes is None:
            await self._tx.get("/time_override")
            return
        validate_minutes(minutes)
        await self._tx.get("/time_override", {"mins": minutes})
