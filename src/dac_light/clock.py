"""
Device clock tracking.

The fixture runs its lighting curve against its own clock, so the client
displays device time rather than local time.  Instead of polling the
device every second, :class:`ClockSync` remembers the offset between the
device's epoch and the local wall clock at the last successful sync and
projects device time from it.  A failed sync keeps the previous offset so
the readout never jumps back to raw local time mid-session.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Callable

from .constants import DAY_MINUTES
from .exceptions import DacLightError
from .protocol import FixtureProtocol

logger = logging.getLogger(__name__)


def _wall_ms() -> int:
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Time-of-day helpers
# ---------------------------------------------------------------------------


def clamp_minutes(total_minutes: int) -> int:
    """Clamp *total_minutes* into a single day (0..1439)."""
    return max(0, min(DAY_MINUTES - 1, int(total_minutes)))


def minutes_to_label(total_minutes: int) -> str:
    """Format minutes past midnight as a 12-hour label, e.g. ``6:05 PM``."""
    total_minutes = clamp_minutes(total_minutes)
    h24, minute = divmod(total_minutes, 60)
    suffix = "PM" if h24 >= 12 else "AM"
    h12 = h24 % 12 or 12
    return f"{h12}:{minute:02d} {suffix}"


# ---------------------------------------------------------------------------
# Synchronizer
# ---------------------------------------------------------------------------


class ClockSync:
    """Keeps a local estimate of the device clock.

    Args:
        protocol: Protocol used to read ``/time_raw``.
        now_ms: Source of local wall-clock milliseconds (injectable for tests).
    """

    def __init__(
        self,
        protocol: FixtureProtocol,
        now_ms: Callable[[], int] | None = None,
    ) -> None:
        self._p = protocol
        self._now_ms = now_ms or _wall_ms
        self.offset_ms: int | None = None
        self.syncs = 0

    @property
    def synced(self) -> bool:
        return self.offset_ms is not None

    async def sync_now(self) -> bool:
        """Fetch device time and refresh the offset.

        Returns:
            ``True`` if the offset was updated.  On failure the previous
            offset is left untouched.
        """
        self.syncs += 1
        try:
            epoch = await self._p.get_time()
        except DacLightError as exc:
            logger.debug("Clock sync failed, keeping offset %s: %s", self.offset_ms, exc)
            return False
        self.offset_ms = epoch * 1000 - self._now_ms()
        logger.debug("Clock offset now %d ms", self.offset_ms)
        return True

    def projected_now_ms(self) -> int:
        """Return estimated device time, or local time before the first sync."""
        now = self._now_ms()
        if self.offset_ms is None:
            return now
        return now + self.offset_ms

    def projected_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.projected_now_ms() / 1000)

    def readout(self, override_minutes: int | None = None) -> str:
        """Text for the clock display.

        With *override_minutes* set, the synthetic override time is shown
        instead of the projected device time.
        """
        if override_minutes is not None:
            return f"Manual Time: {minutes_to_label(override_minutes)} (manual)"
        return f"Time: {self.projected_datetime().strftime('%I:%M:%S %p')}"
