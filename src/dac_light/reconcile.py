"""
Reconciliation of device-reported channel levels into the session state.

While the lights are on the loop polls ``/state`` on a fixed interval and,
for each channel the sliders do not currently own, replaces the local
value with the converted device code.  Failed or malformed polls are
skipped; the next tick is the retry.
"""

from __future__ import annotations

import asyncio
import logging

from .constants import POLL_INTERVAL_S
from .conversion import device_code_to_logical
from .exceptions import DacLightError
from .protocol import FixtureProtocol
from .state import FixtureState, channel_authoritative

logger = logging.getLogger(__name__)


class ReconciliationLoop:
    """Pulls device channel state into :class:`FixtureState`.

    Args:
        state: The shared session state.
        protocol: Protocol used to read ``/state``.
        interval: Seconds between polls.
    """

    def __init__(
        self,
        state: FixtureState,
        protocol: FixtureProtocol,
        interval: float = POLL_INTERVAL_S,
    ) -> None:
        self.state = state
        self._p = protocol
        self.interval = interval

    async def tick(self) -> list[int]:
        """Poll once.

        Returns:
            The channels whose values were overwritten from the device.
        """
        if not self.state.lights_on:
            return []
        try:
            reported = await self._p.get_state()
        except DacLightError as exc:
            logger.debug("State poll skipped: %s", exc)
            return []
        if not self.state.lights_on:
            return []

        updated = []
        # Ownership is checked now, after the await, not when the poll started
        for ch, level in self.state.channels.items():
            if channel_authoritative(self.state, ch):
                continue
            code = reported.code(ch)
            level.device_code = code
            level.logical = device_code_to_logical(code)
            updated.append(ch)
        return updated

    async def run(self) -> None:
        """Poll forever on the fixed interval (cancel the task to stop)."""
        logger.info("State polling every %.0f ms", self.interval * 1000)
        while True:
            await self.tick()
            await asyncio.sleep(self.interval)
