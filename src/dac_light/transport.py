"""
HTTP transport layer for the DAC light client.

Owns the :class:`aiohttp.ClientSession`, resolves endpoint paths against the
device's base URL, applies the request timeout, and maps aiohttp failures
onto the package's exception hierarchy.  Knows nothing about what the
endpoints mean — that's :mod:`protocol`'s job.

Typical usage (via :class:`~dac_light.controller.FixtureController`)::

    transport = HttpTransport("http://192.168.4.1")
    await transport.open()
    body = await transport.get("/state")
    await transport.close()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping

import aiohttp

from .constants import DEFAULT_HOST, DEFAULT_TIMEOUT
from .exceptions import ConnectionError, ResponseError, TimeoutError

logger = logging.getLogger(__name__)


def _normalize_base(host: str) -> str:
    """Return *host* as a base URL without a trailing slash."""
    host = host.strip()
    if "://" not in host:
        host = f"http://{host}"
    return host.rstrip("/")


class HttpTransport:
    """Manages an HTTP session to the fixture's embedded web server.

    Args:
        host: Device address, with or without an ``http://`` scheme.
        timeout: Total per-request timeout in seconds.
    """

    def __init__(self, host: str = DEFAULT_HOST, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.base_url = _normalize_base(host)
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    # -- Lifecycle ----------------------------------------------------------

    async def open(self) -> None:
        """Create the HTTP session (closing any previous one first)."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        logger.info("Opening HTTP session to %s", self.base_url)
        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        )

    async def close(self) -> None:
        """Close the HTTP session (safe to call multiple times)."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
            logger.info("HTTP session to %s closed", self.base_url)

    @property
    def is_open(self) -> bool:
        """Return ``True`` if the HTTP session is currently usable."""
        return self._session is not None and not self._session.closed

    # -- I/O ----------------------------------------------------------------

    async def get(self, path: str, params: Mapping[str, int | str] | None = None) -> str:
        """Issue ``GET path`` and return the response body as text.

        Args:
            path: Endpoint path, e.g. ``/dac``.
            params: Optional query parameters.

        Returns:
            The decoded response body, whitespace stripped.  Bytes that do
            not decode are replaced, so a garbled body surfaces as a parse
            error in :mod:`protocol` rather than a decode crash here.

        Raises:
            ConnectionError: If the session is not open or the request fails.
            TimeoutError: If no response arrives within :attr:`timeout`.
            ResponseError: If the device answers with an HTTP error status.
        """
        session = self._require_open()
        url = f"{self.base_url}{path}"
        logger.debug("TX: GET %s %s", path, dict(params or {}))

        try:
            async with session.get(url, params=params) as resp:
                if resp.status >= 400:
                    raise ResponseError(f"HTTP {resp.status} for {path}")
                body = await resp.text(errors="replace")
        except asyncio.TimeoutError as exc:
            raise TimeoutError(f"No response from device for {path}") from exc
        except aiohttp.ClientError as exc:
            raise ConnectionError(f"Request to {path} failed: {exc}") from exc

        body = body.strip()
        logger.debug("RX: %s -> %r", path, body)
        return body

    # -- Internal -----------------------------------------------------------

    def _require_open(self) -> aiohttp.ClientSession:
        """Return the open session or raise."""
        if not self.is_open:
            raise ConnectionError("HTTP session not open — call open() first.")
        assert self._session is not None  # for type-checker
        return self._session
