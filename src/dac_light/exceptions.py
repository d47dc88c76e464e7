"""
Exception hierarchy for the DAC light client.

All exceptions inherit from :class:`DacLightError` so callers can catch
broadly (``except DacLightError``) or narrowly (``except TimeoutError``).
"""


class DacLightError(Exception):
    """Base exception for all DAC light client errors."""


class ConnectionError(DacLightError):  # noqa: A001 – intentional shadow of builtin
    """Raised when the HTTP session is unavailable or a request cannot complete."""


class TimeoutError(DacLightError):  # noqa: A001 – intentional shadow of builtin
    """Raised when the device does not respond within the configured timeout."""


class ResponseError(DacLightError):
    """Raised when the device answers with an error status or an unparseable body."""


class ValidationError(DacLightError):
    """Raised when an argument fails pre-send validation."""
