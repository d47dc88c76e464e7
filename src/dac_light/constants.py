"""Shared runtime constants for the DAC light client.

This is the canonical source of truth for device limits, the output
voltage map and client timing defaults.  Other modules should import from
here rather than defining their own copies.
"""

# ---------------------------------------------------------------------------
# Device limits
# ---------------------------------------------------------------------------

CHANNELS = (1, 2)
LOGICAL_MAX = 255
DAC_FULL = 255.0

# Firmware output map: code 0 -> 0 V, codes 1..255 -> V_MIN..V_MAX
V_MIN = 0.5
V_MAX = 3.3

DAY_MINUTES = 24 * 60

# ---------------------------------------------------------------------------
# Operating modes
# ---------------------------------------------------------------------------

MODE_MANUAL = "manual"
MODE_MANUAL_OVERRIDE = "manual_override"
DEFAULT_AUTO_MODES = ("blink", "breathe", "step")

DEFAULT_LAST_ON = 128

# ---------------------------------------------------------------------------
# Client / runtime defaults
# ---------------------------------------------------------------------------

DEFAULT_HOST = "http://192.168.4.1"
DEFAULT_TIMEOUT = 2.0

DEBOUNCE_S = 0.035
POLL_INTERVAL_S = 0.3
CLOCK_RESYNC_S = 5 * 60.0
CLOCK_SETTLE_S = 0.3
DISPLAY_INTERVAL_S = 1.0
