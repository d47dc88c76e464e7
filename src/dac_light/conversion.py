"""
Unit conversion between the device's DAC code domain and the UI's logical
slider domain.

The firmware drives each channel through a DAC whose code 0 means "off"
and whose codes 1..255 are spread linearly over ``V_MIN..V_MAX`` volts of a
``0..V_MAX`` full scale.  The UI works in a logical 0..255 range that is
linear in the percentage shown to the user.  Decoding a DAC code back to a
logical value is lossy near the bottom of the range (the dead zone between
code 0 and code 1), and that approximation is accepted here.
"""

from __future__ import annotations

import math

from .constants import DAC_FULL, LOGICAL_MAX, V_MAX, V_MIN


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: int, low: int = 0, high: int = LOGICAL_MAX) -> int:
    return max(low, min(high, value))


def to_percent(logical: float) -> int:
    """Return *logical* (0..255) as a rounded 0..100 percentage."""
    return max(0, min(100, _round_half_up((logical / LOGICAL_MAX) * 100)))


def device_code_to_logical(
    code: float,
    v_min: float = V_MIN,
    v_max: float = V_MAX,
    full_scale: float = DAC_FULL,
) -> int:
    """Map a DAC output code reported by the device back to a slider value.

    The code is first turned into the voltage the DAC produces for it, and
    that voltage is then placed on the ``v_min..v_max`` span the firmware
    uses for slider values 1..255.  Codes at or below zero decode to 0, and
    anything that cannot produce a finite result (a zero span, a NaN code)
    also decodes to 0.  The result is always clamped to ``0..255``.
    """
    if code <= 0:
        return 0
    span = v_max - v_min
    if span == 0 or full_scale == 0:
        return 0
    volts = (code / full_scale) * v_max
    slider = ((volts - v_min) / span) * full_scale
    if not math.isfinite(slider):
        return 0
    return _clamp(_round_half_up(slider))


def logical_to_device_code(
    logical: int,
    v_min: float = V_MIN,
    v_max: float = V_MAX,
    full_scale: float = DAC_FULL,
) -> int:
    """Model of the firmware's forward map from slider value to DAC code.

    The device owns the real mapping; this mirror exists for diagnostics
    and to check that :func:`device_code_to_logical` lands within one
    quantization step of the value that was sent.
    """
    logical = _clamp(int(logical))
    if logical == 0 or v_max == 0:
        return 0
    volts = v_min + (logical / LOGICAL_MAX) * (v_max - v_min)
    return _clamp(_round_half_up((volts / v_max) * full_scale))
