"""
Client configuration loaded from a YAML file.

Both the CLI script and embedding code can use this directly::

    from dac_light.config import load_config

    config = load_config("config/fixture_config.yaml")
    async with FixtureController(config) as fixture:
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .constants import (
    CHANNELS,
    CLOCK_RESYNC_S,
    CLOCK_SETTLE_S,
    DEBOUNCE_S,
    DEFAULT_AUTO_MODES,
    DEFAULT_HOST,
    DEFAULT_LAST_ON,
    DEFAULT_TIMEOUT,
    DISPLAY_INTERVAL_S,
    LOGICAL_MAX,
    MODE_MANUAL,
    MODE_MANUAL_OVERRIDE,
    POLL_INTERVAL_S,
)
from .exceptions import ValidationError
from .protocol import MODE_NAME_PATTERN

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _default_levels() -> dict[int, int]:
    return {ch: DEFAULT_LAST_ON for ch in CHANNELS}


@dataclass(frozen=True)
class FixtureConfig:
    """Validated client configuration."""

    host: str = DEFAULT_HOST
    timeout_s: float = DEFAULT_TIMEOUT
    debounce_s: float = DEBOUNCE_S
    poll_interval_s: float = POLL_INTERVAL_S
    clock_resync_s: float = CLOCK_RESYNC_S
    clock_settle_s: float = CLOCK_SETTLE_S
    display_interval_s: float = DISPLAY_INTERVAL_S
    auto_modes: tuple[str, ...] = DEFAULT_AUTO_MODES
    default_auto_mode: str = DEFAULT_AUTO_MODES[0]
    initial_levels: dict[int, int] = field(default_factory=_default_levels)
    log_level: str = "INFO"


# ---------------------------------------------------------------------------
# Loading & validation
# ---------------------------------------------------------------------------


def load_config(path: str | Path) -> FixtureConfig:
    """Load and validate a client configuration from a YAML file.

    Args:
        path: Path to the YAML config file.

    Returns:
        A validated :class:`FixtureConfig`.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValidationError: If the config is malformed or contains invalid values.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValidationError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    config = parse_config(raw)
    logger.debug("Loaded config from %s: host=%s", path, config.host)
    return config


def parse_config(raw: dict) -> FixtureConfig:
    """Validate an already-decoded config mapping."""
    host = raw.get("host")
    if not isinstance(host, str) or not host.strip():
        raise ValidationError("Config must specify a non-empty 'host' string")

    auto_modes = _parse_auto_modes(raw.get("auto_modes", list(DEFAULT_AUTO_MODES)))
    default_auto = raw.get("default_auto_mode", auto_modes[0])
    if default_auto not in auto_modes:
        raise ValidationError(
            f"'default_auto_mode' must be one of {list(auto_modes)}, got {default_auto!r}"
        )

    log_level = raw.get("log_level", "INFO")
    if not isinstance(log_level, str) or log_level.upper() not in _LOG_LEVELS:
        raise ValidationError(f"'log_level' must be one of {list(_LOG_LEVELS)}, got {log_level!r}")

    return FixtureConfig(
        host=host.strip(),
        timeout_s=_positive_number(raw, "timeout_s", DEFAULT_TIMEOUT),
        debounce_s=_positive_number(raw, "debounce_ms", DEBOUNCE_S * 1000) / 1000,
        poll_interval_s=_positive_number(raw, "poll_interval_ms", POLL_INTERVAL_S * 1000) / 1000,
        clock_resync_s=_positive_number(raw, "clock_resync_s", CLOCK_RESYNC_S),
        clock_settle_s=_positive_number(raw, "clock_settle_ms", CLOCK_SETTLE_S * 1000) / 1000,
        display_interval_s=_positive_number(raw, "display_interval_s", DISPLAY_INTERVAL_S),
        auto_modes=auto_modes,
        default_auto_mode=default_auto,
        initial_levels=_parse_levels(raw.get("initial_levels", _default_levels())),
        log_level=log_level.upper(),
    )


def _positive_number(raw: dict, key: str, default: float) -> float:
    val = raw.get(key, default)
    if isinstance(val, bool) or not isinstance(val, (int, float)) or val <= 0:
        raise ValidationError(f"'{key}' must be a positive number, got {val!r}")
    return float(val)


def _parse_auto_modes(val: object) -> tuple[str, ...]:
    if not isinstance(val, list) or not val:
        raise ValidationError("'auto_modes' must be a non-empty list of mode names")
    modes = []
    for mode in val:
        if not isinstance(mode, str) or not MODE_NAME_PATTERN.match(mode):
            raise ValidationError(f"Invalid automatic mode name {mode!r}")
        if mode in (MODE_MANUAL, MODE_MANUAL_OVERRIDE):
            raise ValidationError(f"'{mode}' is not an automatic mode")
        modes.append(mode)
    return tuple(modes)


def _parse_levels(val: object) -> dict[int, int]:
    if not isinstance(val, dict):
        raise ValidationError("'initial_levels' must be a mapping of channel to level")
    levels = {ch: 0 for ch in CHANNELS}
    for ch_key, level in val.items():
        try:
            channel = int(ch_key)
        except (ValueError, TypeError) as exc:
            raise ValidationError(f"Channel key must be an integer, got {ch_key!r}") from exc
        if channel not in CHANNELS:
            raise ValidationError(f"Channel must be one of {list(CHANNELS)}, got {channel}")
        if isinstance(level, bool) or not isinstance(level, int) or not (0 <= level <= LOGICAL_MAX):
            raise ValidationError(f"Channel {channel}: level must be 0-{LOGICAL_MAX}, got {level!r}")
        levels[channel] = level
    return levels
