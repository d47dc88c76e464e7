#!/usr/bin/env python3
"""
Fixture CLI — Interactive control surface for a two-channel DAC light.

The session keeps polling the device, resyncing its clock and refreshing
the readouts in the background while the menu waits for input.

Usage:
    python scripts/fixture_cli.py
    python scripts/fixture_cli.py --host 192.168.4.1
    python scripts/fixture_cli.py --config config/fixture_config.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

# Add src to path so we can import without installing
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from dac_light import (
    DacLightError,
    FixtureConfig,
    FixtureController,
    load_config,
    logical_to_device_code,
)
from dac_light.clock import minutes_to_label

# ═══════════════════════════════════════
#  Terminal helpers
# ═══════════════════════════════════════


class C:
    """ANSI color codes (no-op on non-TTY)."""

    if sys.stdout.isatty():
        BOLD = "\033[1m"
        DIM = "\033[2m"
        GREEN = "\033[32m"
        YELLOW = "\033[33m"
        RED = "\033[31m"
        CYAN = "\033[36m"
        RESET = "\033[0m"
    else:
        BOLD = DIM = GREEN = YELLOW = RED = CYAN = RESET = ""


def banner(text: str) -> None:
    print(f"\n{C.BOLD}{'═' * 60}")
    print(f"  {text}")
    print(f"{'═' * 60}{C.RESET}")


def info(text: str) -> None:
    print(f"  {C.GREEN}✓{C.RESET} {text}")


def warn(text: str) -> None:
    print(f"  {C.YELLOW}⚠{C.RESET} {text}")


def error(text: str) -> None:
    print(f"  {C.RED}✗{C.RESET} {text}")


async def prompt(text: str, default: str = "") -> str:
    """Read a line without blocking the event loop."""
    suffix = f" [{default}]" if default else ""
    try:
        val = await asyncio.to_thread(input, f"  {text}{suffix}: ")
    except EOFError:
        return default
    val = val.strip()
    return val if val else default


async def prompt_int(text: str, default: int | None = None) -> int | None:
    """Prompt for an integer.  Returns None on empty input with no default."""
    raw = await prompt(text, str(default) if default is not None else "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        error(f"Invalid number: {raw}")
        return None


def parse_clock(raw: str) -> int | None:
    """Parse ``HH:MM`` (24-hour) into minutes past midnight."""
    try:
        hours, minutes = (int(part) for part in raw.split(":", 1))
    except ValueError:
        return None
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        return None
    return hours * 60 + minutes


# ═══════════════════════════════════════
#  Menu actions
# ═══════════════════════════════════════


def do_status(fx: FixtureController) -> None:
    """Print the control surface as it currently stands."""
    banner("Status")
    s = fx.surface
    print(f"  {s.clock_text}    Target: {s.target_cct_text}")
    print(f"  Mode:   {s.mode_label}")
    print(f"  Power:  {s.power_label}")
    lock = "" if s.sliders_enabled else f"  {C.DIM}(following device){C.RESET}"
    for ch, level in fx.state.channels.items():
        code = f"code {level.device_code:g}" if level.device_code is not None else "code --"
        print(f"  CH{ch}:   {level.logical:3d}  {level.percent:3d}%  {C.DIM}{code}{C.RESET}{lock}")
    override = "ON" if fx.state.override.active else "off"
    print(f"  Time override: {override} ({s.manual_time_label})")


async def do_set_level(fx: FixtureController) -> None:
    """Move one channel slider."""
    if not fx.surface.sliders_enabled:
        warn("Sliders are locked (automatic mode, time override or lights off).")
        return
    ch = await prompt_int("Channel (1/2)", default=1)
    if ch not in fx.state.channels:
        error(f"Invalid channel: {ch}")
        return
    value = await prompt_int("Level 0-255", default=fx.state.channels[ch].logical)
    if value is None or not (0 <= value <= 255):
        error("Level must be 0-255.")
        return
    if fx.set_level(ch, value):
        info(f"CH{ch} -> {value} (expected DAC code {logical_to_device_code(value)})")


def do_toggle_power(fx: FixtureController) -> None:
    fx.toggle_power()
    info(fx.surface.power_label)


async def do_mode(fx: FixtureController) -> None:
    """Switch between manual and the automatic curves."""
    banner("Mode")
    print("    0) manual")
    for i, mode in enumerate(fx.machine.auto_modes, start=1):
        print(f"    {i}) {mode}")
    choice = await prompt_int("Mode", default=0)
    if choice == 0:
        fx.select_manual()
    elif choice is not None and 1 <= choice <= len(fx.machine.auto_modes):
        mode = fx.machine.auto_modes[choice - 1]
        fx.choose_auto_mode(mode)
        fx.select_auto()
    else:
        error(f"Invalid mode: {choice}")
        return
    info(fx.surface.mode_label)


async def do_time_override(fx: FixtureController) -> None:
    """Pin the device curve to a chosen time of day, or release it."""
    if not fx.surface.manual_time_toggle_enabled:
        warn("Turn the lights on first.")
        return
    if fx.state.override.active:
        fx.disable_time_override()
        info("Time override cleared — back to device clock.")
        return
    raw = await prompt("Time of day (HH:MM, 24h)", default="12:00")
    minutes = parse_clock(raw)
    if minutes is None:
        error(f"Invalid time: {raw}")
        return
    fx.enable_time_override(minutes)
    info(f"Curve pinned to {minutes_to_label(minutes)}")


async def do_watch(fx: FixtureController) -> None:
    """Print the readout once a second until Enter is pressed."""
    print(f"  {C.DIM}Press Enter to stop...{C.RESET}")
    stop = asyncio.ensure_future(asyncio.to_thread(sys.stdin.readline))
    while not stop.done():
        s = fx.surface
        levels = "  ".join(
            f"CH{ch} {lv.percent:3d}%" for ch, lv in fx.state.channels.items()
        )
        print(f"\r  {s.clock_text}  {s.target_cct_text}  {levels}  ", end="", flush=True)
        await asyncio.wait({stop}, timeout=1.0)
    print()


# ═══════════════════════════════════════
#  Main loop
# ═══════════════════════════════════════

MENU = [
    ("1", "Status", "Show mode, power, levels and clock"),
    ("2", "Set Level", "Move a channel slider"),
    ("3", "Power", "Toggle the lights"),
    ("4", "Mode", "Manual or an automatic curve"),
    ("5", "Time Override", "Pin or release the curve clock"),
    ("6", "Watch", "Live readout"),
    ("q", "Quit", "Close the session and exit"),
]

ACTIONS = {
    "1": do_status,
    "2": do_set_level,
    "3": do_toggle_power,
    "4": do_mode,
    "5": do_time_override,
    "6": do_watch,
}


def main_menu() -> None:
    line = "─" * 50
    print(f"\n{C.BOLD}  Fixture Menu{C.RESET}")
    print(f"  {C.DIM}{line}{C.RESET}")
    for key, label, desc in MENU:
        print(f"    {C.CYAN}{key}{C.RESET})  {label:16s} {C.DIM}— {desc}{C.RESET}")
    print()


async def run(config: FixtureConfig) -> None:
    banner("DAC Light Control")
    print(f"  Fixture at {config.host}")

    async with FixtureController(config) as fx:
        info(f"Session open to {config.host}")
        while True:
            main_menu()
            choice = (await prompt("Choice", "q")).lower()
            if choice == "q":
                break
            action = ACTIONS.get(choice)
            if action is None:
                error(f"Unknown option: {choice}")
                continue
            try:
                result = action(fx)
                if asyncio.iscoroutine(result):
                    await result
            except DacLightError as exc:
                error(f"Failed: {exc}")
        await fx.dispatcher.flush()
    info("Session closed. Goodbye!")


def main() -> None:
    parser = argparse.ArgumentParser(description="Interactive control for a DAC light fixture")
    parser.add_argument("--host", help="Device address (overrides the config file)")
    parser.add_argument("--config", type=Path, help="YAML config file")
    parser.add_argument("--log-level", help="Logging level (default: from config, else INFO)")
    args = parser.parse_args()

    try:
        config = load_config(args.config) if args.config else FixtureConfig()
    except (FileNotFoundError, DacLightError) as exc:
        error(f"Cannot load config: {exc}")
        sys.exit(1)
    if args.host:
        config = replace(config, host=args.host)

    logging.basicConfig(
        level=(args.log_level or config.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        print(f"\n\n  {C.YELLOW}Interrupted!{C.RESET}")


if __name__ == "__main__":
    main()
