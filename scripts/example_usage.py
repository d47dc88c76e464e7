#!/usr/bin/env python3
"""
Example usage of the DAC light client

This script demonstrates:
- Opening a session to the fixture
- Setting channel levels from the sliders
- Switching to an automatic curve and watching the device drive the levels
- Pinning the curve clock with a time override
- Power off/on with level restore
"""

import asyncio
import sys

# Add src to path so we can import dac_light
sys.path.insert(0, "src")

from dac_light import FixtureConfig, FixtureController


def show(fx: FixtureController) -> None:
    s = fx.surface
    levels = ", ".join(f"CH{ch} {lv.percent}%" for ch, lv in fx.state.channels.items())
    print(f"  {s.mode_label:22s} {s.power_label:10s} {levels}   {s.clock_text}  {s.target_cct_text}")


async def main():
    """Run example fixture control sequence"""

    print("DAC Light Client - Example Usage")
    print("=" * 60)

    async with FixtureController(FixtureConfig(host="192.168.4.1")) as fx:
        # Example 1: Manual levels
        print("\nExample 1: Set CH1 to 200, CH2 to 64")
        fx.set_level(1, 200)
        fx.set_level(2, 64)
        await asyncio.sleep(1.5)
        show(fx)

        # Example 2: Automatic curve, sliders follow the device
        print("\nExample 2: Automatic breathe")
        fx.select_auto("breathe")
        for _ in range(3):
            await asyncio.sleep(1)
            show(fx)

        # Example 3: Pin the curve to 6:30 AM
        print("\nExample 3: Time override at 6:30 AM")
        fx.enable_time_override(6 * 60 + 30)
        await asyncio.sleep(1.5)
        show(fx)
        fx.disable_time_override()

        # Example 4: Power cycle restores the manual levels
        print("\nExample 4: Lights off, then on again")
        fx.set_power(False)
        await asyncio.sleep(1)
        show(fx)
        fx.set_power(True)
        await asyncio.sleep(1)
        show(fx)

        await fx.dispatcher.flush()

    print("\n" + "=" * 60)
    print("Example complete!")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
    except Exception as e:
        print(f"\nError: {e}")
        sys.exit(1)
