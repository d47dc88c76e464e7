"""DAC Light fixture client Python interface"""

from .config import FixtureConfig, load_config
from .constants import (
    DEFAULT_AUTO_MODES,
    MODE_MANUAL,
    MODE_MANUAL_OVERRIDE,
)
from .controller import FixtureController, get_controller
from .conversion import device_code_to_logical, logical_to_device_code, to_percent
from .exceptions import (
    ConnectionError,
    DacLightError,
    ResponseError,
    TimeoutError,
    ValidationError,
)
from .protocol import DeviceState
from .state import ControlSurface, FixtureState, sliders_authoritative

__all__ = [
    "ConnectionError",
    "ControlSurface",
    "DEFAULT_AUTO_MODES",
    "DacLightError",
    "DeviceState",
    "FixtureConfig",
    "FixtureController",
    "FixtureState",
    "MODE_MANUAL",
    "MODE_MANUAL_OVERRIDE",
    "ResponseError",
    "TimeoutError",
    "ValidationError",
    "device_code_to_logical",
    "get_controller",
    "load_config",
    "logical_to_device_code",
    "sliders_authoritative",
    "to_percent",
]
__version__ = "0.1.0"
