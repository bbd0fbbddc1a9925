# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Power states, selectable inputs and lamp query codes used by NEC projectors.

The code spaces for "the input currently shown" (as reported in the get_status
reply) and "the input to select" (as sent with select_input) are different, and
not one-to-one. INPUT_STATE_MAP translates reported tuples into selectable inputs.
"""

from __future__ import annotations

from enum import IntEnum

from ..internal_types import *
from ..exceptions import NecProjectorError
from ..pkg_logging import logger

class PowerState(IntEnum):
    """Power state codes reported in byte 6 of the get_status reply."""

    # Documented
    STANDBY_SLEEP = 0x00
    ON = 0x04
    COOLING = 0x05
    STANDBY_ERROR = 0x06
    STANDBY_POWER_SAVING = 0x0F
    STANDBY_NETWORK = 0x10

    # Undocumented; observed on real devices
    INITIALIZING = 0x01
    STARTING = 0x02
    WARMING = 0x03
    UNKNOWN = 0xFF
    """Reported while the projector is busy processing other commands."""

    # Seen while powering on a model with no lamp installed; it alternates between
    # STARTING and RUNNING_DIAGNOSTIC, hits PANIC, then STARTUP_FAILURE, then STANDBY_SLEEP.
    RUNNING_DIAGNOSTIC = 0x09
    PANIC = 0x0A
    STARTUP_FAILURE = 0x0E

    @classmethod
    def from_code(cls, code: int) -> PowerState:
        """Converts a reported power state code to a PowerState. Codes that are
           not known are mapped to UNKNOWN."""
        try:
            return cls(code)
        except ValueError:
            logger.warning(f"Unrecognized power state code 0x{code:02x}; treating as {cls.UNKNOWN.name}")
            return cls.UNKNOWN

    @property
    def is_operable(self) -> bool:
        """True iff the projector will accept input selection in this state."""
        return self in (PowerState.ON, PowerState.WARMING)

    @property
    def is_standby(self) -> bool:
        return self in _STANDBY_STATES

    def __str__(self) -> str:
        return self.name

_STANDBY_STATES = frozenset([
    PowerState.STANDBY_SLEEP,
    PowerState.STANDBY_NETWORK,
    PowerState.STANDBY_POWER_SAVING,
  ])

def _normalize_name(name: str) -> str:
    return name.replace('_', '').replace('-', '').replace(' ', '').lower()

class Input(IntEnum):
    """Input terminal codes accepted by the select_input command."""

    RGB1 = 0x01
    RGB2 = 0x02
    HDMI1 = 0x1A
    HDMI1_ALTERNATE = 0xA1
    HDMI2 = 0x1B
    HDMI2_ALTERNATE = 0xA2
    VIDEO = 0x06
    DISPLAY_PORT = 0xA6
    HDBASET = 0xBF
    HDBASET_ALTERNATE = 0x20
    NETWORK = 0x20
    """Same code as HDBASET_ALTERNATE; selects the LAN input on models without HDBaseT."""
    SDI = 0xC4
    OTHER = 0x1F
    """Selects the USB-A input. Stands in for the viewer, LAN, slot and apps inputs,
       which cannot be selected individually."""

    @classmethod
    def from_name(cls, name: str) -> Input:
        """Looks up an input by name. Case, underscores and dashes are ignored, so
           "RGB1", "rgb1", "HDMI1Alternate" and "display_port" all resolve."""
        key = _normalize_name(name)
        for member_name, member in cls.__members__.items():
            if _normalize_name(member_name) == key:
                return member
        raise NecProjectorError(f"Unknown input name: '{name}'")

    @classmethod
    def resolve(cls, value: Union[Input, str, int]) -> Input:
        """Converts an Input, input name, or selectable input code to an Input."""
        if isinstance(value, Input):
            return value
        if isinstance(value, str):
            return cls.from_name(value)
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError as e:
                raise NecProjectorError(f"Unknown input code: 0x{value:02x}") from e
        raise NecProjectorError(f"Invalid input specifier type {type(value).__name__}: {value!r}")

    def __str__(self) -> str:
        return self.name

InputStateTuple = Tuple[int, int]

INPUT_STATE_MAP: Dict[InputStateTuple, Input] = {
    (0x01, 0x01): Input.RGB1,
    (0x02, 0x01): Input.RGB2,
    (0x03, 0x01): Input.RGB2,           # COMPUTER 3; few models, several codes in use
    (0x01, 0x06): Input.HDMI1,
    (0x01, 0x21): Input.HDMI1,
    (0x02, 0x06): Input.HDMI2,
    (0x02, 0x21): Input.HDMI2,
    (0x01, 0x20): Input.HDMI2,          # DVI-D
    (0x01, 0x0A): Input.HDMI2,          # Stereo DVI
    (0x01, 0x02): Input.VIDEO,
    (0x01, 0x03): Input.VIDEO,          # S-Video
    (0x03, 0x04): Input.VIDEO,          # YPrPb
    (0x01, 0x22): Input.DISPLAY_PORT,
    (0x02, 0x22): Input.DISPLAY_PORT,   # DisplayPort 2
    (0x01, 0x27): Input.HDBASET,
    (0x01, 0x28): Input.SDI,
    (0x02, 0x28): Input.SDI,            # SDI 2
    (0x03, 0x28): Input.SDI,            # SDI 3
    (0x04, 0x28): Input.SDI,            # SDI 4
    (0x01, 0x07): Input.OTHER,          # Viewer
    (0x02, 0x07): Input.OTHER,          # LAN
    (0x03, 0x06): Input.OTHER,          # Slot
    (0x04, 0x07): Input.OTHER,          # Viewer
    (0x05, 0x07): Input.OTHER,          # Apps
    (0x01, 0x23): Input.OTHER,          # Slot
  }
"""Reported input tuple (get_status bytes 8 and 9) -> selectable Input."""

def input_from_state(state: InputStateTuple) -> Optional[Input]:
    """Returns the selectable Input for a reported input tuple, or None if the
       tuple is not in INPUT_STATE_MAP."""
    return INPUT_STATE_MAP.get((state[0], state[1]))

class LampNumber(IntEnum):
    LAMP_1 = 0x00
    LAMP_2 = 0x01

    @classmethod
    def resolve(cls, value: Union[LampNumber, int]) -> LampNumber:
        try:
            return cls(value)
        except ValueError as e:
            raise NecProjectorError(f"Unknown lamp number: {value!r}") from e

class LampInfo(IntEnum):
    """What to request with the get_lamp_info command."""
    USAGE_TIME_SECONDS = 0x01
    GOOD_FOR_SECONDS = 0x02
    REMAINING_PERCENT = 0x04
    REMAINING_SECONDS = 0x08

    @classmethod
    def resolve(cls, value: Union[LampInfo, int]) -> LampInfo:
        try:
            return cls(value)
        except ValueError as e:
            raise NecProjectorError(f"Unknown lamp information request: {value!r}") from e
