# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Tables that translate NEC projector error replies into human-readable text.

Two kinds of errors are reported by the projector:

  * Command errors, carried in bytes 5 and 6 of any failure reply.
  * Internal faults, carried as a bitfield in bytes 5..13 of the get_errors
    success reply. Some bit positions are reserved; they are present in the table
    with a description of None and are never reported.
"""

from __future__ import annotations

from ..internal_types import *
from ..exceptions import NecProjectorError, NecProjectorCommandError, InternalFault
from .constants import FAULT_BITFIELD_OFFSET, FAULT_BITFIELD_LENGTH, ERROR_CODE_OFFSET

if TYPE_CHECKING:
    from .response import NecResponse

UNKNOWN_ERROR_MESSAGE = "Unknown error"

COMMAND_ERROR_MESSAGES: Dict[Tuple[int, int], str] = {
    (0x00, 0x00): "The command cannot be recognized.",
    (0x00, 0x01): "The command is not supported by the model in use.",
    (0x01, 0x00): "The specified value is invalid.",
    (0x01, 0x01): "The specified input terminal is invalid.",
    (0x01, 0x02): "The specified language is invalid.",
    (0x02, 0x00): "Memory allocation error",
    (0x02, 0x02): "Memory in use",
    (0x02, 0x03): "The specified value cannot be set. (Has the device finished powering on yet?)",
    (0x02, 0x04): "Forced onscreen mute on",
    (0x02, 0x06): "Viewer error",
    (0x02, 0x07): "No signal",
    (0x02, 0x08): "A test pattern is displayed.",
    (0x02, 0x09): "No PC card is inserted.",
    (0x02, 0x0A): "Memory operation error",
    (0x02, 0x0C): "An entry list is displayed.",
    (0x02, 0x0D): "The command cannot be accepted because the power is off.",
    (0x02, 0x0E): "The command execution failed.",
    (0x02, 0x0F): "There is no authority necessary for the operation.",
    (0x03, 0x00): "The specified gain number is incorrect.",
    (0x03, 0x01): "The specified gain is invalid.",
    (0x03, 0x02): "Adjustment failed.",
  }
"""(error byte 1, error byte 2) -> canonical message for command failure replies."""

INTERNAL_FAULTS: Dict[int, Dict[int, Optional[str]]] = {
    0: {
        0x80: "Lamp 1 must be replaced (exceeded maximum hours)",
        0x40: "Lamp 1 failed to light",
        0x20: "Power error",
        0x10: "Fan error",
        0x08: "Fan error",
        0x04: None,
        0x02: "Temperature error (bi-metallic strip)",
        0x01: "Lamp cover error",
      },
    1: {
        0x80: "Refer to extended error status",
        0x40: None,
        0x20: None,
        0x10: None,
        0x08: None,
        0x04: "Lamp 2 failed to light",
        0x02: "Formatter error",
        0x01: "Lamp 1 needs replacing soon",
      },
    2: {
        0x80: "Lamp 2 needs replacing soon",
        0x40: "Lamp 2 must be replaced (exceeded maximum hours)",
        0x20: "Mirror cover error",
        0x10: "Lamp 1 data error",
        0x08: "Lamp 1 not present",
        0x04: "Temperature error (sensor)",
        0x02: "FPGA error",
        0x01: None,
      },
    3: {
        0x80: "The lens is not installed properly",
        0x40: "Iris calibration error",
        0x20: "Ballast communication error",
        0x10: None,
        0x08: "Foreign matter sensor error",
        0x04: "Temperature error due to dust",
        0x02: "Lamp 2 data error",
        0x01: "Lamp 2 not present",
      },
    8: {
        0x80: None,
        0x40: None,
        0x20: None,
        0x10: None,
        0x08: "System error has occurred (formatter)",
        0x04: "System error has occurred (slave CPU)",
        0x02: "The interlock switch is open",
        0x01: "The portrait cover side is up",
      },
  }
"""Fault bitfield byte index (relative to reply byte 5) -> bit mask -> description.
   None marks a reserved bit."""

def lookup_command_error(byte1: int, byte2: int) -> Optional[str]:
    """Returns the canonical message for a command error code, or None if the code
       is not documented."""
    return COMMAND_ERROR_MESSAGES.get((byte1, byte2))

def command_error_for(
        byte1: int,
        byte2: int,
        custom_message: Optional[str]=None,
        command_name: Optional[str]=None,
      ) -> NecProjectorCommandError:
    """Builds the exception for a command error code.

    The table lookup is always performed, so the result's is_known attribute tells
    whether the code is documented even when custom_message overrides the text.
    """
    canonical = lookup_command_error(byte1, byte2)
    message = custom_message
    if message is None:
        message = UNKNOWN_ERROR_MESSAGE if canonical is None else canonical
    return NecProjectorCommandError(
        message,
        error_code=(byte1, byte2),
        command_name=command_name,
        is_known=canonical is not None,
      )

def command_error_from_response(
        response: NecResponse,
        custom_message: Optional[str]=None,
      ) -> NecProjectorCommandError:
    """Builds the exception for a failure reply."""
    raw_data = response.raw_data
    if len(raw_data) < ERROR_CODE_OFFSET + 2:
        return NecProjectorCommandError(
            custom_message or f"Truncated failure reply: [{raw_data.hex(' ')}]",
            command_name=response.command_name,
          )
    return command_error_for(
        raw_data[ERROR_CODE_OFFSET],
        raw_data[ERROR_CODE_OFFSET + 1],
        custom_message=custom_message,
        command_name=response.command_name,
      )

def decode_internal_faults(response: Union[NecResponse, bytes]) -> List[InternalFault]:
    """Decodes the fault bitfield of a get_errors success reply.

    Reserved bits are skipped, whether set or not.
    """
    raw_data = response if isinstance(response, (bytes, bytearray)) else response.raw_data
    min_length = FAULT_BITFIELD_OFFSET + FAULT_BITFIELD_LENGTH
    if len(raw_data) < min_length:
        raise NecProjectorError(
            f"Error status reply too short ({len(raw_data)} bytes, need {min_length}): [{bytes(raw_data).hex(' ')}]")
    result: List[InternalFault] = []
    for byte_index, bits in INTERNAL_FAULTS.items():
        value = raw_data[FAULT_BITFIELD_OFFSET + byte_index]
        for bit_mask, description in bits.items():
            if description is not None and (value & bit_mask) != 0:
                result.append(InternalFault(byte_index, bit_mask, description))
    return result
