# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

from ..internal_types import *
from ..exceptions import NecProjectorError
from .checksum import checksum, append_checksum
from .constants import WILDCARD, SUCCESS_NIBBLE, FAILURE_NIBBLE, ERROR_CODE_OFFSET
from .command_meta import CommandMeta, get_all_commands, name_to_command_meta

UNKNOWN_RESPONSE_NAME = "unknown"

class NecResponse:
    """A reply from an NEC projector, or a named reply template.

    Replies are flat byte arrays. Success replies look like:

        <2x> <cmd byte 1> <id 1> <id 2> <data length> <data...> <checksum>

    Failure replies look like:

        <Ax> <cmd byte 1> <id 1> <id 2> 02 <error byte 1> <error byte 2> <checksum>

    Templates use the WILDCARD byte at positions whose content is irrelevant.
    """
    raw_data: bytes
    name: Optional[str]
    """Diagnostic name; for templates, e.g. "get_status_success"."""
    command_name: Optional[str]
    """Name of the command this is a reply to, if known."""

    def __init__(
            self,
            raw_data: bytes,
            name: Optional[str]=None,
            command_name: Optional[str]=None,
          ):
        self.raw_data = bytes(raw_data)
        self.name = name
        self.command_name = command_name

    @property
    def indicates_success(self) -> bool:
        return len(self.raw_data) > 0 and (self.raw_data[0] >> 4) == SUCCESS_NIBBLE

    @property
    def indicates_failure(self) -> bool:
        return len(self.raw_data) > 0 and (self.raw_data[0] >> 4) == FAILURE_NIBBLE

    @property
    def error_code(self) -> Optional[Tuple[int, int]]:
        """(error byte 1, error byte 2) of a failure reply; None for anything else"""
        if not self.indicates_failure or len(self.raw_data) < ERROR_CODE_OFFSET + 2:
            return None
        return (self.raw_data[ERROR_CODE_OFFSET], self.raw_data[ERROR_CODE_OFFSET + 1])

    @property
    def checksum_valid(self) -> bool:
        """True iff the last byte is the checksum of the bytes before it"""
        if len(self.raw_data) < 2:
            return False
        return checksum(self.raw_data[:-1]) == self.raw_data[-1]

    def matches(self, other: Union[NecResponse, bytes]) -> bool:
        """Returns True iff other has the same length and every byte position is
           equal, or is WILDCARD on either side."""
        other_data = other.raw_data if isinstance(other, NecResponse) else bytes(other)
        if len(other_data) != len(self.raw_data):
            return False
        for a, b in zip(self.raw_data, other_data):
            if a != b and a != WILDCARD and b != WILDCARD:
                return False
        return True

    def matching_template_name(self) -> str:
        """Returns the name of the first reply template this matches, or "unknown"."""
        return get_matching_response_name(self)

    def __len__(self) -> int:
        return len(self.raw_data)

    def __getitem__(self, index: int) -> int:
        return self.raw_data[index]

    def __str__(self) -> str:
        name = self.name if self.name is not None else self.command_name
        return f"NecResponse({name}: [{self.raw_data.hex(' ')}])"

    def __repr__(self) -> str:
        return str(self)

def _make_template(prefix: bytes, length: int) -> bytes:
    return prefix + bytes([WILDCARD]) * (length - len(prefix))

def success_template(command_meta: CommandMeta) -> NecResponse:
    return NecResponse(
        _make_template(command_meta.success_response_prefix, command_meta.success_response_length),
        name=f"{command_meta.name}_success",
        command_name=command_meta.name,
      )

def failure_template(command_meta: CommandMeta) -> NecResponse:
    return NecResponse(
        _make_template(command_meta.failure_response_prefix, command_meta.failure_response_length),
        name=f"{command_meta.name}_failure",
        command_name=command_meta.name,
      )

# All success templates in catalog order, then all failure templates in catalog order.
# get_status and get_serial_number share a failure pattern, so a serial number failure
# is always reported as get_status_failure.
response_templates: List[NecResponse] = (
    [ success_template(meta) for meta in get_all_commands() ] +
    [ failure_template(meta) for meta in get_all_commands() ]
  )

response_templates_by_name: Dict[str, NecResponse] = { t.name: t for t in response_templates }

def get_response_template(name: str) -> NecResponse:
    """Returns a reply template by name, e.g. "select_input_success"."""
    result = response_templates_by_name.get(name)
    if result is None:
        raise NecProjectorError(f"Unknown response template name: '{name}'")
    return result

def get_matching_response_name(response: Union[NecResponse, bytes]) -> str:
    """Returns the name of the first template in catalog order that matches
       response, or "unknown". For diagnostics only."""
    for template in response_templates:
        if template.matches(response):
            assert template.name is not None
            return template.name
    return UNKNOWN_RESPONSE_NAME

def is_success_response_for(response: NecResponse, command_name: str) -> bool:
    """True iff response matches the success template of the named command."""
    return get_response_template(f"{command_name}_success").matches(response)

def create_success_response(command_name: str, data: bytes=b'', projector_id: bytes=b'\x00\x00') -> NecResponse:
    """Builds a well-formed success reply for a command. data replaces the bytes following the
       template's fixed prefix and must fill the reply exactly up to the checksum.
       Used by the emulator and tests."""
    meta = name_to_command_meta(command_name)
    prefix = bytes(meta.success_response_prefix[:2]) + projector_id + bytes(meta.success_response_prefix[4:])
    body = prefix + data
    if len(body) != meta.success_response_length - 1:
        raise NecProjectorError(
            f"Invalid data length {len(data)} for {command_name} success reply; need {meta.success_response_length - 1 - len(prefix)}")
    return NecResponse(append_checksum(body), command_name=command_name)

def create_failure_response(command_name: str, error_code: Tuple[int, int], projector_id: bytes=b'\x00\x00') -> NecResponse:
    """Builds a well-formed failure reply for a command. Used by the emulator and tests."""
    meta = name_to_command_meta(command_name)
    body = (
        bytes(meta.failure_response_prefix[:2]) +
        projector_id +
        bytes(meta.failure_response_prefix[4:]) +
        bytes(error_code)
      )
    return NecResponse(append_checksum(body), command_name=command_name)
