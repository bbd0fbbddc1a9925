#!/usr/bin/env python3

"""
NEC projector known command codes and metadata.

This module contains the command templates supported by this package and the
expected shape of the projector's reply to each one, as described in NEC's
"Projector Control Command Reference Manual" and its appendix.

Only the commands needed for power, input selection, mute, volume and
diagnostics are included; the vendor protocol has many more.

There is no protocol implementation here; only metadata about the protocol.
"""
from __future__ import annotations

from ..internal_types import *
from ..exceptions import NecProjectorError
from .constants import WILDCARD, SUCCESS_NIBBLE, FAILURE_NIBBLE

FAILURE_RESPONSE_LENGTH = 8
"""Every failure reply documented for the supported commands is 8 bytes long."""

class CommandMeta:
    """Metadata for a single command"""

    name: str
    """Name of the command, unique in the catalog."""

    ordinal: int
    """Position of the command in the catalog, starting at 1."""

    template: bytes
    """The fixed command bytes. Arguments (and then a checksum) are appended to a
       copy of this when the command is prepared."""

    payload_length: int
    """Number of argument bytes the command takes. 0 for commands without arguments."""

    success_response_prefix: bytes
    """Leading bytes of the success reply. May contain WILDCARD bytes."""

    success_response_length: int
    """Total length in bytes of the success reply, including its checksum."""

    failure_response_prefix: bytes
    """Leading bytes of the failure reply. May contain WILDCARD bytes."""

    failure_response_length: int
    """Total length in bytes of the failure reply, including its checksum."""

    description: Optional[str]

    def __init__(
            self,
            name: str,
            ordinal: int,
            template: bytes,
            success_response_prefix: bytes,
            success_response_length: int,
            payload_length: int=0,
            failure_response_length: int=FAILURE_RESPONSE_LENGTH,
            description: Optional[str]=None,
          ):
        assert len(template) >= 2
        assert len(success_response_prefix) <= success_response_length
        self.name = name
        self.ordinal = ordinal
        self.template = bytes(template)
        self.payload_length = payload_length
        self.success_response_prefix = bytes(success_response_prefix)
        self.success_response_length = success_response_length
        # Failure replies echo the command's two header bytes with the failure nibble set,
        # followed by 2 id bytes, a data length of 2, and the 2 error code bytes.
        self.failure_response_prefix = bytes([
            (FAILURE_NIBBLE << 4) | (template[0] & 0x0F),
            template[1],
            WILDCARD,
            WILDCARD,
            0x02,
          ])
        self.failure_response_length = failure_response_length
        self.description = description

    @property
    def command_length(self) -> int:
        """Total length of the prepared command, including the checksum if there are arguments."""
        if self.payload_length == 0:
            return len(self.template)
        return len(self.template) + self.payload_length + 1

    def expected_response_length(self, first_byte: int) -> Optional[int]:
        """Returns the expected reply length given the first byte of the reply, or None
           if the first byte is neither a success nor a failure byte."""
        nibble = first_byte >> 4
        if nibble == SUCCESS_NIBBLE:
            return self.success_response_length
        if nibble == FAILURE_NIBBLE:
            return self.failure_response_length
        return None

    def __str__(self) -> str:
        return f"CommandMeta({self.name}: [{self.template.hex(' ')}])"

    def __repr__(self) -> str:
        return str(self)

_C = CommandMeta

# Success reply prefixes: first byte has the success nibble, second byte echoes the
# command's second byte, then 2 projector id bytes (wildcarded), then the data length.
# Where a reply echoes more fixed bytes, they are included.
_command_metas: List[CommandMeta] = [
    _C("power_on", 1, b'\x02\x00\x00\x00\x00\x02',
        b'\x22\x00**\x00', 6, description="Power - On"),
    _C("power_off", 2, b'\x02\x01\x00\x00\x00\x03',
        b'\x22\x01**\x00', 6, description="Power - Off"),
    _C("select_input", 3, b'\x02\x03\x00\x00\x02\x01',
        b'\x22\x03**\x01', 7, payload_length=1, description="Input switch change"),
    _C("video_mute_on", 4, b'\x02\x10\x00\x00\x00\x12',
        b'\x22\x10**\x00', 6, description="Picture mute - On"),
    _C("video_mute_off", 5, b'\x02\x11\x00\x00\x00\x13',
        b'\x22\x11**\x00', 6, description="Picture mute - Off"),
    _C("audio_mute_on", 6, b'\x02\x12\x00\x00\x00\x14',
        b'\x22\x12**\x00', 6, description="Sound mute - On"),
    _C("audio_mute_off", 7, b'\x02\x13\x00\x00\x00\x15',
        b'\x22\x13**\x00', 6, description="Sound mute - Off"),
    _C("volume_adjust", 8, b'\x03\x10\x00\x00\x05\x05\x00',
        b'\x23\x10**\x02', 8, payload_length=3,
        description="Volume adjust (absolute/relative mode byte, then 16-bit little-endian value)"),
    _C("get_status", 9, b'\x00\xbf\x00\x00\x01\x02\xc2',
        b'\x20\xbf**\x10\x02', 22, description="Basic information request"),
    _C("get_info", 10, b'\x03\x8a\x00\x00\x00\x8d',
        b'\x23\x8a**\x62', 104, description="Information request"),
    _C("get_lamp_info", 11, b'\x03\x96\x00\x00\x02',
        b'\x23\x96**\x06', 12, payload_length=2,
        description="Lamp information request (lamp number, then content requested)"),
    _C("get_errors", 12, b'\x00\x88\x00\x00\x00\x88',
        b'\x20\x88**\x0c', 18, description="Error status request"),
    _C("get_model_number", 13, b'\x00\x85\x00\x00\x01\x04\x8a',
        b'\x20\x85**\x20', 38, description="Model name request"),
    _C("get_serial_number", 14, b'\x00\xbf\x00\x00\x02\x01\x06\xc8',
        b'\x20\xbf**\x12\x01\x06', 24, description="Serial number request"),
  ]

command_metas: Dict[str, CommandMeta] = {}
for _command in _command_metas:
    assert not _command.name in command_metas
    command_metas[_command.name] = _command

def get_all_commands() -> List[CommandMeta]:
    """Returns all known commands, in catalog (ordinal) order."""
    return list(_command_metas)

def name_to_command_meta(name: str) -> CommandMeta:
    """Returns the command metadata for a command name."""
    result = command_metas.get(name)
    if result is None:
        raise NecProjectorError(f"Unknown command name: '{name}'")
    return result

def bytes_to_command_meta(raw_data: bytes) -> List[CommandMeta]:
    """Returns the command metadatas whose template is a prefix of raw_data. Longest
       templates first."""
    result = [ meta for meta in _command_metas if raw_data.startswith(meta.template) ]
    result.sort(key=lambda meta: len(meta.template), reverse=True)
    return result
