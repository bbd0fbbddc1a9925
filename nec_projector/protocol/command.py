# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

from ..internal_types import *
from ..exceptions import NecProjectorError
from ..pkg_logging import logger
from .checksum import append_checksum
from .states import Input
from .command_meta import (
    CommandMeta,
    bytes_to_command_meta,
    name_to_command_meta,
  )

CommandArgument = Union[int, str, Input]

class NecCommand:
    """A command to an NEC projector.

    A command is either a catalog template (payload is empty), or a prepared
    command consisting of the template followed by argument bytes and a single
    checksum byte covering everything before it:

        <template bytes> <arg 0> ... <arg n-1> <checksum>

    Templates without arguments already end in their own checksum and are sent as-is.
    """
    command_meta: CommandMeta
    raw_data: bytes
    payload: bytes
    """The argument bytes appended to the template. Empty for unprepared commands."""

    def __init__(
            self,
            raw_data: bytes,
            command_meta: Optional[CommandMeta]=None,
          ):
        raw_data = bytes(raw_data)
        if command_meta is None:
            command_metas = bytes_to_command_meta(raw_data)
            if len(command_metas) == 0:
                raise NecProjectorError(f"Unrecognized command: [{raw_data.hex(' ')}]")
            if len(command_metas) > 1:
                logger.debug(f"Multiple command metas found for command; using first: [{raw_data.hex(' ')}]")
            command_meta = command_metas[0]
        if not raw_data.startswith(command_meta.template):
            raise NecProjectorError(
                f"Command does not match template [{command_meta.template.hex(' ')}] for {command_meta.name}: [{raw_data.hex(' ')}]")
        extra = raw_data[len(command_meta.template):]
        if len(extra) == 0:
            payload = b''
        else:
            payload = extra[:-1]
            if append_checksum(command_meta.template + payload) != raw_data:
                raise NecProjectorError(f"Invalid checksum in {command_meta.name} command: [{raw_data.hex(' ')}]")
        self.command_meta = command_meta
        self.raw_data = raw_data
        self.payload = payload

    @property
    def name(self) -> str:
        """Returns the name of the command"""
        return self.command_meta.name

    @property
    def ordinal(self) -> int:
        return self.command_meta.ordinal

    @property
    def template(self) -> bytes:
        return self.command_meta.template

    @property
    def is_prepared(self) -> bool:
        """True iff arguments (and a checksum) have been appended to the template"""
        return len(self.payload) > 0

    @property
    def success_response_length(self) -> int:
        return self.command_meta.success_response_length

    @property
    def failure_response_length(self) -> int:
        return self.command_meta.failure_response_length

    @staticmethod
    def argument_to_byte(arg: CommandArgument) -> int:
        """Converts a single command argument to a byte value. Strings are input names."""
        if isinstance(arg, (str, Input)):
            return int(Input.resolve(arg))
        if isinstance(arg, bool) or not isinstance(arg, int):
            raise NecProjectorError(f"Invalid command argument type {type(arg).__name__}: {arg!r}")
        if arg < 0 or arg > 0xFF:
            raise NecProjectorError(f"Command argument out of byte range: {arg}")
        return arg

    def prepare(self, *args: CommandArgument) -> NecCommand:
        """Returns a new command consisting of this command's template followed by
           args and a checksum. With no args, returns an unmodified copy of the template."""
        payload = bytes(self.argument_to_byte(arg) for arg in args)
        if len(payload) == 0:
            raw_data = self.template
        else:
            raw_data = append_checksum(self.template + payload)
        return NecCommand(raw_data, self.command_meta)

    def prepare_input(self, input: Union[Input, str]) -> NecCommand:
        """Prepares this command with the code of a selectable input, given as an Input or a name."""
        return self.prepare(Input.resolve(input))

    @classmethod
    def create_from_meta(
            cls,
            command_meta: CommandMeta,
            *args: CommandArgument,
          ) -> NecCommand:
        """Creates an NecCommand from command metadata, preparing it with args if any are given"""
        result = cls(command_meta.template, command_meta)
        if len(args) > 0:
            result = result.prepare(*args)
        return result

    @classmethod
    def create_from_name(
            cls,
            command_name: str,
            *args: CommandArgument,
          ) -> NecCommand:
        """Creates an NecCommand from command name"""
        command_meta = name_to_command_meta(command_name)
        return cls.create_from_meta(command_meta, *args)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NecCommand):
            return NotImplemented
        return self.raw_data == other.raw_data

    def __hash__(self) -> int:
        return hash(self.raw_data)

    def __str__(self) -> str:
        return f"NecCommand({self.name}: [{self.raw_data.hex(' ')}])"

    def __repr__(self) -> str:
        return str(self)
