#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package"""

from __future__ import annotations

from dataclasses import dataclass

from .internal_types import *

class NecProjectorError(Exception):
  """Base class for all error exceptions defined by this package."""
  pass

@dataclass(frozen=True)
class InternalFault:
    """A hardware condition self-reported by the projector in the diagnostic
       (get_errors) bitfield. Not raised on its own; a set of faults is attached
       to a NecProjectorFaultError."""
    byte_index: int
    """Index of the fault byte, relative to the start of the bitfield (response byte 5)."""
    bit_mask: int
    description: str

    def __str__(self) -> str:
        return self.description

class NecProjectorCommandError(NecProjectorError):
    """The projector explicitly rejected a command."""

    error_code: Optional[Tuple[int, int]]
    message: str
    command_name: Optional[str]
    is_known: bool
    """True iff error_code has an entry in the documented command error table."""

    def __init__(
            self,
            message: str,
            error_code: Optional[Tuple[int, int]]=None,
            command_name: Optional[str]=None,
            is_known: bool=False,
          ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.command_name = command_name
        self.is_known = is_known

    @property
    def error_code_str(self) -> Optional[str]:
        if self.error_code is None:
            return None
        return f"{self.error_code[0]:02x}{self.error_code[1]:02x}"

    def __str__(self) -> str:
        result = self.message
        if self.error_code is not None:
            result = f"({self.error_code_str}) {result}"
        if self.command_name is not None:
            result = f"{self.command_name}: {result}"
        return result

class NecProjectorFaultError(NecProjectorCommandError):
    """The projector is reporting one or more internal hardware faults that prevent
       an operation (e.g., power on) from completing."""

    faults: Tuple[InternalFault, ...]

    def __init__(
            self,
            message: str,
            faults: Sequence[InternalFault],
            command_name: Optional[str]=None,
          ) -> None:
        super().__init__(message, command_name=command_name)
        self.faults = tuple(faults)

    def __str__(self) -> str:
        lines = [super().__str__()]
        lines.extend(f"  {fault.description}" for fault in self.faults)
        return "\n".join(lines)

class NecProjectorTransportError(NecProjectorError):
    """Connection-level failure while sending a command or reading its reply."""

    command_name: Optional[str]

    def __init__(self, message: str, command_name: Optional[str]=None) -> None:
        if command_name is not None:
            message = f"{command_name}: {message}"
        super().__init__(message)
        self.command_name = command_name

class NecProjectorTimeoutError(NecProjectorTransportError, TimeoutError):
    """A connect, write or read did not complete within its timeout."""
    pass

class NecProjectorEndOfStreamError(NecProjectorTransportError):
    """The connection was closed before a complete reply was read."""

    partial_data: bytes

    def __init__(self, message: str, command_name: Optional[str]=None, partial_data: bytes=b'') -> None:
        super().__init__(message, command_name=command_name)
        self.partial_data = partial_data

class NecProjectorCorruptDataError(NecProjectorTransportError):
    """The reply was not a valid success or failure response."""

    data: bytes
    """Everything that was read for the reply, including drained garbage."""

    def __init__(self, message: str, command_name: Optional[str]=None, data: bytes=b'') -> None:
        super().__init__(message, command_name=command_name)
        self.data = data

class NecProjectorConnectionResetError(NecProjectorTransportError, ConnectionError):
    """The peer reset or closed the connection mid-operation."""
    pass

class NecProjectorOperationCancelled(NecProjectorError):
    """A multi-step operation (power-on synchronization) was aborted because its
       deadline expired."""

    last_power_state: Optional[Any]

    def __init__(self, message: str, last_power_state: Optional[Any]=None) -> None:
        super().__init__(message)
        self.last_power_state = last_power_state
