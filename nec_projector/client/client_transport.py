# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
NEC Projector client abstract transport interface.

Provides a low-level abstract interface for sending a prepared command to an
NEC projector and receiving the complete reply. Does not provide any higher-level
abstractions such as semantic commands, device state or error decoding.

NEC projectors are driven one command at a time, and every command is sent over
a fresh connection (a TCP socket or an open serial port) that is released as
soon as the reply has been read. Replies carry no terminator; their length is
known from the command catalog once the first reply byte has been seen.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod

from ..internal_types import *
from ..exceptions import (
    NecProjectorError,
    NecProjectorTimeoutError,
    NecProjectorEndOfStreamError,
    NecProjectorCorruptDataError,
    NecProjectorConnectionResetError,
  )
from ..constants import DEFAULT_TIMEOUT, CORRUPT_DRAIN_TIMEOUT, MAX_DRAIN_BYTES
from ..pkg_logging import logger
from ..protocol import NecCommand, NecResponse

DisconnectCallback = Callable[[BaseException], None]

_RESET_EXCEPTIONS = (ConnectionResetError, BrokenPipeError, ConnectionAbortedError)

class NecProjectorClientTransport(ABC):
    """Abstract transport. Subclasses provide _open_streams(); everything else
       (locking, writing, reading and validating the reply, releasing the
       connection) is shared."""

    timeout_secs: float
    """Timeout for each individual write or read, in seconds."""

    on_disconnect: Optional[DisconnectCallback] = None
    """Called (synchronously) when the peer resets the connection mid-command."""

    _closed: bool = False

    _transaction_lock: asyncio.Lock
    """A mutex to ensure that only one command is in progress at a time;
    this allows multiple callers to use the same transport without worrying
    about mixing up replies."""

    def __init__(self, timeout_secs: float=DEFAULT_TIMEOUT) -> None:
        self.timeout_secs = timeout_secs
        self._transaction_lock = asyncio.Lock()

    @abstractmethod
    async def _open_streams(self, command_name: Optional[str]=None) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        """Opens a new connection to the projector, with timeout.

        Must raise an NecProjectorTransportError (tagged with command_name) on failure.

        Must be implemented by subclasses.
        """
        raise NotImplementedError()

    async def _after_write(self) -> None:
        """Called between writing a command and reading its reply. The default does nothing."""
        pass

    @property
    def closed(self) -> bool:
        return self._closed

    async def send_command(self, command: NecCommand) -> NecResponse:
        """Sends a prepared command and reads its complete reply.

        The reply may be a success or a failure reply; interpreting it is up to the
        caller. Raises an NecProjectorTransportError subclass, tagged with the
        command name, if the exchange itself fails. The connection is released
        on every path.
        """
        if self._closed:
            raise NecProjectorError(f"{self}: Transport is closed")
        async with self._transaction_lock:
            return await self.transact_no_lock(command)

    async def transact_no_lock(self, command: NecCommand) -> NecResponse:
        """Sends a command and reads its reply.

        The caller must be holding the transaction lock. Ordinary users
        should call send_command() instead.
        """
        reader, writer = await self._open_streams(command.name)
        try:
            try:
                await self._write_command(writer, command)
                await self._after_write()
                response = await self._read_response(reader, command)
            except _RESET_EXCEPTIONS as e:
                logger.debug(f"{self}: Connection reset during {command.name}: {e}")
                self._notify_disconnect(e)
                raise NecProjectorConnectionResetError(
                    f"Connection reset by projector: {e}", command_name=command.name) from e
        finally:
            await self._close_writer(writer)
        logger.debug(f"{self}: Received {command.name} reply ({response.matching_template_name()}): [{response.raw_data.hex(' ')}]")
        return response

    def _notify_disconnect(self, exc: BaseException) -> None:
        if self.on_disconnect is None:
            return
        try:
            self.on_disconnect(exc)
        except Exception:
            logger.exception(f"{self}: Exception in disconnect callback")

    async def _write_command(self, writer: asyncio.StreamWriter, command: NecCommand) -> None:
        logger.debug(f"{self}: Sending {command.name}: [{command.raw_data.hex(' ')}]")
        writer.write(command.raw_data)
        try:
            await asyncio.wait_for(writer.drain(), self.timeout_secs)
        except asyncio.TimeoutError as e:
            raise NecProjectorTimeoutError(
                f"Timed out after {self.timeout_secs} seconds writing command", command_name=command.name) from e

    async def _read_exactly(
            self,
            reader: asyncio.StreamReader,
            length: int,
            command: NecCommand,
            already_read: bytes=b'',
          ) -> bytes:
        try:
            return await asyncio.wait_for(reader.readexactly(length), self.timeout_secs)
        except asyncio.IncompleteReadError as e:
            partial_data = already_read + e.partial
            raise NecProjectorEndOfStreamError(
                f"Connection closed by projector after {len(partial_data)} reply bytes: [{partial_data.hex(' ')}]",
                command_name=command.name,
                partial_data=partial_data,
              ) from e
        except asyncio.TimeoutError as e:
            raise NecProjectorTimeoutError(
                f"Timed out after {self.timeout_secs} seconds waiting for reply "
                f"(received {len(already_read)} bytes: [{already_read.hex(' ')}])",
                command_name=command.name,
              ) from e

    async def _drain(self, reader: asyncio.StreamReader) -> bytes:
        """Reads whatever else arrives within CORRUPT_DRAIN_TIMEOUT, up to MAX_DRAIN_BYTES."""
        data = b''
        deadline = time.monotonic() + CORRUPT_DRAIN_TIMEOUT
        while len(data) < MAX_DRAIN_BYTES:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                chunk = await asyncio.wait_for(reader.read(MAX_DRAIN_BYTES - len(data)), remaining)
            except asyncio.TimeoutError:
                break
            if len(chunk) == 0:
                break
            data += chunk
        return data

    async def _read_response(self, reader: asyncio.StreamReader, command: NecCommand) -> NecResponse:
        """Reads one complete reply to command.

        The first byte tells whether this is a success or a failure reply, which
        determines how many more bytes to read.
        """
        first_byte = await self._read_exactly(reader, 1, command)
        expected_length = command.command_meta.expected_response_length(first_byte[0])
        if expected_length is None:
            garbage = first_byte + await self._drain(reader)
            raise NecProjectorCorruptDataError(
                f"Invalid first reply byte 0x{first_byte[0]:02x}; discarded [{garbage.hex(' ')}]",
                command_name=command.name,
                data=garbage,
              )
        rest = await self._read_exactly(reader, expected_length - 1, command, already_read=first_byte)
        raw_data = first_byte + rest
        response = NecResponse(raw_data, command_name=command.name)
        if not response.checksum_valid:
            raise NecProjectorCorruptDataError(
                f"Invalid reply checksum: [{raw_data.hex(' ')}]",
                command_name=command.name,
                data=raw_data,
              )
        return response

    async def _close_writer(self, writer: asyncio.StreamWriter) -> None:
        try:
            writer.close()
            await asyncio.wait_for(writer.wait_closed(), self.timeout_secs)
        except Exception:
            logger.debug(f"{self}: Exception while closing connection", exc_info=True)

    async def test_connection(self) -> None:
        """Verifies that the projector can be reached; raises NecProjectorTransportError if not.

        The default opens a connection and closes it again.
        """
        if self._closed:
            raise NecProjectorError(f"{self}: Transport is closed")
        async with self._transaction_lock:
            reader, writer = await self._open_streams()
            await self._close_writer(writer)

    async def aclose(self) -> None:
        """Closes the transport. Waits for any command in progress to complete.

        Has no effect if the transport is already closed.
        """
        if self._closed:
            return
        async with self._transaction_lock:
            self._closed = True
        logger.debug(f"{self}: Closed")

    async def __aenter__(self) -> Self:
        """Enters a context that will close the transport on exit."""
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType],
          ) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return str(self)
