# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
NEC Projector emulator session.

One session (an asyncio Protocol) per accepted TCP/IP connection. The session
splits the incoming byte stream into complete commands and hands them to the
emulator, which queues them for its handler task.
"""

from __future__ import annotations

import asyncio

from ..internal_types import *
from ..pkg_logging import logger
from ..protocol import bytes_to_command_meta, get_all_commands

if TYPE_CHECKING:
    from .emulator_impl import NecProjectorEmulator

class NecProjectorEmulatorSession(asyncio.Protocol):
    emulator: NecProjectorEmulator
    session_id: int
    transport: Optional[asyncio.Transport] = None
    buffer: bytearray
    closed: bool = False

    def __init__(self, emulator: NecProjectorEmulator) -> None:
        self.emulator = emulator
        self.session_id = -1
        self.buffer = bytearray()

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        assert isinstance(transport, asyncio.Transport)
        self.transport = transport
        self.session_id = self.emulator.alloc_session_id(self)
        logger.debug(f"{self}: Connection from {transport.get_extra_info('peername')}")

    def connection_lost(self, exc: Optional[Exception]) -> None:
        logger.debug(f"{self}: Connection lost: {exc}")
        self.closed = True
        self.emulator.free_session_id(self.session_id)

    def data_received(self, data: bytes) -> None:
        logger.debug(f"{self}: Received bytes: {data.hex(' ')}")
        self.buffer.extend(data)
        self._extract_commands()

    def _extract_commands(self) -> None:
        while len(self.buffer) > 0:
            data = bytes(self.buffer)
            command_metas = bytes_to_command_meta(data)
            if len(command_metas) == 0:
                if any(meta.template.startswith(data) for meta in get_all_commands()):
                    # Partial template; wait for more.
                    return
                logger.warning(f"{self}: Discarding unrecognized command bytes: {data.hex(' ')}")
                self.buffer.clear()
                self.emulator.on_unrecognized_data(self, data)
                return
            command_length = command_metas[0].command_length
            if len(data) < command_length:
                return
            del self.buffer[:command_length]
            self.emulator.on_command_received(self, data[:command_length])

    def write(self, data: bytes) -> None:
        if self.closed or self.transport is None:
            logger.debug(f"{self}: Dropping write on closed session: {data.hex(' ')}")
            return
        logger.debug(f"{self}: Sending bytes: {data.hex(' ')}")
        self.transport.write(data)

    def close(self) -> None:
        if not self.closed and self.transport is not None:
            self.closed = True
            self.transport.close()

    def __str__(self) -> str:
        return f"NecProjectorEmulatorSession({self.session_id})"

    def __repr__(self) -> str:
        return str(self)
