# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
NEC Projector RS-232 client transport.

Provides an implementation of NecProjectorClientTransport over a serial port,
using pyserial-asyncio-fast. The port is opened for every command and closed
once the reply has been read.
"""

from __future__ import annotations

import asyncio

import serial
import serial_asyncio_fast

from ..internal_types import *
from ..exceptions import NecProjectorTransportError, NecProjectorTimeoutError
from ..constants import DEFAULT_TIMEOUT, DEFAULT_BAUDRATE, SERIAL_SETTLE_DELAY
from ..pkg_logging import logger
from ..protocol import NecCommand

from .client_transport import NecProjectorClientTransport

class SerialNecProjectorClientTransport(NecProjectorClientTransport):
    """NEC Projector RS-232 client transport (8 data bits, no parity, 1 stop bit)."""

    port: str
    baudrate: int

    def __init__(
            self,
            port: str,
            baudrate: int=DEFAULT_BAUDRATE,
            timeout_secs: float=DEFAULT_TIMEOUT,
          ) -> None:
        super().__init__(timeout_secs=timeout_secs)
        self.port = port
        self.baudrate = baudrate

    async def _open_streams(self, command_name: Optional[str]=None) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        logger.debug(f"{self}: Opening serial port")
        try:
            return await asyncio.wait_for(
                serial_asyncio_fast.open_serial_connection(
                    url=self.port,
                    baudrate=self.baudrate,
                    bytesize=serial.EIGHTBITS,
                    parity=serial.PARITY_NONE,
                    stopbits=serial.STOPBITS_ONE,
                  ),
                self.timeout_secs,
              )
        except asyncio.TimeoutError as e:
            raise NecProjectorTimeoutError(
                f"Timed out after {self.timeout_secs} seconds opening serial port {self.port}",
                command_name=command_name,
              ) from e
        except (serial.SerialException, OSError) as e:
            raise NecProjectorTransportError(
                f"Unable to open serial port {self.port}: {e}",
                command_name=command_name,
              ) from e

    async def _after_write(self) -> None:
        # The projector needs time to start replying; reading sooner yields partial replies.
        await asyncio.sleep(SERIAL_SETTLE_DELAY)

    async def test_connection(self) -> None:
        """Sends an information request and waits for any well-formed reply.

        Opening a serial port says nothing about whether a projector is attached.
        """
        await self.send_command(NecCommand.create_from_name("get_info"))

    def __str__(self) -> str:
        return f"SerialNecProjectorClientTransport({self.port}@{self.baudrate})"
