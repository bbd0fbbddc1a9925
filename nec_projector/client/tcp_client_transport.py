# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
NEC Projector TCP/IP client transport.

Provides an implementation of NecProjectorClientTransport over TCP/IP sockets.
A new socket is connected for every command, and closed once the reply has
been read.
"""

from __future__ import annotations

import asyncio

import tenacity

from ..internal_types import *
from ..exceptions import NecProjectorTransportError, NecProjectorTimeoutError
from ..constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_PORT,
    CONNECT_TIMEOUT,
    CONNECT_ATTEMPTS,
    CONNECT_RETRY_INTERVAL,
  )
from ..pkg_logging import logger

from .client_transport import NecProjectorClientTransport
from .resolve_host import resolve_projector_host, TCP_SCHEME

class TcpNecProjectorClientTransport(NecProjectorClientTransport):
    """NEC Projector TCP/IP client transport."""

    host: str
    port: int
    connect_timeout_secs: float
    connect_attempts: int

    def __init__(
            self,
            host: str,
            port: int=DEFAULT_PORT,
            timeout_secs: float=DEFAULT_TIMEOUT,
            connect_timeout_secs: float=CONNECT_TIMEOUT,
            connect_attempts: int=CONNECT_ATTEMPTS,
          ) -> None:
        """Initializes the transport. No connection is made until a command is sent.
        """
        super().__init__(timeout_secs=timeout_secs)
        self.host = host
        self.port = port
        self.connect_timeout_secs = connect_timeout_secs
        self.connect_attempts = max(1, connect_attempts)

    def _log_connect_retry(self, retry_state: tenacity.RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome is not None else None
        logger.debug(f"{self}: Connection attempt {retry_state.attempt_number} failed: {exc}; retrying")

    async def _connect_once(self, command_name: Optional[str]=None) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        logger.debug(f"{self}: Connecting to {self.host}:{self.port}")
        try:
            return await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                self.connect_timeout_secs,
              )
        except asyncio.TimeoutError as e:
            raise NecProjectorTimeoutError(
                f"Timed out after {self.connect_timeout_secs} seconds connecting to {self.host}:{self.port}",
                command_name=command_name,
              ) from e
        except OSError as e:
            raise NecProjectorTransportError(
                f"Unable to connect to {self.host}:{self.port}: {e}",
                command_name=command_name,
              ) from e

    async def _open_streams(self, command_name: Optional[str]=None) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        """Connects a new socket to the projector, with timeout.

        Nothing has been written yet, so failed attempts are retried up to
        connect_attempts times.
        """
        retryer = tenacity.AsyncRetrying(
            stop=tenacity.stop_after_attempt(self.connect_attempts),
            wait=tenacity.wait_fixed(CONNECT_RETRY_INTERVAL),
            retry=tenacity.retry_if_exception_type(NecProjectorTransportError),
            before_sleep=self._log_connect_retry,
            reraise=True,
          )
        return await retryer(self._connect_once, command_name)

    @classmethod
    def create(
            cls,
            host: Optional[str]=None,
            port: Optional[int]=None,
            timeout_secs: float=DEFAULT_TIMEOUT,
            connect_timeout_secs: float=CONNECT_TIMEOUT,
          ) -> Self:
        """Creates a transport to an NEC Projector that is reachable over TCP/IP.

              Args:
                host: The hostname or IPV4 address of the projector.
                      May optionally be prefixed with "tcp://".
                      May be suffixed with ":<port>" to specify a
                      non-default port, which will override the port argument.
                      If None, the host will be taken from the
                        NEC_PROJECTOR_HOST environment variable.
                port: The default TCP/IP port number to use. If None, the port
                      will be taken from NEC_PROJECTOR_PORT. If that
                      environment variable is not found, the default NEC
                      projector port (7142) will be used.
                timeout_secs: The timeout for each read or write. If not
                      provided, DEFAULT_TIMEOUT (2 seconds) is used.
                connect_timeout_secs: The timeout for each connection attempt.
        """
        scheme, final_host, final_port = resolve_projector_host(host, port)
        if scheme != TCP_SCHEME:
            raise NecProjectorTransportError(f"Not a TCP/IP host specifier: '{host}'")
        assert final_port is not None
        return cls(
            final_host,
            port=final_port,
            timeout_secs=timeout_secs,
            connect_timeout_secs=connect_timeout_secs,
          )

    def __str__(self) -> str:
        return f"TcpNecProjectorClientTransport({self.host}:{self.port})"
