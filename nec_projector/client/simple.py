# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
NEC Projector simple multi-transport client connection API.

Provides a simple API for connection to a projector over TCP/IP or RS-232.
"""

from __future__ import annotations

from ..internal_types import *
from ..pkg_logging import logger
from .client_transport import NecProjectorClientTransport
from .tcp_client_transport import TcpNecProjectorClientTransport
from .serial_client_transport import SerialNecProjectorClientTransport
from .resolve_host import resolve_projector_host, SERIAL_SCHEME
from .client_config import NecProjectorClientConfig
from .client_impl import NecProjectorClient

def nec_projector_transport_create(
        host: Optional[str]=None,
        config: Optional[NecProjectorClientConfig]=None,
      ) -> NecProjectorClientTransport:
    """Creates a transport for an NEC projector from a host specifier and configuration.
       No connection is made.

    Args:
        host: The hostname or IPV4 address of the projector.
                May optionally be prefixed with "tcp://".
                May be suffixed with ":<port>" to specify a
                non-default port.
                May be "serial://<device>" to use RS-232.
                If None, the host will be taken from the config.
        config: An NecProjectorClientConfig object that specifies
                the default host, port, serial settings and timeouts.
                If None, a default config will be created.
    """
    config = NecProjectorClientConfig(default_host=host, base_config=config)
    scheme, address, port = resolve_projector_host(config.host_specifier, config.default_port)
    transport: NecProjectorClientTransport
    if scheme == SERIAL_SCHEME:
        transport = SerialNecProjectorClientTransport(
            address,
            baudrate=config.baudrate,
            timeout_secs=config.timeout_secs,
          )
    else:
        assert port is not None
        transport = TcpNecProjectorClientTransport(
            address,
            port=port,
            timeout_secs=config.timeout_secs,
            connect_timeout_secs=config.connect_timeout_secs,
          )
    logger.debug(f"Created transport {transport}")
    return transport

async def nec_projector_transport_connect(
        host: Optional[str]=None,
        config: Optional[NecProjectorClientConfig]=None,
      ) -> NecProjectorClientTransport:
    """Creates a transport for an NEC projector and verifies that the projector
       can be reached. See nec_projector_transport_create()."""
    transport = nec_projector_transport_create(host=host, config=config)
    try:
        await transport.test_connection()
    except BaseException:
        await transport.aclose()
        raise
    return transport

async def nec_projector_connect(
        host: Optional[str]=None,
        config: Optional[NecProjectorClientConfig]=None,
        name: Optional[str]=None,
        initialize: bool=True,
      ) -> NecProjectorClient:
    """Creates an NEC projector client from a configuration and, if initialize
       is True, initializes it (verifies the connection and reads model, serial
       number and lamp information).

    Args:
        host: The host specifier; see nec_projector_transport_create().
        config: An NecProjectorClientConfig object. If None, a default config
                will be created.
        name: A friendly device name.
        initialize: If False, no communication takes place until the first
                operation.
    """
    config = NecProjectorClientConfig(default_host=host, base_config=config)
    transport = nec_projector_transport_create(config=config)
    try:
        client = NecProjectorClient(
            transport,
            name=name or f"NEC Projector ({config.host_specifier})",
            power_on_timeout_secs=config.power_on_timeout_secs,
            power_poll_interval_secs=config.power_poll_interval_secs,
          )
        if initialize:
            await client.initialize()
    except BaseException:
        await transport.aclose()
        raise
    return client
