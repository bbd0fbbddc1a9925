# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
NEC Projector host specifier resolver.

Provides a method that can resolve host specifiers and environment variables
into either a TCP/IP host and port, or a serial device name.
"""

from __future__ import annotations

import os

from ..internal_types import *
from ..exceptions import NecProjectorError
from ..constants import DEFAULT_PORT

TCP_SCHEME = "tcp"
SERIAL_SCHEME = "serial"

def resolve_projector_host(
        host: Optional[str]=None,
        default_port: Optional[int]=None,
      ) -> Tuple[str, str, Optional[int]]:
    """Resolves a projector host specifier into a scheme, address and port.

        Args:
            host: The hostname or IPV4 address of the projector.
                    May optionally be prefixed with "tcp://".
                    May be suffixed with ":<port>" to specify a
                    non-default port, which will override the default_port argument.
                    May be "serial://<device>" (e.g., "serial:///dev/ttyUSB0" or
                    "serial://COM3") to use an RS-232 connection.
                    If None, the host will be taken from the
                    NEC_PROJECTOR_HOST environment variable, and if that is not
                    set, the serial device will be taken from the
                    NEC_PROJECTOR_SERIAL_PORT environment variable.
            default_port: The default TCP/IP port number to use. If None, the port
                    will be taken from NEC_PROJECTOR_PORT. If that
                    environment variable is not found, the default NEC
                    projector port (7142) will be used.

        Returns:
            A tuple of (scheme: str, address: str, port: Optional[int]) where:
                scheme:   "tcp" or "serial".
                address:  The hostname, or the serial device name.
                port:     The resolved TCP port number; None for serial.
    """
    if host is None or host == '':
        host = os.environ.get('NEC_PROJECTOR_HOST')
        if host is None or host == '':
            serial_port = os.environ.get('NEC_PROJECTOR_SERIAL_PORT')
            if serial_port is None or serial_port == '':
                raise NecProjectorError(
                    "No projector host specified, and neither NEC_PROJECTOR_HOST nor NEC_PROJECTOR_SERIAL_PORT is set")
            host = f"{SERIAL_SCHEME}://{serial_port}"

    if host.startswith(f"{SERIAL_SCHEME}://"):
        device = host[len(SERIAL_SCHEME) + 3:]
        if device == '':
            raise NecProjectorError(f"Missing serial device name in host specifier: '{host}'")
        return (SERIAL_SCHEME, device, None)

    if default_port is None or default_port <= 0:
        default_port_str = os.environ.get('NEC_PROJECTOR_PORT')
        if default_port_str is None or default_port_str == '':
            default_port = DEFAULT_PORT
        else:
            default_port = int(default_port_str)

    if host.startswith(f"{TCP_SCHEME}://"):
        host = host[len(TCP_SCHEME) + 3:]
    if '://' in host:
        raise NecProjectorError(f"Unsupported scheme in host specifier: '{host}'")
    if ':' in host:
        host, port_str = host.rsplit(':', 1)
        try:
            port = int(port_str)
        except ValueError as e:
            raise NecProjectorError(f"Invalid port number in host specifier: '{port_str}'") from e
    else:
        port = default_port
    if host == '':
        raise NecProjectorError("Missing hostname in host specifier")

    return (TCP_SCHEME, host, port)
