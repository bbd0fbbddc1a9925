# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
NEC Projector client.

Provides transports (TCP/IP and RS-232) and the NecProjectorClient device driver.
"""

from .resolve_host import resolve_projector_host
from .client_config import NecProjectorClientConfig
from .client_transport import NecProjectorClientTransport
from .tcp_client_transport import TcpNecProjectorClientTransport
from .serial_client_transport import SerialNecProjectorClientTransport
from .client_impl import (
    NecProjectorClient,
    PowerOnResult,
  )
from .simple import (
    nec_projector_transport_create,
    nec_projector_transport_connect,
    nec_projector_connect,
  )
