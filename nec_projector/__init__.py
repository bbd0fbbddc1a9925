# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Package nec_projector provides a command-line tool and API for controlling
NEC projectors via their binary control protocol over TCP/IP or RS-232.
"""

from .version import __version__

from .pkg_logging import logger

from .internal_types import Jsonable, JsonableDict

from .exceptions import (
    NecProjectorError,
    InternalFault,
    NecProjectorCommandError,
    NecProjectorFaultError,
    NecProjectorTransportError,
    NecProjectorTimeoutError,
    NecProjectorEndOfStreamError,
    NecProjectorCorruptDataError,
    NecProjectorConnectionResetError,
    NecProjectorOperationCancelled,
  )

from .constants import DEFAULT_PORT, DEFAULT_BAUDRATE, DEFAULT_TIMEOUT, POWER_ON_TIMEOUT

from .status import (
    MessageType,
    DeviceStatus,
    Subscription,
    StatusPublisher,
  )

from .capabilities import (
    Device,
    PowerControl,
    InputSelect,
    DisplayMute,
    AudioControl,
    Debuggable,
  )

from .debug_commands import (
    DebugCommandTable,
    parse_call_string,
  )

from .client import (
    NecProjectorClient,
    PowerOnResult,
    resolve_projector_host,
    NecProjectorClientConfig,
    NecProjectorClientTransport,
    TcpNecProjectorClientTransport,
    SerialNecProjectorClientTransport,
    nec_projector_transport_create,
    nec_projector_transport_connect,
    nec_projector_connect,
  )

from .protocol import (
    NecCommand,
    NecResponse,
    CommandMeta,
    PowerState,
    Input,
    LampNumber,
    LampInfo,
    get_all_commands,
    name_to_command_meta,
    bytes_to_command_meta,
  )
