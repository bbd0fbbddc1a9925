# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
NEC Projector client configuration.

Provides general config object for an NecProjectorClient over
supported transports (TCP/IP and RS-232).
"""

from __future__ import annotations

import os

from ..internal_types import *
from ..exceptions import NecProjectorError
from ..constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_PORT,
    DEFAULT_BAUDRATE,
    CONNECT_TIMEOUT,
    POWER_ON_TIMEOUT,
    POWER_POLL_INTERVAL,
  )

def _env_int(name: str) -> Optional[int]:
    value = os.environ.get(name)
    if value is None or value == '':
        return None
    try:
        return int(value)
    except ValueError as e:
        raise NecProjectorError(f"Invalid integer in environment variable {name}: '{value}'") from e

def _env_float(name: str) -> Optional[float]:
    value = os.environ.get(name)
    if value is None or value == '':
        return None
    try:
        return float(value)
    except ValueError as e:
        raise NecProjectorError(f"Invalid number in environment variable {name}: '{value}'") from e

_CONFIG_KEYS = (
    "default_host",
    "default_port",
    "serial_port",
    "baudrate",
    "timeout_secs",
    "connect_timeout_secs",
    "power_on_timeout_secs",
    "power_poll_interval_secs",
  )

class NecProjectorClientConfig:
    """NEC Projector client configuration."""
    default_host: Optional[str]
    default_port: int
    serial_port: Optional[str]
    baudrate: int
    timeout_secs: float
    connect_timeout_secs: float
    power_on_timeout_secs: float
    power_poll_interval_secs: float

    def __init__(
            self,
            default_host: Optional[str]=None,
            *,
            default_port: Optional[int]=None,
            serial_port: Optional[str]=None,
            baudrate: Optional[int]=None,
            timeout_secs: Optional[float]=None,
            connect_timeout_secs: Optional[float]=None,
            power_on_timeout_secs: Optional[float]=None,
            power_poll_interval_secs: Optional[float]=None,
            base_config: Optional[NecProjectorClientConfig]=None
          ) -> None:
        """Creates a configuration for an NEC Projector client.

           Args:
             default_host: The default hostname or IPV4 address of the projector.
                   May optionally be prefixed with "tcp://".
                   May be suffixed with ":<port>" to specify a
                   non-default port, which will override the default_port argument.
                   May be "serial://<device>" to use RS-232.
                   If None, the default host will be taken from the
                     NEC_PROJECTOR_HOST environment variable.
             default_port: For TCP/IP transports, the default TCP/IP port number to use.
                    If None, the default port will be taken from NEC_PROJECTOR_PORT.
                    If that environment variable is not found, the default NEC
                    projector port (7142) will be used.
             serial_port:
                   The serial device to use when no host is given. If None, taken
                   from the NEC_PROJECTOR_SERIAL_PORT environment variable.
                   If given without default_host, any host inherited from the
                   environment or base_config is dropped.
             baudrate:
                   The RS-232 baud rate. If None, taken from NEC_PROJECTOR_BAUDRATE,
                   defaulting to 38400.
             timeout_secs:
                   The timeout for each read or write, in seconds.
                   If None, the timeout will be taken from the
                   NEC_PROJECTOR_TIMEOUT environment variable.
                   If the environment variable is not found, the
                   default timeout will be used.
             connect_timeout_secs:
                   The timeout for each TCP/IP connection attempt, in seconds.
             power_on_timeout_secs:
                   The overall deadline for powering on and waiting for the
                   projector to become operable, in seconds.
             power_poll_interval_secs:
                   The interval between power state polls while waiting, in seconds.
             base_config:
                     An optional base configuration to use.
        """
        if base_config is None:
            self.init_from_defaults()
        else:
            self.init_from_base_config(base_config)

        if default_host is not None and default_host != '':
            self.default_host = default_host

        if default_port is not None and default_port > 0:
            self.default_port = default_port

        if serial_port is not None and serial_port != '':
            self.serial_port = serial_port
            if default_host is None or default_host == '':
                # An explicit serial port wins over an inherited host.
                self.default_host = None

        if baudrate is not None and baudrate > 0:
            self.baudrate = baudrate

        if timeout_secs is not None:
            self.timeout_secs = timeout_secs

        if connect_timeout_secs is not None:
            self.connect_timeout_secs = connect_timeout_secs

        if power_on_timeout_secs is not None:
            self.power_on_timeout_secs = power_on_timeout_secs

        if power_poll_interval_secs is not None:
            self.power_poll_interval_secs = power_poll_interval_secs

    def init_from_defaults(self) -> None:
        """Initializes the configuration from environment variables and defaults."""
        default_host: Optional[str] = os.environ.get('NEC_PROJECTOR_HOST')
        if default_host == '':
            default_host = None
        self.default_host = default_host
        default_port = _env_int('NEC_PROJECTOR_PORT')
        self.default_port = DEFAULT_PORT if default_port is None else default_port
        serial_port: Optional[str] = os.environ.get('NEC_PROJECTOR_SERIAL_PORT')
        if serial_port == '':
            serial_port = None
        self.serial_port = serial_port
        baudrate = _env_int('NEC_PROJECTOR_BAUDRATE')
        self.baudrate = DEFAULT_BAUDRATE if baudrate is None else baudrate
        timeout_secs = _env_float('NEC_PROJECTOR_TIMEOUT')
        self.timeout_secs = DEFAULT_TIMEOUT if timeout_secs is None else timeout_secs
        self.connect_timeout_secs = CONNECT_TIMEOUT
        self.power_on_timeout_secs = POWER_ON_TIMEOUT
        self.power_poll_interval_secs = POWER_POLL_INTERVAL

    def init_from_base_config(self, base_config: NecProjectorClientConfig) -> None:
        """Initializes the configuration from a base configuration."""
        self.default_host = base_config.default_host
        self.default_port = base_config.default_port
        self.serial_port = base_config.serial_port
        self.baudrate = base_config.baudrate
        self.timeout_secs = base_config.timeout_secs
        self.connect_timeout_secs = base_config.connect_timeout_secs
        self.power_on_timeout_secs = base_config.power_on_timeout_secs
        self.power_poll_interval_secs = base_config.power_poll_interval_secs

    @property
    def host_specifier(self) -> Optional[str]:
        """The host specifier to connect to: default_host if set, otherwise
           "serial://<serial_port>" if a serial port is set, otherwise None."""
        if self.default_host is not None:
            return self.default_host
        if self.serial_port is not None:
            return f"serial://{self.serial_port}"
        return None

    def to_jsonable(self) -> JsonableDict:
        return dict(
            default_host=self.default_host,
            default_port=self.default_port,
            serial_port=self.serial_port,
            baudrate=self.baudrate,
            timeout_secs=self.timeout_secs,
            connect_timeout_secs=self.connect_timeout_secs,
            power_on_timeout_secs=self.power_on_timeout_secs,
            power_poll_interval_secs=self.power_poll_interval_secs,
          )

    @classmethod
    def from_jsonable(
            cls,
            data: JsonableDict,
            base_config: Optional[NecProjectorClientConfig]=None,
          ) -> NecProjectorClientConfig:
        """Creates a configuration from a JSON-compatible dict. Missing keys fall back
           to base_config, or to the environment and defaults."""
        unknown_keys = set(data.keys()) - set(_CONFIG_KEYS)
        if len(unknown_keys) > 0:
            raise NecProjectorError(f"Unknown client configuration keys: {', '.join(sorted(unknown_keys))}")
        return cls(
            default_host=cast(Optional[str], data.get('default_host')),
            default_port=cast(Optional[int], data.get('default_port')),
            serial_port=cast(Optional[str], data.get('serial_port')),
            baudrate=cast(Optional[int], data.get('baudrate')),
            timeout_secs=cast(Optional[float], data.get('timeout_secs')),
            connect_timeout_secs=cast(Optional[float], data.get('connect_timeout_secs')),
            power_on_timeout_secs=cast(Optional[float], data.get('power_on_timeout_secs')),
            power_poll_interval_secs=cast(Optional[float], data.get('power_poll_interval_secs')),
            base_config=base_config,
          )

    def __str__(self) -> str:
        return (
            f"NecProjectorClientConfig("
            f"default_host={self.default_host}, "
            f"default_port={self.default_port}, "
            f"serial_port={self.serial_port}, "
            f"baudrate={self.baudrate}, "
            f"timeout_secs={self.timeout_secs!r})"
          )

    def __repr__(self) -> str:
        return str(self)
