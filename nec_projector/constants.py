# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants used by nec_projector"""

DEFAULT_PORT = 7142
"""The listen port number used by NEC projectors for TCP/IP control."""

DEFAULT_BAUDRATE = 38400
"""The default RS-232 baud rate for NEC projectors."""

DEFAULT_TIMEOUT = 2.0
"""The default timeout for a single read or write on either transport, in seconds."""

CONNECT_TIMEOUT = 3.0
"""The timeout for a single TCP/IP connection attempt, in seconds."""

CONNECT_ATTEMPTS = 2
"""Number of TCP/IP connection attempts made for each command before giving up.
   Attempts are only repeated before any command bytes have been written."""

CONNECT_RETRY_INTERVAL = 0.5
"""The interval between connection attempts over TCP/IP, in seconds."""

SERIAL_SETTLE_DELAY = 0.1
"""Delay between writing a command to the serial port and reading the first reply
   byte, in seconds. Shorter delays produce partial and corrupt reads on real
   hardware; do not reduce."""

CORRUPT_DRAIN_TIMEOUT = 0.1
"""How long to keep reading after a corrupt first reply byte, in seconds, so the
   garbage can be reported."""

MAX_DRAIN_BYTES = 512
"""Upper bound on the number of garbage bytes drained after a corrupt reply."""

POWER_ON_TIMEOUT = 120.0
"""Overall deadline for power-on synchronization (power on, then wait for an
   operable state), in seconds."""

POWER_POLL_INTERVAL = 1.0
"""Seconds between power state polls while the projector is initializing or starting."""

STATUS_POLL_INTERVAL = 10.0
"""Default interval for background status polling, in seconds."""
