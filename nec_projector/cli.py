# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Command-line tool for NEC projectors.

Runs one or more debug commands against a projector, e.g.:

    nec-projector --host 192.168.1.50 PowerOn "SelectInput(HDMI1)" GetDebugInfo
    nec-projector --serial-port /dev/ttyUSB0 "DisplayMute(true)"
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .internal_types import *
from .exceptions import NecProjectorError
from .client import NecProjectorClientConfig, nec_projector_connect

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nec-projector",
        description="Control an NEC projector over TCP/IP or RS-232.")
    parser.add_argument("commands", nargs="*", default=["GetMethods"],
        help='Debug commands to run, e.g. PowerOn "SelectInput(HDMI1)" (default: GetMethods)')
    parser.add_argument("--host", default=None,
        help="Projector host[:port], tcp://host[:port] or serial://device (default: $NEC_PROJECTOR_HOST)")
    parser.add_argument("--port", type=int, default=None, help="Projector TCP/IP port (default: 7142)")
    parser.add_argument("--serial-port", default=None, help="Serial device (default: $NEC_PROJECTOR_SERIAL_PORT)")
    parser.add_argument("--baudrate", type=int, default=None, help="Serial baud rate (default: 38400)")
    parser.add_argument("--timeout", type=float, default=None, help="Per-read/write timeout in seconds")
    parser.add_argument("--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], help="Logging level (default: WARNING)")
    return parser

async def run_commands(config: NecProjectorClientConfig, commands: Sequence[str]) -> int:
    client = await nec_projector_connect(config=config, initialize=False)
    async with client:
        for call_string in commands:
            try:
                result = await client.run_debug_command(call_string)
            except NecProjectorError as e:
                print(f"{call_string}: ERROR: {e}", file=sys.stderr)
                return 1
            if result is not None:
                print(result)
    return 0

def main(argv: Optional[Sequence[str]]=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(levelname)s - %(message)s",
      )
    config = NecProjectorClientConfig(
        default_host=args.host,
        default_port=args.port,
        serial_port=args.serial_port,
        baudrate=args.baudrate,
        timeout_secs=args.timeout,
      )
    try:
        return asyncio.run(run_commands(config, args.commands))
    except NecProjectorError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

if __name__ == "__main__":
    sys.exit(main())
